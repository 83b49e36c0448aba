"""
Key Derivation: PBKDF2-HMAC-SHA256 into a non-extractable AES-GCM key.

The password and salt are UTF-8 encoded and stretched with 100,000 PBKDF2
iterations into 256 bits of key material. The material is bound directly
into an AES-GCM primitive wrapped by :class:`KeyHandle`; the handle offers
no way to read the key bytes back.

Security Note:
    Never log passwords, salts or key material. Python cannot zero the
    intermediate key bytes, so they remain in process memory until
    garbage collected.
"""
import time
import asyncio
import logging
import secrets

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .codec import encode
from .exceptions import PlatformUnsupported

logger = logging.getLogger("json_encryptor")

PBKDF2_ITERATIONS = 100_000
KEY_LENGTH = 32  # AES-256
SALT_SIZE = 16  # generate_salt() only


class KeyHandle:
    """Opaque AES-256-GCM key capability.

    Supports only the ``encrypt`` and ``decrypt`` usages exercised by the
    cipher module. It cannot be exported, pickled or copied, and its
    attributes cannot be reassigned.
    """

    __slots__ = ("_aead",)

    algorithm = "AES-GCM"
    length = KEY_LENGTH * 8
    extractable = False
    usages = frozenset({"encrypt", "decrypt"})

    def __init__(self, aead: AESGCM):
        object.__setattr__(self, "_aead", aead)

    def __setattr__(self, name, value):
        raise AttributeError("KeyHandle is immutable")

    def __delattr__(self, name):
        raise AttributeError("KeyHandle is immutable")

    def __reduce__(self):
        raise TypeError("KeyHandle is non-extractable and cannot be serialized")

    def __copy__(self):
        raise TypeError("KeyHandle cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("KeyHandle cannot be copied")

    def __repr__(self) -> str:
        return (
            f"<KeyHandle {self.algorithm}-{self.length} "
            f"usages={','.join(sorted(self.usages))} extractable=False>"
        )

    def _seal(self, nonce: bytes, data: bytes) -> bytes:
        return self._aead.encrypt(nonce, data, None)

    def _open(self, nonce: bytes, data: bytes) -> bytes:
        return self._aead.decrypt(nonce, data, None)


def _utf8(value: str, name: str) -> bytes:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be str, got {type(value).__name__}")
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError:
        # the exception context holds the secret
        raise ValueError(f"{name} is not encodable as UTF-8") from None


def derive_key_sync(password: str, salt: str) -> KeyHandle:
    """Derive an AES-256-GCM key handle from a password and salt (blocking).

    Args:
        password: User secret, any text.
        salt: Salt text. Must match between encrypt and decrypt sessions.

    Returns:
        A new non-extractable :class:`KeyHandle`. Equal inputs give handles
        that decrypt each other's envelopes.

    Raises:
        TypeError: If password or salt is not a string.
        PlatformUnsupported: If the cryptography backend lacks
            PBKDF2-HMAC-SHA256 or AES-GCM.
    """
    password_bytes = _utf8(password, "password")
    salt_bytes = _utf8(salt, "salt")
    started = time.perf_counter()
    try:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=salt_bytes,
            iterations=PBKDF2_ITERATIONS,
        )
        handle = KeyHandle(AESGCM(kdf.derive(password_bytes)))
    except UnsupportedAlgorithm as err:
        raise PlatformUnsupported(
            f"Backend does not support PBKDF2-HMAC-SHA256/AES-GCM: {err}"
        ) from err
    logger.debug(
        "Derived AES-GCM-%d key (%d PBKDF2 iterations) in %.0f ms",
        KEY_LENGTH * 8, PBKDF2_ITERATIONS,
        (time.perf_counter() - started) * 1000,
    )
    return handle


async def derive_key(password: str, salt: str) -> KeyHandle:
    """Derive a key handle without blocking the event loop.

    The PBKDF2 work runs in the loop's default executor.
    See :func:`derive_key_sync` for arguments and errors.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, derive_key_sync, password, salt)


def generate_salt() -> str:
    """Generate a random salt as base64 text.

    Returns:
        Base64 encoding of 16 random bytes.
    """
    return encode(secrets.token_bytes(SALT_SIZE))
