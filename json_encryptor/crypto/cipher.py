"""
Envelope Cipher: AES-256-GCM encryption of text into a comma-joined envelope.

Envelope format::

    <base64(ciphertext || 16-byte GCM tag)>,<base64(12-byte nonce)>

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit values drawn per call; collision probability
    is negligible under normal usage.
"""
import os
import asyncio

from cryptography.exceptions import InvalidTag

from .codec import encode, decode
from .keys import KeyHandle
from .exceptions import (
    AuthenticationFailure,
    CipherError,
    DecodeError,
    MalformedEnvelope,
)

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit GCM tag
ENVELOPE_DELIMITER = ","


def _check_key(key: KeyHandle) -> None:
    if not isinstance(key, KeyHandle):
        raise TypeError(f"key must be a KeyHandle, got {type(key).__name__}")


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------

def encrypt_sync(plaintext: str, key: KeyHandle) -> str:
    """Encrypt text into an envelope (blocking).

    Args:
        plaintext: Text to encrypt (may be empty).
        key: Handle from :func:`~json_encryptor.crypto.keys.derive_key`.

    Returns:
        Envelope string ``ciphertext64,nonce64``. Encrypting the same text
        twice gives different envelopes.

    Raises:
        TypeError: If plaintext is not a string or key is not a KeyHandle.
        CipherError: If the text cannot be encoded or the primitive fails.
    """
    _check_key(key)
    if not isinstance(plaintext, str):
        raise TypeError(f"plaintext must be str, got {type(plaintext).__name__}")
    try:
        data = plaintext.encode("utf-8")
    except UnicodeEncodeError:
        raise CipherError("Plaintext is not encodable as UTF-8") from None

    nonce = os.urandom(NONCE_SIZE)
    try:
        sealed = key._seal(nonce, data)
    except Exception as err:
        raise CipherError(f"Encryption failed: {err}") from err
    return f"{encode(sealed)}{ENVELOPE_DELIMITER}{encode(nonce)}"


async def encrypt(plaintext: str, key: KeyHandle) -> str:
    """Encrypt text into an envelope in the loop's default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, encrypt_sync, plaintext, key)


# ---------------------------------------------------------------------------
# Decryption
# ---------------------------------------------------------------------------

def _unpack(envelope: str) -> tuple[bytes, bytes]:
    """Split and decode an envelope into (ciphertext, nonce).

    Raises:
        MalformedEnvelope: On any structural problem.
    """
    if not isinstance(envelope, str):
        raise MalformedEnvelope(
            f"Envelope must be str, got {type(envelope).__name__}"
        )
    ciphertext64, sep, nonce64 = envelope.partition(ENVELOPE_DELIMITER)
    if not sep:
        raise MalformedEnvelope(
            "Invalid envelope: expected ciphertext64,nonce64, "
            "missing ',' delimiter"
        )
    if not ciphertext64 or not nonce64:
        raise MalformedEnvelope(
            "Invalid envelope: ciphertext or nonce field is empty"
        )
    try:
        ciphertext = decode(ciphertext64)
        nonce = decode(nonce64)
    except DecodeError as err:
        raise MalformedEnvelope(f"Invalid envelope field: {err}", err) from err

    if len(nonce) != NONCE_SIZE:
        raise MalformedEnvelope(
            f"Decoded nonce is {len(nonce)} bytes, expected {NONCE_SIZE}"
        )
    if len(ciphertext) < TAG_SIZE:
        raise MalformedEnvelope(
            f"Ciphertext too short (must include {TAG_SIZE}-byte tag)"
        )
    return ciphertext, nonce


def decrypt_sync(envelope: str, key: KeyHandle) -> str:
    """Decrypt an envelope back to text (blocking).

    Args:
        envelope: Envelope string produced by :func:`encrypt`.
        key: Handle derived from the same password and salt.

    Returns:
        The original plaintext.

    Raises:
        MalformedEnvelope: If the envelope does not parse (corrupt file).
        AuthenticationFailure: If the tag check fails (wrong key or
            tampered data). No partial plaintext is returned.
        DecodeError: If authentic plaintext bytes are not UTF-8.
        CipherError: If the primitive fails for another reason.
    """
    _check_key(key)
    ciphertext, nonce = _unpack(envelope)
    try:
        data = key._open(nonce, ciphertext)
    except InvalidTag as err:
        raise AuthenticationFailure(
            "Authentication failed: wrong key or tampered data", err
        ) from err
    except Exception as err:
        raise CipherError(f"Decryption failed: {err}") from err
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        raise DecodeError("Decrypted payload is not valid UTF-8") from None


async def decrypt(envelope: str, key: KeyHandle) -> str:
    """Decrypt an envelope in the loop's default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, decrypt_sync, envelope, key)
