"""Key derivation and authenticated encryption core.

Security Note (Threat Model):
    Keys live in process memory for the session lifetime. Anyone able to
    read process memory can recover them. This only prevents casual or
    offline recovery of file contents without the password and salt.
"""

from .codec import encode, decode
from .keys import KeyHandle, derive_key, derive_key_sync, generate_salt
from .cipher import encrypt, decrypt, encrypt_sync, decrypt_sync
from .exceptions import (
    EncryptorError,
    DecodeError,
    DecryptionError,
    MalformedEnvelope,
    AuthenticationFailure,
    CipherError,
    PlatformUnsupported,
    KeyNotSetError,
    SerializationError,
)

__all__ = [
    "encode",
    "decode",
    "KeyHandle",
    "derive_key",
    "derive_key_sync",
    "generate_salt",
    "encrypt",
    "decrypt",
    "encrypt_sync",
    "decrypt_sync",
    "EncryptorError",
    "DecodeError",
    "DecryptionError",
    "MalformedEnvelope",
    "AuthenticationFailure",
    "CipherError",
    "PlatformUnsupported",
    "KeyNotSetError",
    "SerializationError",
]
