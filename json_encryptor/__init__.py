"""JSON Encryptor: password-derived AES-GCM encryption of JSON documents.

Security Note (Threat Model):
    The session key lives in process memory for the lifetime of an
    EncryptorSession. A compromised host process can read it. This only
    prevents casual or offline recovery of file contents without the
    password and salt.
"""

from .version import __version__
from .config import EncryptorConfig
from .session import EncryptorSession
from .crypto import (
    KeyHandle,
    derive_key,
    derive_key_sync,
    generate_salt,
    encrypt,
    decrypt,
    encrypt_sync,
    decrypt_sync,
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
    "__version__",
    "EncryptorConfig",
    "EncryptorSession",
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
