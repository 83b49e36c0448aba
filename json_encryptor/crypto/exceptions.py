"""Custom exceptions for key derivation, encryption and decryption."""
from typing import Optional


class EncryptorError(Exception):
    """Base exception for json_encryptor errors."""
    pass


class DecodeError(EncryptorError, ValueError):
    """Raised when text cannot be decoded back to bytes."""
    pass


class DecryptionError(EncryptorError):
    """Base exception for recoverable decryption failures."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class MalformedEnvelope(DecryptionError):
    """Envelope text does not parse into a ciphertext and a nonce.

    Surfaced to end users as a corrupt file.
    """
    pass


class AuthenticationFailure(DecryptionError):
    """Authentication tag check failed.

    Wrong key, corrupted ciphertext or tampered data. Surfaced to end users
    as a wrong key.
    """
    pass


class CipherError(EncryptorError):
    """The cryptographic primitive rejected well-formed input. Fatal."""
    pass


class PlatformUnsupported(CipherError):
    """The installed backend lacks PBKDF2-HMAC-SHA256 or AES-GCM."""
    pass


class KeyNotSetError(EncryptorError):
    """A session operation ran before any key was derived."""
    pass


class SerializationError(EncryptorError):
    """A value could not be converted to or from JSON."""
    pass
