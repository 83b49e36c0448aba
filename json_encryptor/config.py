"""
Encryptor Configuration: validated settings for an encryption session.

Values may be read from environment variables:
    ENCRYPTOR_DEFAULT_PASSWORD = <text>
    ENCRYPTOR_DEFAULT_SALT = <text>
    ENCRYPTOR_ENCRYPTED_SUFFIX = .enc
    ENCRYPTOR_DECRYPTED_SUFFIX = .json
    ENCRYPTOR_INDENT_OUTPUT = true | false

Security Note:
    The default password and salt are for debugging only. They are held as
    ``SecretStr`` so they never show up in reprs or logs.
"""
import os
import logging

from pydantic import BaseModel, Field, SecretStr, field_validator

logger = logging.getLogger("json_encryptor")

_ENV_PREFIX = "ENCRYPTOR_"
_ENV_FIELDS = (
    "default_password",
    "default_salt",
    "encrypted_suffix",
    "decrypted_suffix",
    "indent_output",
)


class EncryptorConfig(BaseModel):
    """Validated encryptor configuration."""

    default_password: SecretStr = Field(default=SecretStr("password"))
    default_salt: SecretStr = Field(default=SecretStr("salt"))
    encrypted_suffix: str = Field(default=".enc")
    decrypted_suffix: str = Field(default=".json")
    indent_output: bool = Field(default=True)

    model_config = {"frozen": True}

    @field_validator("encrypted_suffix", "decrypted_suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        """Validate a file suffix such as ``.enc``."""
        if len(v) < 2 or not v.startswith("."):
            raise ValueError(f"Suffix must start with '.' and be non-empty: {v!r}")
        if "/" in v or "\\" in v:
            raise ValueError(f"Suffix cannot contain path separators: {v!r}")
        return v

    @classmethod
    def from_env(cls) -> "EncryptorConfig":
        """Create EncryptorConfig from ``ENCRYPTOR_*`` environment variables.

        Unset variables keep their defaults.

        Returns:
            Populated EncryptorConfig instance.
        """
        values = {}
        for name in _ENV_FIELDS:
            raw = os.environ.get(f"{_ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        logger.debug("Loaded encryptor config from env: %s", sorted(values))
        return cls(**values)
