"""
EncryptorSession: the single active key plus JSON and file helpers.

Provides the public API used by UI glue and scripts:
- ``derive_key(password, salt)`` / ``use_default_key()``: set the active key
- ``encrypt_text`` / ``decrypt_text``: envelope text in and out
- ``encrypt_object`` / ``decrypt_object``: JSON values in and out
- ``encrypt_file`` / ``decrypt_file``: ``.json`` <-> ``.enc`` files

Security Note:
    Never log plaintext, envelopes, passwords or salts. Only log paths
    and error kinds.
"""
import asyncio
import logging
from pathlib import Path
from typing import Any, Optional, Union

import orjson

from .config import EncryptorConfig
from .crypto import cipher
from .crypto.keys import KeyHandle, derive_key
from .crypto.exceptions import (
    DecryptionError,
    KeyNotSetError,
    SerializationError,
)

logger = logging.getLogger("json_encryptor")

PathLike = Union[str, Path]


def dumps(value: Any, indent: bool = False) -> str:
    """Serialize a JSON value.

    Encrypted payloads are always stored compactly; ``indent`` gives the
    2-space layout used for decrypted output files.

    Raises:
        SerializationError: If the value is not JSON-serializable.
    """
    try:
        option = orjson.OPT_INDENT_2 if indent else 0
        return orjson.dumps(value, option=option).decode("utf-8")
    except orjson.JSONEncodeError as err:
        raise SerializationError(f"Value is not JSON-serializable: {err}") from err


def loads(text: str) -> Any:
    """Parse JSON text.

    Raises:
        SerializationError: If the text is not valid JSON.
    """
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError as err:
        # the message embeds no document content, only a position
        raise SerializationError(f"Invalid JSON: {err.msg}") from None


class EncryptorSession:
    """Holds at most one active :class:`KeyHandle` for a user session.

    Deriving a new key replaces the previous one. Every operation captures
    the active key when it starts, so a concurrent re-derivation never
    switches keys halfway through a call.
    """

    def __init__(self, config: Optional[EncryptorConfig] = None):
        self._config = config or EncryptorConfig()
        self._key: Optional[KeyHandle] = None

    def __repr__(self) -> str:
        return f"<EncryptorSession has_key={self.has_key}>"

    @property
    def config(self) -> EncryptorConfig:
        return self._config

    @property
    def has_key(self) -> bool:
        return self._key is not None

    @property
    def key(self) -> KeyHandle:
        """The active key handle.

        Raises:
            KeyNotSetError: If no key has been derived yet.
        """
        if self._key is None:
            raise KeyNotSetError(
                "No encryption key set; call derive_key() first"
            )
        return self._key

    def clear_key(self) -> None:
        """Drop the active key."""
        self._key = None

    # ------------------------------------------------------------------
    # Key derivation
    # ------------------------------------------------------------------

    async def derive_key(
        self,
        password: Optional[str] = None,
        salt: Optional[str] = None,
    ) -> KeyHandle:
        """Derive a key and make it the active one.

        Args:
            password: User password. ``None`` uses the configured default.
            salt: Salt text. ``None`` uses the configured default.

        Returns:
            The new active KeyHandle.
        """
        using_defaults = password is None and salt is None
        if password is None:
            password = self._config.default_password.get_secret_value()
        if salt is None:
            salt = self._config.default_salt.get_secret_value()
        key = await derive_key(password, salt)
        replaced = self._key is not None
        self._key = key
        logger.info(
            "Session key %s (defaults=%s)",
            "replaced" if replaced else "derived", using_defaults,
        )
        return key

    async def use_default_key(self) -> KeyHandle:
        """Derive the active key from the configured default password and salt."""
        return await self.derive_key()

    # ------------------------------------------------------------------
    # Text and JSON values
    # ------------------------------------------------------------------

    async def encrypt_text(self, text: str) -> str:
        return await cipher.encrypt(text, self.key)

    async def decrypt_text(self, envelope: str) -> str:
        key = self.key
        try:
            return await cipher.decrypt(envelope, key)
        except DecryptionError as err:
            logger.warning("Decryption failed: %s", type(err).__name__)
            raise

    async def encrypt_object(self, value: Any) -> str:
        """Serialize a JSON value compactly and encrypt it.

        Args:
            value: Any orjson-serializable value.

        Returns:
            Envelope string.

        Raises:
            KeyNotSetError: If no key is active.
            SerializationError: If value is not JSON-serializable.
        """
        key = self.key
        return await cipher.encrypt(dumps(value), key)

    async def decrypt_object(self, envelope: str) -> Any:
        """Decrypt an envelope and parse the JSON payload.

        Raises:
            KeyNotSetError: If no key is active.
            MalformedEnvelope: If the envelope is corrupt.
            AuthenticationFailure: If the key is wrong.
            SerializationError: If the payload is not valid JSON.
        """
        return loads(await self.decrypt_text(envelope))

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def _read(self, path: Path) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, path.read_text, "utf-8")

    async def _write(self, path: Path, content: str) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, path.write_text, content, "utf-8")

    @staticmethod
    def _target(source: Path, destination: Optional[PathLike], suffix: str) -> Path:
        target = Path(destination) if destination else source.with_suffix(suffix)
        if target.resolve() == source.resolve():
            raise ValueError(f"Output path would overwrite the source file: {source}")
        return target

    async def encrypt_file(
        self,
        source: PathLike,
        destination: Optional[PathLike] = None,
    ) -> Path:
        """Encrypt a JSON file into an envelope file.

        Args:
            source: Path of a JSON document.
            destination: Output path. Defaults to ``source`` with the
                configured encrypted suffix.

        Returns:
            Path of the written envelope file.

        Raises:
            ValueError: If the output path is the source file.
        """
        key = self.key
        source = Path(source)
        target = self._target(source, destination, self._config.encrypted_suffix)
        value = loads(await self._read(source))
        envelope = await cipher.encrypt(dumps(value), key)
        await self._write(target, envelope)
        logger.info("Encrypted %s -> %s", source, target)
        return target

    async def decrypt_file(
        self,
        source: PathLike,
        destination: Optional[PathLike] = None,
    ) -> Path:
        """Decrypt an envelope file into a JSON file.

        Surrounding whitespace in the envelope file is ignored.

        Args:
            source: Path of an envelope file.
            destination: Output path. Defaults to ``source`` with the
                configured decrypted suffix.

        Returns:
            Path of the written JSON file.

        Raises:
            ValueError: If the output path is the source file.
        """
        key = self.key
        source = Path(source)
        target = self._target(source, destination, self._config.decrypted_suffix)
        envelope = (await self._read(source)).strip()
        try:
            text = await cipher.decrypt(envelope, key)
        except DecryptionError as err:
            logger.warning(
                "Decryption of %s failed: %s", source, type(err).__name__,
            )
            raise
        value = loads(text)
        await self._write(target, dumps(value, indent=self._config.indent_output))
        logger.info("Decrypted %s -> %s", source, target)
        return target
