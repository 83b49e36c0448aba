"""
Tests for EncryptorSession.

Tests cover:
- Active key lifecycle (missing, derived, replaced, cleared)
- Text and JSON value round-trips
- JSON file encryption and decryption
- Error propagation and log hygiene
"""
import asyncio
import logging

import pytest

from json_encryptor import (
    EncryptorConfig,
    EncryptorSession,
    AuthenticationFailure,
    KeyNotSetError,
    MalformedEnvelope,
    SerializationError,
    decrypt_sync,
    derive_key_sync,
)


@pytest.fixture
def session():
    """A session without a key."""
    return EncryptorSession()


# --- Test Key Lifecycle ---

class TestKeyLifecycle:

    def test_new_session_has_no_key(self, session):
        """Test a fresh session holds no key."""
        assert session.has_key is False
        with pytest.raises(KeyNotSetError):
            session.key

    @pytest.mark.asyncio
    async def test_operations_require_key(self, session, tmp_path):
        """Test every operation fails before a key is derived."""
        with pytest.raises(KeyNotSetError):
            await session.encrypt_text("text")
        with pytest.raises(KeyNotSetError):
            await session.decrypt_text("a,b")
        with pytest.raises(KeyNotSetError):
            await session.encrypt_object({"a": 1})
        with pytest.raises(KeyNotSetError):
            await session.decrypt_object("a,b")
        with pytest.raises(KeyNotSetError):
            await session.encrypt_file(tmp_path / "data.json")
        with pytest.raises(KeyNotSetError):
            await session.decrypt_file(tmp_path / "data.enc")

    @pytest.mark.asyncio
    async def test_default_key_matches_defaults(self, session):
        """Test use_default_key() derives from password/salt."""
        await session.use_default_key()
        assert session.has_key is True
        envelope = await session.encrypt_text("text")
        assert decrypt_sync(envelope, derive_key_sync("password", "salt")) == "text"

    @pytest.mark.asyncio
    async def test_partial_defaults(self, session):
        """Test only the missing credential falls back to its default."""
        await session.derive_key(password="hunter2")
        envelope = await session.encrypt_text("text")
        assert decrypt_sync(envelope, derive_key_sync("hunter2", "salt")) == "text"

    @pytest.mark.asyncio
    async def test_rederive_replaces_key(self, session):
        """Test a new derivation replaces the active key."""
        first = await session.derive_key("password", "salt")
        envelope = await session.encrypt_text("text")
        second = await session.derive_key("password", "pepper")
        assert session.key is second
        assert session.key is not first
        with pytest.raises(AuthenticationFailure):
            await session.decrypt_text(envelope)

    @pytest.mark.asyncio
    async def test_clear_key(self, session):
        """Test clear_key() empties the session."""
        await session.use_default_key()
        session.clear_key()
        assert session.has_key is False

    def test_repr(self, session):
        """Test repr shows only whether a key is present."""
        assert repr(session) == "<EncryptorSession has_key=False>"

    def test_config_is_kept(self):
        """Test the session keeps the given configuration."""
        config = EncryptorConfig(default_password="p", default_salt="s")
        assert EncryptorSession(config).config is config


# --- Test Values ---

class TestValues:

    @pytest.mark.asyncio
    async def test_object_round_trip(self, session):
        """Test nested JSON values survive encryption."""
        await session.use_default_key()
        value = {"name": "Zoë", "items": [1, 2.5, None, True], "nested": {"a": "東京"}}
        envelope = await session.encrypt_object(value)
        assert await session.decrypt_object(envelope) == value

    @pytest.mark.asyncio
    async def test_object_serialized_compactly(self, session):
        """Test the encrypted payload is compact JSON."""
        key = await session.use_default_key()
        envelope = await session.encrypt_object({"a": 1})
        assert decrypt_sync(envelope, key) == '{"a":1}'

    @pytest.mark.asyncio
    async def test_non_json_payload(self, session):
        """Test a decrypted payload that is not JSON."""
        await session.use_default_key()
        envelope = await session.encrypt_text("not json")
        with pytest.raises(SerializationError):
            await session.decrypt_object(envelope)

    @pytest.mark.asyncio
    async def test_unserializable_value(self, session):
        """Test values orjson cannot serialize."""
        await session.use_default_key()
        with pytest.raises(SerializationError):
            await session.encrypt_object({"obj": object()})

    @pytest.mark.asyncio
    async def test_failure_logged_without_envelope(self, session, caplog):
        """Test decryption failures log only the error kind."""
        await session.use_default_key()
        with caplog.at_level(logging.WARNING, logger="json_encryptor"):
            with pytest.raises(MalformedEnvelope):
                await session.decrypt_text("secret-looking-text")
        assert "MalformedEnvelope" in caplog.text
        assert "secret-looking-text" not in caplog.text


# --- Test Files ---

class TestFiles:

    @pytest.mark.asyncio
    async def test_file_round_trip(self, session, tmp_path):
        """Test data.json -> data.enc -> restored.json."""
        await session.use_default_key()
        source = tmp_path / "data.json"
        source.write_text('{"b": [1, 2], "a": "x"}', encoding="utf-8")

        encrypted = await session.encrypt_file(source)
        assert encrypted == tmp_path / "data.enc"
        ciphertext64, sep, nonce64 = encrypted.read_text(encoding="utf-8").partition(",")
        assert sep and ciphertext64 and nonce64

        restored = await session.decrypt_file(encrypted, tmp_path / "restored.json")
        assert restored.read_text(encoding="utf-8") == (
            '{\n  "b": [\n    1,\n    2\n  ],\n  "a": "x"\n}'
        )

    @pytest.mark.asyncio
    async def test_default_decrypt_destination(self, session, tmp_path):
        """Test decrypt_file() defaults to the .json suffix."""
        await session.use_default_key()
        envelope = await session.encrypt_object([1, 2, 3])
        source = tmp_path / "backup.enc"
        source.write_text(envelope, encoding="utf-8")
        assert await session.decrypt_file(source) == tmp_path / "backup.json"

    @pytest.mark.asyncio
    async def test_trailing_whitespace_ignored(self, session, tmp_path):
        """Test envelope files edited to end in a newline still decrypt."""
        await session.use_default_key()
        source = tmp_path / "data.enc"
        source.write_text(await session.encrypt_object({"a": 1}) + "\n", encoding="utf-8")
        target = await session.decrypt_file(source, tmp_path / "out.json")
        assert target.read_text(encoding="utf-8") == '{\n  "a": 1\n}'

    @pytest.mark.asyncio
    async def test_compact_output_and_custom_suffix(self, tmp_path):
        """Test indent_output=False and a custom encrypted suffix."""
        session = EncryptorSession(
            EncryptorConfig(encrypted_suffix=".vault", indent_output=False)
        )
        await session.use_default_key()
        source = tmp_path / "data.json"
        source.write_text('{\n  "a": 1\n}', encoding="utf-8")
        encrypted = await session.encrypt_file(source)
        assert encrypted.suffix == ".vault"
        target = await session.decrypt_file(encrypted, tmp_path / "flat.json")
        assert target.read_text(encoding="utf-8") == '{"a":1}'

    @pytest.mark.asyncio
    async def test_wrong_key_writes_nothing(self, session, tmp_path):
        """Test authentication failure leaves no output file."""
        await session.derive_key("password", "salt")
        source = tmp_path / "data.enc"
        source.write_text(await session.encrypt_object({"a": 1}), encoding="utf-8")
        await session.derive_key("password", "wrong")
        target = tmp_path / "out.json"
        with pytest.raises(AuthenticationFailure):
            await session.decrypt_file(source, target)
        assert not target.exists()

    @pytest.mark.asyncio
    async def test_corrupt_file(self, session, tmp_path):
        """Test a corrupt envelope file raises MalformedEnvelope."""
        await session.use_default_key()
        source = tmp_path / "data.enc"
        source.write_text("this is not an envelope", encoding="utf-8")
        with pytest.raises(MalformedEnvelope):
            await session.decrypt_file(source)

    @pytest.mark.asyncio
    async def test_invalid_json_source(self, session, tmp_path):
        """Test encrypt_file() rejects files that are not JSON."""
        await session.use_default_key()
        source = tmp_path / "data.json"
        source.write_text("{not json", encoding="utf-8")
        with pytest.raises(SerializationError):
            await session.encrypt_file(source)
        assert not (tmp_path / "data.enc").exists()

    @pytest.mark.asyncio
    async def test_key_captured_at_call_start(self, session, tmp_path, monkeypatch):
        """Test re-deriving mid-operation does not change the key in use."""
        await session.derive_key("password", "salt")
        source = tmp_path / "data.json"
        source.write_text('{"a": 1}', encoding="utf-8")
        reading = asyncio.Event()
        release = asyncio.Event()
        original_read = session._read

        async def held_read(path):
            reading.set()
            await release.wait()
            return await original_read(path)

        monkeypatch.setattr(session, "_read", held_read)
        task = asyncio.create_task(session.encrypt_file(source))
        await reading.wait()
        await session.derive_key("other", "salt")
        release.set()
        encrypted = await task

        envelope = encrypted.read_text(encoding="utf-8")
        assert decrypt_sync(envelope, derive_key_sync("password", "salt")) == '{"a":1}'

    @pytest.mark.asyncio
    async def test_decrypt_refuses_to_overwrite_source(self, session, tmp_path):
        """Test an envelope already named *.json is not overwritten."""
        await session.use_default_key()
        envelope = await session.encrypt_object({"a": 1})
        source = tmp_path / "backup.json"
        source.write_text(envelope, encoding="utf-8")
        with pytest.raises(ValueError):
            await session.decrypt_file(source)
        assert source.read_text(encoding="utf-8") == envelope

    @pytest.mark.asyncio
    async def test_encrypt_refuses_to_overwrite_source(self, session, tmp_path):
        """Test a JSON file already named *.enc is not overwritten."""
        await session.use_default_key()
        source = tmp_path / "data.enc"
        source.write_text('{"a": 1}', encoding="utf-8")
        with pytest.raises(ValueError):
            await session.encrypt_file(source)
        with pytest.raises(ValueError):
            await session.encrypt_file(source, str(source))
        assert source.read_text(encoding="utf-8") == '{"a": 1}'
