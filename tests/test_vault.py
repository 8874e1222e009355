"""
Tests for CryptoVault.

Tests cover:
- Round-trip of text and bytes
- Destructive re-initialization
- Wrong passphrase and missing files
- Fresh nonce per write and ciphertext layout
- Scoped release of streams
"""
import io
from pathlib import Path

import pytest

from cryptovault.core.crypto.aes_ctr import HEADER_SIZE
from cryptovault.core.errors import (
    AuthenticationError,
    CorruptFormatError,
    CryptoError,
    KeyMismatchError,
    NotFoundError,
    VaultError,
    VaultIOError,
)
from cryptovault.core.file_ops.cipher_streams import DecryptingReadStream, EncryptingWriteStream
from cryptovault.core.vault import CryptoVault
from cryptovault.utils.streams import StreamSource, slurp, spit
from cryptovault.utils.validators import ValidationError


@pytest.fixture
def initialized(vault: CryptoVault) -> CryptoVault:
    vault.initialize()
    return vault


class TestScenario:
    """The end-to-end walkthrough: write, read, re-initialize, read again."""

    def test_hello_vault(self, vault):
        vault.initialize()
        vault.write_text("hello vault")
        assert vault.read_text() == "hello vault"

        vault.initialize()
        with pytest.raises((AuthenticationError, CryptoError)):
            vault.read_text()

    def test_reinitialize_raises_key_mismatch(self, initialized):
        initialized.write_text("old")
        initialized.initialize()
        with pytest.raises(KeyMismatchError):
            initialized.open_input_stream()

    def test_write_after_reinitialize_is_readable(self, initialized):
        initialized.write_text("old")
        initialized.initialize()
        initialized.write_text("new")
        assert initialized.read_text() == "new"


class TestRoundTrip:
    """Write followed by read yields the same content."""

    @pytest.mark.parametrize("data", [
        b"",
        b"x",
        bytes(range(256)),
        b"\x00" * 1000,
    ])
    def test_bytes(self, initialized, data):
        initialized.write_bytes(data)
        assert initialized.read_bytes() == data

    def test_unicode_text(self, initialized):
        text = "sí, naïve — 日本語 ✓\nsecond line\n"
        initialized.write_text(text)
        assert initialized.read_text() == text

    def test_text_with_encoding(self, initialized):
        initialized.write_text("café", encoding="latin-1")
        assert initialized.read_bytes() == "café".encode("latin-1")
        assert initialized.read_text(encoding="latin-1") == "café"

    def test_write_text_stringifies(self, initialized):
        initialized.write_text(42)
        assert initialized.read_text() == "42"

    def test_large_payload_spans_chunks(self, initialized):
        data = bytes(range(256)) * 1024
        initialized.write_bytes(data)
        assert initialized.read_bytes() == data

    def test_idempotent_read(self, initialized):
        initialized.write_text("same twice")
        assert initialized.read_text() == initialized.read_text() == "same twice"

    def test_many_small_writes(self, initialized):
        with initialized.open_output_stream() as out:
            for i in range(100):
                out.write(f"{i},".encode())
        expected = "".join(f"{i}," for i in range(100))
        assert initialized.read_text() == expected

    def test_new_instance_reads_existing_file(self, initialized, settings):
        initialized.write_text("persisted")
        again = CryptoVault(
            initialized.data_path,
            initialized.keystore_path,
            "secret",
            settings=settings,
        )
        assert again.read_text() == "persisted"


class TestCiphertext:
    """What actually lands on disk."""

    def test_data_file_is_not_plaintext(self, initialized):
        initialized.write_text("hello vault")
        raw = initialized.data_path.read_bytes()
        assert b"hello vault" not in raw

    def test_ciphertext_length(self, initialized):
        initialized.write_bytes(b"a" * 123)
        assert initialized.data_path.stat().st_size == HEADER_SIZE + 123

    def test_fresh_nonce_per_write(self, initialized):
        initialized.write_text("same plaintext")
        first = initialized.data_path.read_bytes()
        initialized.write_text("same plaintext")
        second = initialized.data_path.read_bytes()
        assert first != second
        assert first[HEADER_SIZE:] != second[HEADER_SIZE:]

    def test_truncated_header(self, initialized):
        initialized.write_text("hello")
        initialized.data_path.write_bytes(initialized.data_path.read_bytes()[:10])
        with pytest.raises(CorruptFormatError):
            initialized.read_text()

    def test_foreign_file(self, initialized):
        initialized.data_path.write_bytes(b"this is not a vault data file at all!!!!!!")
        with pytest.raises(CorruptFormatError):
            initialized.read_bytes()


class TestFailures:
    """Errors propagate as the vault error kinds."""

    def test_wrong_passphrase(self, initialized, settings):
        initialized.write_text("hello vault")
        intruder = CryptoVault(
            initialized.data_path,
            initialized.keystore_path,
            "not the secret",
            settings=settings,
        )
        with pytest.raises(AuthenticationError):
            intruder.read_text()

    def test_wrong_passphrase_does_not_truncate_data(self, initialized, settings):
        initialized.write_text("keep me")
        intruder = CryptoVault(
            initialized.data_path,
            initialized.keystore_path,
            "not the secret",
            settings=settings,
        )
        with pytest.raises(AuthenticationError):
            intruder.write_text("overwrite")
        assert initialized.read_text() == "keep me"

    def test_missing_data_file(self, initialized):
        with pytest.raises(NotFoundError):
            initialized.open_input_stream()

    def test_missing_data_file_is_file_not_found(self, initialized):
        with pytest.raises(FileNotFoundError):
            initialized.read_text()

    def test_uninitialized_vault(self, vault):
        with pytest.raises(NotFoundError):
            vault.write_text("nothing")
        assert not vault.data_path.exists()

    def test_all_errors_are_vault_errors(self, vault):
        with pytest.raises(VaultError):
            vault.read_bytes()

    def test_unwritable_data_directory(self, tmp_path, settings):
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"not a directory")
        vault = CryptoVault(blocker / "data.enc", tmp_path / "keystore.jks", "secret", settings=settings)
        vault.initialize()
        keystore_before = vault.keystore_path.read_bytes()

        with pytest.raises(VaultIOError):
            vault.write_text("nowhere to go")
        assert vault.keystore_path.read_bytes() == keystore_before
        assert blocker.read_bytes() == b"not a directory"

    def test_data_path_replaced_by_directory(self, initialized):
        initialized.data_path.mkdir()
        with pytest.raises(VaultIOError):
            initialized.open_output_stream()


class TestStreams:
    """Stream acquisition and release."""

    def test_output_stream_type(self, initialized):
        with initialized.open_output_stream() as out:
            assert isinstance(out, EncryptingWriteStream)
            assert out.writable()
        assert out.closed

    def test_input_stream_type(self, initialized):
        initialized.write_text("x")
        with initialized.open_input_stream() as stream:
            assert isinstance(stream, DecryptingReadStream)
            assert stream.readable()
            assert stream.name == str(initialized.data_path)
        assert stream.closed

    def test_stream_closed_on_error(self, initialized):
        with pytest.raises(RuntimeError):
            with initialized.open_output_stream() as out:
                out.write(b"partial")
                raise RuntimeError("boom")
        assert out.closed
        assert initialized.read_bytes() == b"partial"

    def test_output_creates_parent_directory(self, tmp_path, settings):
        vault = CryptoVault(
            tmp_path / "nested" / "dir" / "data.enc",
            tmp_path / "keys" / "keystore.jks",
            "secret",
            settings=settings,
        )
        vault.initialize()
        vault.write_text("deep")
        assert vault.read_text() == "deep"

    def test_vault_is_stream_source(self, initialized):
        assert isinstance(initialized, StreamSource)
        spit(initialized, "via spit")
        assert slurp(initialized) == "via spit"

    def test_import_and_export(self, initialized, tmp_path):
        plain = tmp_path / "plain.txt"
        plain.write_bytes(b"imported content")
        initialized.import_from(plain)
        assert initialized.read_bytes() == b"imported content"

        out = tmp_path / "exported.txt"
        initialized.export_to(out)
        assert out.read_bytes() == b"imported content"

    def test_import_from_stream(self, initialized):
        initialized.import_from(io.BytesIO(b"from memory"))
        assert initialized.read_bytes() == b"from memory"


class TestConstruction:
    """Vault identity and validation."""

    def test_paths_are_normalized(self, tmp_path, settings):
        vault = CryptoVault(str(tmp_path / "d"), str(tmp_path / "k"), "pw", settings=settings)
        assert isinstance(vault.data_path, Path)
        assert isinstance(vault.keystore_path, Path)

    def test_immutable(self, vault):
        with pytest.raises(AttributeError):
            vault.passphrase = "changed"

    def test_repr_hides_passphrase(self, vault):
        assert "secret" not in repr(vault)

    def test_empty_passphrase_rejected(self, tmp_path):
        with pytest.raises(ValidationError):
            CryptoVault(tmp_path / "d", tmp_path / "k", "")

    def test_directory_path_rejected(self, tmp_path):
        with pytest.raises(ValidationError):
            CryptoVault(tmp_path, tmp_path / "k", "pw")

    def test_default_settings_from_instance(self, tmp_path):
        vault = CryptoVault(tmp_path / "d", tmp_path / "k", "pw")
        assert vault.settings is not None
        assert vault.keystore is not None
