"""
Tests for the keystore adapter.

Tests cover:
- create/load round-trip under both KDFs
- Overwrite on create
- Wrong passphrase, missing file, missing entry, corrupt containers
"""
import json

import pytest

from cryptovault.core import keystore as keystore_module
from cryptovault.core.config import KeystoreConfig
from cryptovault.core.errors import (
    AuthenticationError,
    CorruptFormatError,
    CryptoError,
    NotFoundError,
    VaultIOError,
)
from cryptovault.core.keystore import KEYSTORE_FORMAT, VAULT_KEY_ALIAS, FileKeystore


@pytest.fixture
def keystore_path(tmp_path):
    return tmp_path / "keystore.jks"


class TestCreateAndLoad:

    def test_round_trip(self, keystore, keystore_path):
        key = keystore.create(keystore_path, "secret")
        assert len(key) == 32
        assert keystore.load(keystore_path, "secret") == key

    def test_pbkdf2_round_trip(self, keystore_path):
        keystore = FileKeystore(KeystoreConfig(kdf="pbkdf2", pbkdf2_iterations=1000))
        key = keystore.create(keystore_path, "secret")
        document = json.loads(keystore_path.read_text())
        assert document["entries"][VAULT_KEY_ALIAS]["kdf"]["name"] == "pbkdf2"
        assert keystore.load(keystore_path, "secret") == key

    def test_load_uses_stored_parameters(self, keystore, keystore_path):
        """A keystore created with one config opens under another."""
        key = keystore.create(keystore_path, "secret")
        other = FileKeystore(KeystoreConfig(kdf="pbkdf2"))
        assert other.load(keystore_path, "secret") == key

    def test_create_overwrites(self, keystore, keystore_path):
        first = keystore.create(keystore_path, "secret")
        second = keystore.create(keystore_path, "secret")
        assert first != second
        assert keystore.load(keystore_path, "secret") == second

    def test_container_layout(self, keystore, keystore_path):
        keystore.create(keystore_path, "secret")
        document = json.loads(keystore_path.read_text(encoding="utf-8"))
        assert document["format"] == KEYSTORE_FORMAT
        assert document["version"] == 1
        entry = document["entries"]["vault-key"]
        assert entry["type"] == "secret-key"
        assert entry["algorithm"] == "AES"
        assert entry["key_size"] == 256
        assert entry["kdf"]["name"] == "argon2id"
        assert set(entry) >= {"nonce", "wrapped_key"}

    def test_key_not_stored_in_clear(self, keystore, keystore_path):
        key = keystore.create(keystore_path, "secret")
        raw = keystore_path.read_bytes()
        assert key not in raw
        assert key.hex().encode() not in raw

    def test_creates_parent_directories(self, keystore, tmp_path):
        path = tmp_path / "a" / "b" / "keystore.jks"
        keystore.create(path, "secret")
        assert path.exists()

    def test_custom_alias(self, fast_keystore_config, keystore_path):
        keystore = FileKeystore(fast_keystore_config, alias="other-key")
        key = keystore.create(keystore_path, "secret")
        assert keystore.alias == "other-key"
        assert keystore.load(keystore_path, "secret") == key
        with pytest.raises(NotFoundError):
            FileKeystore().load(keystore_path, "secret")

    def test_module_functions(self, fast_keystore_config, keystore_path):
        key = keystore_module.create(keystore_path, "secret", fast_keystore_config)
        assert keystore_module.load(keystore_path, "secret") == key


class TestLoadFailures:

    def test_wrong_passphrase(self, keystore, keystore_path):
        keystore.create(keystore_path, "secret")
        with pytest.raises(AuthenticationError):
            keystore.load(keystore_path, "wrong")

    def test_missing_file(self, keystore, keystore_path):
        with pytest.raises(NotFoundError):
            keystore.load(keystore_path, "secret")

    def test_not_json(self, keystore, keystore_path):
        keystore_path.write_bytes(b"\xff\xfe not a keystore")
        with pytest.raises(CorruptFormatError):
            keystore.load(keystore_path, "secret")

    def test_wrong_format_marker(self, keystore, keystore_path):
        keystore_path.write_text(json.dumps({"format": "jceks", "version": 1, "entries": {}}))
        with pytest.raises(CorruptFormatError):
            keystore.load(keystore_path, "secret")

    def test_unsupported_version(self, keystore, keystore_path):
        keystore_path.write_text(json.dumps({"format": KEYSTORE_FORMAT, "version": 99, "entries": {}}))
        with pytest.raises(CorruptFormatError):
            keystore.load(keystore_path, "secret")

    def test_missing_entry(self, keystore, keystore_path):
        keystore_path.write_text(json.dumps({"format": KEYSTORE_FORMAT, "version": 1, "entries": {}}))
        with pytest.raises(NotFoundError):
            keystore.load(keystore_path, "secret")

    @pytest.mark.parametrize("field", ["kdf", "nonce", "wrapped_key"])
    def test_missing_entry_field(self, keystore, keystore_path, field):
        keystore.create(keystore_path, "secret")
        document = json.loads(keystore_path.read_text())
        del document["entries"][VAULT_KEY_ALIAS][field]
        keystore_path.write_text(json.dumps(document))
        with pytest.raises(CorruptFormatError):
            keystore.load(keystore_path, "secret")

    def test_bad_base64(self, keystore, keystore_path):
        keystore.create(keystore_path, "secret")
        document = json.loads(keystore_path.read_text())
        document["entries"][VAULT_KEY_ALIAS]["wrapped_key"] = "!!not base64!!"
        keystore_path.write_text(json.dumps(document))
        with pytest.raises(CorruptFormatError):
            keystore.load(keystore_path, "secret")

    def test_unknown_kdf(self, keystore, keystore_path):
        keystore.create(keystore_path, "secret")
        document = json.loads(keystore_path.read_text())
        document["entries"][VAULT_KEY_ALIAS]["kdf"]["name"] = "md5"
        keystore_path.write_text(json.dumps(document))
        with pytest.raises(CorruptFormatError):
            keystore.load(keystore_path, "secret")

    def test_tampered_wrapped_key(self, keystore, keystore_path):
        keystore.create(keystore_path, "secret")
        document = json.loads(keystore_path.read_text())
        entry = document["entries"][VAULT_KEY_ALIAS]
        entry["nonce"] = "AAAAAAAAAAAAAAAA"  # 12 zero bytes
        keystore_path.write_text(json.dumps(document))
        with pytest.raises(AuthenticationError):
            keystore.load(keystore_path, "secret")

    def test_directory_is_io_error(self, keystore, tmp_path):
        with pytest.raises(VaultIOError):
            keystore.load(tmp_path, "secret")


class TestCreateFailures:

    def test_unwritable_target(self, keystore, tmp_path):
        target = tmp_path / "is-a-directory"
        target.mkdir()
        with pytest.raises(VaultIOError):
            keystore.create(target, "secret")

    def test_errors_are_os_errors(self, keystore, tmp_path):
        target = tmp_path / "is-a-directory"
        target.mkdir()
        with pytest.raises(OSError):
            keystore.create(target, "secret")

    def test_bad_wrap_is_crypto_error(self, keystore, keystore_path, monkeypatch):
        def broken_wrap(self, key, wrapping_key, aad=None):
            raise ValueError("bad key size")

        monkeypatch.setattr(keystore_module.AesGcmCipher, "wrap", broken_wrap)
        with pytest.raises(CryptoError):
            keystore.create(keystore_path, "secret")
        assert not keystore_path.exists()
