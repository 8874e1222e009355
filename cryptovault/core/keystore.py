"""
Keystore Adapter
================

Persists exactly one named, passphrase-protected symmetric key in a
file-backed container and reads it back.

Container Format (JSON, UTF-8):
    {
      "format": "cryptovault-keystore",
      "version": 1,
      "entries": {
        "vault-key": {
          "type": "secret-key",
          "algorithm": "AES",
          "key_size": 256,
          "kdf": {"name": "argon2id", "salt": "<b64>", ...cost params},
          "nonce": "<b64>",
          "wrapped_key": "<b64>"
        }
      }
    }

The wrapping key is derived from the passphrase with the entry's KDF
and the key is sealed with AES-256-GCM, the alias bound as associated
data.

Security Notice:
    Passphrases and key material are never logged.
"""

from __future__ import annotations

import base64
import json
import logging
from pathlib import Path
from typing import Any, Final, Optional, Protocol

from argon2.exceptions import HashingError
from cryptography.exceptions import InvalidTag

from cryptovault.core.config import KeystoreConfig
from cryptovault.core.crypto.aes_gcm import AesGcmCipher, WrappedKey
from cryptovault.core.crypto.kdf import KdfParams
from cryptovault.core.errors import (
    AuthenticationError,
    CorruptFormatError,
    CryptoError,
    NotFoundError,
    VaultIOError,
)

KEYSTORE_FORMAT: Final[str] = "cryptovault-keystore"
KEYSTORE_VERSION: Final[int] = 1
VAULT_KEY_ALIAS: Final[str] = "vault-key"
KEY_SIZE_BITS: Final[int] = 256

_log = logging.getLogger("cryptovault.keystore")


class KeystoreAdapter(Protocol):
    """Any password-protected store able to hold the vault key."""

    def create(self, path: Path | str, passphrase: str) -> bytes:
        ...

    def load(self, path: Path | str, passphrase: str) -> bytes:
        ...


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _unb64(text: str) -> bytes:
    return base64.b64decode(text, validate=True)


class FileKeystore:
    """
    JSON keystore container holding the vault key.

    Usage:
        keystore = FileKeystore()
        key = keystore.create("vault.keystore", "passphrase")
        assert keystore.load("vault.keystore", "passphrase") == key
    """

    __slots__ = ("_config", "_cipher", "_alias")

    def __init__(
        self,
        config: Optional[KeystoreConfig] = None,
        alias: str = VAULT_KEY_ALIAS,
    ) -> None:
        """
        Args:
            config: KDF settings used by create(); load() always uses the
                parameters stored in the file
            alias: Name of the entry holding the key
        """
        self._config = config or KeystoreConfig()
        self._cipher = AesGcmCipher()
        self._alias = alias

    @property
    def alias(self) -> str:
        return self._alias

    def create(self, path: Path | str, passphrase: str) -> bytes:
        """
        Generate a fresh key, seal it under ``passphrase`` and write the
        container to ``path``, replacing any existing file.

        Returns:
            The generated 32-byte key

        Raises:
            CryptoError: If key generation or wrapping fails
            VaultIOError: If the file cannot be written
        """
        path = Path(path)

        try:
            key = self._cipher.generate_key()
            kdf = KdfParams.generate(self._config)
            wrapped = self._cipher.wrap(
                key,
                kdf.derive(passphrase),
                aad=self._alias.encode("utf-8"),
            )
        except (ValueError, HashingError) as e:
            raise CryptoError("Key generation failed") from e

        document = {
            "format": KEYSTORE_FORMAT,
            "version": KEYSTORE_VERSION,
            "entries": {
                self._alias: {
                    "type": "secret-key",
                    "algorithm": "AES",
                    "key_size": KEY_SIZE_BITS,
                    "kdf": kdf.to_dict(),
                    "nonce": _b64(wrapped.nonce),
                    "wrapped_key": _b64(wrapped.ciphertext),
                },
            },
        }

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        except OSError as e:
            raise VaultIOError(f"Cannot write keystore: {path}") from e

        _log.info("Created keystore %s (kdf=%s)", path, kdf.name)
        return key

    def load(self, path: Path | str, passphrase: str) -> bytes:
        """
        Unlock the container at ``path`` and return the stored key.

        Raises:
            NotFoundError: If the file or the entry does not exist
            AuthenticationError: If the passphrase does not unlock the entry
            CorruptFormatError: If the file is not a valid container
            VaultIOError: If the file cannot be read
        """
        path = Path(path)

        try:
            raw = path.read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(f"Keystore not found: {path}") from e
        except OSError as e:
            raise VaultIOError(f"Cannot read keystore: {path}") from e

        entry = self._find_entry(raw, path)

        try:
            kdf = KdfParams.from_dict(entry["kdf"])
            wrapped = WrappedKey(
                nonce=_unb64(entry["nonce"]),
                ciphertext=_unb64(entry["wrapped_key"]),
            )
            wrapping_key = kdf.derive(passphrase)
        except (KeyError, TypeError, ValueError, HashingError) as e:
            raise CorruptFormatError(f"Malformed keystore entry in {path}") from e

        try:
            key = self._cipher.unwrap(wrapped, wrapping_key, aad=self._alias.encode("utf-8"))
        except InvalidTag as e:
            _log.warning("Keystore %s could not be unlocked", path)
            raise AuthenticationError("Passphrase does not unlock the keystore") from e
        except ValueError as e:
            raise CorruptFormatError(f"Malformed keystore entry in {path}") from e

        _log.debug("Loaded key from keystore %s", path)
        return key

    def _find_entry(self, raw: bytes, path: Path) -> dict[str, Any]:
        try:
            document = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorruptFormatError(f"Not a keystore file: {path}") from e

        if not isinstance(document, dict) or document.get("format") != KEYSTORE_FORMAT:
            raise CorruptFormatError(f"Not a keystore file: {path}")
        if document.get("version") != KEYSTORE_VERSION:
            raise CorruptFormatError(
                f"Unsupported keystore version: {document.get('version')!r}"
            )

        entries = document.get("entries")
        if not isinstance(entries, dict):
            raise CorruptFormatError(f"Keystore has no entries table: {path}")

        entry = entries.get(self._alias)
        if entry is None:
            raise NotFoundError(f"Keystore {path} has no entry {self._alias!r}")
        if not isinstance(entry, dict) or entry.get("type") != "secret-key":
            raise CorruptFormatError(f"Entry {self._alias!r} is not a secret key")

        return entry


def create(path: Path | str, passphrase: str, config: Optional[KeystoreConfig] = None) -> bytes:
    """Convenience function: create a keystore with a fresh vault key."""
    return FileKeystore(config).create(path, passphrase)


def load(path: Path | str, passphrase: str) -> bytes:
    """Convenience function: load the vault key from a keystore."""
    return FileKeystore().load(path, passphrase)
