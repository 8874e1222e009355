"""
Crypto Vault
============

Transparent encryption at rest for a single data file, keyed by a
passphrase-protected key held in a keystore file.

Every stream-producing call is a one-shot cycle: the key is loaded from
the keystore, the backing file is opened, and a cipher stream wrapping
it is returned. The vault keeps no key and no handle between calls.

Usage:
    vault = CryptoVault("data.enc", "vault.keystore", "passphrase")
    vault.initialize()
    vault.write_text("hello vault")
    assert vault.read_text() == "hello vault"

WARNING:
    initialize() replaces the key. Anything written under the previous
    key becomes unreadable; reading it raises KeyMismatchError.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from cryptovault.core.config import VaultSettings
from cryptovault.core.crypto.aes_ctr import StreamHeader, new_decryptor, new_encryptor
from cryptovault.core.errors import VaultIOError
from cryptovault.core.file_ops.cipher_streams import (
    DecryptingReadStream,
    EncryptingWriteStream,
    read_header,
    write_header,
)
from cryptovault.core.keystore import FileKeystore, KeystoreAdapter
from cryptovault.utils.streams import (
    open_raw_input_stream,
    open_raw_output_stream,
    slurp,
    spit,
)
from cryptovault.utils.validators import validate_passphrase, validate_path

_log = logging.getLogger("cryptovault.vault")


@dataclass(frozen=True, slots=True)
class CryptoVault:
    """
    Encrypted data file plus the keystore holding its key.

    Attributes:
        data_path: File holding the ciphertext
        keystore_path: File holding the passphrase-protected key
        passphrase: Passphrase protecting the keystore (never shown in repr)
        keystore: Keystore adapter; defaults to a FileKeystore
        settings: Configuration; defaults to VaultSettings.get_instance()

    Implements the StreamSource protocol, so it works with make_reader,
    make_writer, slurp and spit like any file.
    """

    data_path: Path
    keystore_path: Path
    passphrase: str = field(repr=False)
    keystore: Optional[KeystoreAdapter] = field(default=None, repr=False, compare=False)
    settings: Optional[VaultSettings] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data_path", validate_path(self.data_path, "data_path"))
        object.__setattr__(self, "keystore_path", validate_path(self.keystore_path, "keystore_path"))
        validate_passphrase(self.passphrase)

        settings = self.settings or VaultSettings.get_instance()
        object.__setattr__(self, "settings", settings)
        if self.keystore is None:
            object.__setattr__(self, "keystore", FileKeystore(settings.keystore))

    def initialize(self) -> None:
        """
        Generate a new key and store it in the keystore.

        Overwrites any existing keystore at keystore_path; ciphertext
        written under the previous key becomes unreadable.
        """
        self.keystore.create(self.keystore_path, self.passphrase)
        _log.info("Initialized vault %s", self.data_path)

    def _load_key(self) -> bytes:
        return self.keystore.load(self.keystore_path, self.passphrase)

    def open_output_stream(self) -> EncryptingWriteStream:
        """
        Open the data file for writing, truncating it.

        The key is loaded before the data file is touched, so a failed
        key lookup leaves existing ciphertext intact.

        Raises:
            NotFoundError, AuthenticationError, CorruptFormatError:
                From the keystore
            VaultIOError: If the data file cannot be opened or written
        """
        key = self._load_key()
        header = StreamHeader.for_key(key)
        encryptor = new_encryptor(key, header)

        try:
            self.data_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise VaultIOError(f"Cannot create directory for {self.data_path}") from e

        raw = open_raw_output_stream(self.data_path)
        try:
            write_header(raw, header)
        except BaseException:
            raw.close()
            raise

        _log.debug("Opened %s for encrypted writing", self.data_path)
        return EncryptingWriteStream(raw, encryptor)

    def open_input_stream(self) -> DecryptingReadStream:
        """
        Open the data file for decrypted reading.

        Raises:
            NotFoundError: If the data file (or keystore) does not exist
            KeyMismatchError: If the file was written under another key
            CorruptFormatError: If the data file header is invalid
            AuthenticationError: If the passphrase does not unlock the keystore
        """
        key = self._load_key()
        raw = open_raw_input_stream(self.data_path)
        try:
            header = read_header(raw)
            decryptor = new_decryptor(key, header)
        except BaseException:
            raw.close()
            raise

        _log.debug("Opened %s for decrypted reading", self.data_path)
        return DecryptingReadStream(raw, decryptor)

    def read_text(self, encoding: str = "utf-8") -> str:
        """Decrypt and return the entire contents as text."""
        return slurp(self, encoding)

    def write_text(self, content: Any, encoding: str = "utf-8") -> None:
        """Encrypt ``str(content)`` as the entire contents."""
        spit(self, content, encoding)

    def read_bytes(self) -> bytes:
        """Decrypt and return the entire contents."""
        chunk_size = self.settings.streams.chunk_size
        chunks = []
        with self.open_input_stream() as stream:
            while True:
                chunk = stream.read(chunk_size)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)

    def write_bytes(self, data: bytes) -> None:
        """Encrypt ``data`` as the entire contents."""
        with self.open_output_stream() as stream:
            stream.write(data)

    def import_from(self, source: Any) -> None:
        """
        Encrypt everything readable from ``source`` into the vault.

        ``source`` is anything open_raw_input_stream accepts; it is
        closed afterwards.
        """
        with open_raw_input_stream(source) as src, self.open_output_stream() as dst:
            shutil.copyfileobj(src, dst, self.settings.streams.chunk_size)

    def export_to(self, target: Any) -> None:
        """
        Decrypt the vault contents into ``target``.

        ``target`` is anything open_raw_output_stream accepts; it is
        closed afterwards.
        """
        with self.open_input_stream() as src, open_raw_output_stream(target) as dst:
            shutil.copyfileobj(src, dst, self.settings.streams.chunk_size)
