"""
AES-256-CTR Stream Cipher
=========================

Cipher setup and header format for vault data files.

File Format:
    HEADER (40 bytes):
        - MAGIC: 4 bytes ("CVD1")
        - VERSION: 2 bytes (little-endian)
        - FLAGS: 2 bytes (reserved, zero)
        - NONCE: 16 bytes (initial CTR counter block, random per write)
        - KEY_CHECK: 16 bytes
    CIPHERTEXT: AES-256-CTR, same length as the plaintext

A fresh nonce is drawn for every write, so the same key never encrypts
two files with the same keystream. KEY_CHECK is
HMAC-SHA256(key, "cryptovault-key-check" || nonce) truncated to 16
bytes. It identifies the key a file was written under; it does not
authenticate the payload.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import struct
from dataclasses import dataclass
from typing import Final

from cryptography.hazmat.primitives.ciphers import Cipher, CipherContext, algorithms, modes

from cryptovault.core.errors import CorruptFormatError, CryptoError, KeyMismatchError

MAGIC_BYTES: Final[bytes] = b"CVD1"  # CryptoVault Data
FORMAT_VERSION: Final[int] = 1
CTR_NONCE_SIZE: Final[int] = 16
KEY_CHECK_SIZE: Final[int] = 16
DATA_KEY_SIZE: Final[int] = 32

_HEADER_STRUCT: Final[struct.Struct] = struct.Struct(
    f"<4sHH{CTR_NONCE_SIZE}s{KEY_CHECK_SIZE}s"
)
HEADER_SIZE: Final[int] = _HEADER_STRUCT.size

_KEY_CHECK_LABEL: Final[bytes] = b"cryptovault-key-check"


def compute_key_check(key: bytes, nonce: bytes) -> bytes:
    """Key-check value binding ``key`` to this file's ``nonce``."""
    digest = hmac.new(key, _KEY_CHECK_LABEL + nonce, hashlib.sha256).digest()
    return digest[:KEY_CHECK_SIZE]


@dataclass(frozen=True, slots=True)
class StreamHeader:
    """Parsed data file header."""

    nonce: bytes
    key_check: bytes
    version: int = FORMAT_VERSION
    flags: int = 0

    @classmethod
    def for_key(cls, key: bytes) -> StreamHeader:
        """New header with a random nonce for a write under ``key``."""
        nonce = secrets.token_bytes(CTR_NONCE_SIZE)
        return cls(nonce=nonce, key_check=compute_key_check(key, nonce))

    def to_bytes(self) -> bytes:
        return _HEADER_STRUCT.pack(
            MAGIC_BYTES,
            self.version,
            self.flags,
            self.nonce,
            self.key_check,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> StreamHeader:
        """
        Parse a header.

        Raises:
            CorruptFormatError: If the data is short, has bad magic bytes
                or an unsupported version
        """
        if len(data) < HEADER_SIZE:
            raise CorruptFormatError("Data file too short for header")

        magic, version, flags, nonce, key_check = _HEADER_STRUCT.unpack(data[:HEADER_SIZE])

        if magic != MAGIC_BYTES:
            raise CorruptFormatError("Invalid data file format (bad magic bytes)")
        if version != FORMAT_VERSION:
            raise CorruptFormatError(f"Unsupported data file format version: {version}")

        return cls(nonce=nonce, key_check=key_check, version=version, flags=flags)

    def verify_key(self, key: bytes) -> None:
        """
        Check that this file was written under ``key``.

        Raises:
            KeyMismatchError: If the key-check value does not match
        """
        expected = compute_key_check(key, self.nonce)
        if not hmac.compare_digest(expected, self.key_check):
            raise KeyMismatchError(
                "Data file was encrypted under a different key"
            )


def _cipher(key: bytes, nonce: bytes) -> Cipher:
    if len(key) != DATA_KEY_SIZE:
        raise CryptoError(f"Data key must be exactly {DATA_KEY_SIZE} bytes")
    try:
        return Cipher(algorithms.AES(key), modes.CTR(nonce))
    except ValueError as e:
        raise CryptoError("Cipher setup failed") from e


def new_encryptor(key: bytes, header: StreamHeader) -> CipherContext:
    """Encrypting CTR context for a file with ``header``."""
    return _cipher(key, header.nonce).encryptor()


def new_decryptor(key: bytes, header: StreamHeader) -> CipherContext:
    """Decrypting CTR context; verifies the header's key check first."""
    header.verify_key(key)
    return _cipher(key, header.nonce).decryptor()
