"""
CryptoVault - Transparent Encryption at Rest
============================================

A single data file encrypted with a symmetric key that is kept in a
passphrase-protected keystore file, exposed as ordinary byte streams.

Security Notice:
- No passphrases or key material are logged
- Failures propagate; nothing is silently recovered
- A fresh nonce is used for every write
"""

from cryptovault.core.config import VaultSettings
from cryptovault.core.errors import (
    AuthenticationError,
    CorruptFormatError,
    CryptoError,
    KeyMismatchError,
    NotFoundError,
    VaultError,
    VaultIOError,
)
from cryptovault.core.keystore import FileKeystore
from cryptovault.core.logging import configure_logging, get_secure_logger
from cryptovault.core.vault import CryptoVault
from cryptovault.utils.streams import (
    StreamSource,
    make_reader,
    make_writer,
    open_raw_input_stream,
    open_raw_output_stream,
    slurp,
    spit,
)

__version__ = "0.1.0"

__all__ = [
    "CryptoVault",
    "FileKeystore",
    "VaultSettings",
    "configure_logging",
    "get_secure_logger",
    "StreamSource",
    "open_raw_input_stream",
    "open_raw_output_stream",
    "make_reader",
    "make_writer",
    "slurp",
    "spit",
    "VaultError",
    "NotFoundError",
    "AuthenticationError",
    "CorruptFormatError",
    "CryptoError",
    "KeyMismatchError",
    "VaultIOError",
    "__version__",
]
