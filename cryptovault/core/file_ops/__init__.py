"""
CryptoVault File Operations Module
==================================

Cipher streams used by the vault for transparent encryption at rest.
"""

from cryptovault.core.file_ops.cipher_streams import (
    DecryptingReadStream,
    EncryptingWriteStream,
    read_header,
    write_header,
)

__all__ = [
    "EncryptingWriteStream",
    "DecryptingReadStream",
    "read_header",
    "write_header",
]
