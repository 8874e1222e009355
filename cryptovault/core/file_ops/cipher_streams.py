"""
Cipher Streams
==============

Stream wrappers that encrypt bytes on their way to a backing stream, or
decrypt them on their way out of one.

Both classes are ``io.RawIOBase`` subclasses and therefore context
managers. close() finalizes the cipher and closes the backing stream
exactly once, on every exit path.

Header handling lives outside the streams: the header is written to
(or read from) the backing stream before it is wrapped.
"""

from __future__ import annotations

import io
from typing import BinaryIO, Optional

from cryptography.hazmat.primitives.ciphers import CipherContext

from cryptovault.core.crypto.aes_ctr import HEADER_SIZE, StreamHeader


class _CipherStream(io.RawIOBase):
    """Shared close/finalize handling for the cipher streams."""

    def __init__(self, backing: BinaryIO, context: CipherContext) -> None:
        super().__init__()
        self._backing = backing
        self._context: Optional[CipherContext] = context

    @property
    def name(self) -> Optional[str]:
        return getattr(self._backing, "name", None)

    def _finalize(self) -> bytes:
        if self._context is None:
            return b""
        context, self._context = self._context, None
        return context.finalize()

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._on_close()
        finally:
            try:
                # IOBase.close() flushes before marking the stream closed
                super().close()
            finally:
                self._backing.close()

    def _on_close(self) -> None:
        self._finalize()


class EncryptingWriteStream(_CipherStream):
    """
    Write-only stream encrypting everything written through it.

    Usage:
        with EncryptingWriteStream(backing, encryptor) as out:
            out.write(b"plaintext")
    """

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        self._checkClosed()
        data = bytes(b)
        if data:
            self._backing.write(self._context.update(data))
        return len(data)

    def flush(self) -> None:
        super().flush()
        self._backing.flush()

    def _on_close(self) -> None:
        tail = self._finalize()
        if tail:
            self._backing.write(tail)


class DecryptingReadStream(_CipherStream):
    """
    Read-only stream decrypting bytes read from the backing stream.

    The backing stream must already be positioned after the header.
    """

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        self._checkClosed()
        view = memoryview(b).cast("B")
        # An empty read from the backing stream only means EOF for a non-empty request
        if not view or self._context is None:
            return 0
        data = self._backing.read(len(view))
        if not data:
            tail = self._finalize()
            view[:len(tail)] = tail
            return len(tail)
        # CTR output is exactly as long as its input
        plain = self._context.update(data)
        view[:len(plain)] = plain
        return len(plain)


def write_header(backing: BinaryIO, header: StreamHeader) -> None:
    """Write ``header`` at the current position of ``backing``."""
    backing.write(header.to_bytes())


def read_header(backing: BinaryIO) -> StreamHeader:
    """
    Read and parse the header at the start of ``backing``.

    Raises:
        CorruptFormatError: If the header is short or invalid
    """
    data = b""
    while len(data) < HEADER_SIZE:
        chunk = backing.read(HEADER_SIZE - len(data))
        if not chunk:
            break
        data += chunk
    return StreamHeader.from_bytes(data)
