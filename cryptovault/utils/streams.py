"""
Stream Utilities
================

Type-dispatched access to readable and writable byte streams.

``open_raw_input_stream`` and ``open_raw_output_stream`` are
``functools.singledispatch`` functions: existing types (paths, open
binary streams, sockets, parsed URLs) are extended with stream access
by registering an implementation, without subclassing them. Objects that
implement the ``StreamSource`` protocol (such as ``CryptoVault``) are
handled by the fallback implementation.

On top of those:
    - make_reader / make_writer: buffered text wrappers
    - slurp / spit: whole-content text helpers
"""

from __future__ import annotations

import io
import os
import socket
from functools import singledispatch
from typing import Any, BinaryIO, Protocol, runtime_checkable
from urllib.parse import ParseResult
from urllib.request import url2pathname, urlopen

from cryptovault.core.errors import NotFoundError, VaultIOError


@runtime_checkable
class StreamSource(Protocol):
    """Anything that can be read from and written to as bytes."""

    def open_input_stream(self) -> BinaryIO:
        ...

    def open_output_stream(self) -> BinaryIO:
        ...


def _open_file(path: str | os.PathLike, mode: str) -> BinaryIO:
    try:
        return open(os.fspath(path), mode)
    except FileNotFoundError as e:
        raise NotFoundError(f"File not found: {os.fspath(path)}") from e
    except OSError as e:
        raise VaultIOError(f"Cannot open {os.fspath(path)}: {e.strerror}") from e


@singledispatch
def open_raw_input_stream(source: Any) -> BinaryIO:
    """
    Open a readable byte stream for ``source``.

    Raises:
        TypeError: If ``source`` cannot be opened for reading
        NotFoundError: If a file source does not exist
        VaultIOError: If a file source cannot be opened
    """
    if isinstance(source, StreamSource):
        return source.open_input_stream()
    raise TypeError(f"Can't open {type(source).__name__} as an input stream")


@singledispatch
def open_raw_output_stream(target: Any) -> BinaryIO:
    """
    Open a writable byte stream for ``target``.

    Files are created or truncated.

    Raises:
        TypeError: If ``target`` cannot be opened for writing
        VaultIOError: If a file target cannot be opened
    """
    if isinstance(target, StreamSource):
        return target.open_output_stream()
    raise TypeError(f"Can't open {type(target).__name__} as an output stream")


@open_raw_input_stream.register(str)
@open_raw_input_stream.register(os.PathLike)
def _(source) -> BinaryIO:
    return _open_file(source, "rb")


@open_raw_output_stream.register(str)
@open_raw_output_stream.register(os.PathLike)
def _(target) -> BinaryIO:
    return _open_file(target, "wb")


@open_raw_input_stream.register
def _(source: io.IOBase) -> BinaryIO:
    if isinstance(source, io.TextIOBase):
        raise TypeError("Can't use a text stream as a byte stream")
    if not source.readable():
        raise TypeError("Can't open an output stream as an input stream")
    return source


@open_raw_output_stream.register
def _(target: io.IOBase) -> BinaryIO:
    if isinstance(target, io.TextIOBase):
        raise TypeError("Can't use a text stream as a byte stream")
    if not target.writable():
        raise TypeError("Can't open an input stream as an output stream")
    return target


@open_raw_input_stream.register
def _(source: socket.socket) -> BinaryIO:
    return source.makefile("rb")


@open_raw_output_stream.register
def _(target: socket.socket) -> BinaryIO:
    return target.makefile("wb")


@open_raw_input_stream.register
def _(source: ParseResult) -> BinaryIO:
    if source.scheme == "file":
        return _open_file(url2pathname(source.path), "rb")
    try:
        return urlopen(source.geturl())
    except OSError as e:
        raise VaultIOError(f"Cannot open URL {source.geturl()}") from e


@open_raw_output_stream.register
def _(target: ParseResult) -> BinaryIO:
    if target.scheme == "file":
        return _open_file(url2pathname(target.path), "wb")
    raise ValueError(f"Can't write to non-file URL: {target.geturl()}")


def make_reader(source: Any, encoding: str = "utf-8") -> io.TextIOWrapper:
    """Buffered text reader over the input stream of ``source``. Newlines are not translated."""
    raw = open_raw_input_stream(source)
    try:
        buffered = raw if isinstance(raw, io.BufferedIOBase) else io.BufferedReader(raw)
        return io.TextIOWrapper(buffered, encoding=encoding, newline="")
    except BaseException:
        raw.close()
        raise


def make_writer(target: Any, encoding: str = "utf-8") -> io.TextIOWrapper:
    """Buffered text writer over the output stream of ``target``. Newlines are not translated."""
    raw = open_raw_output_stream(target)
    try:
        buffered = raw if isinstance(raw, io.BufferedIOBase) else io.BufferedWriter(raw)
        return io.TextIOWrapper(buffered, encoding=encoding, newline="")
    except BaseException:
        raw.close()
        raise


def slurp(source: Any, encoding: str = "utf-8") -> str:
    """Read the entire contents of ``source`` as text."""
    with make_reader(source, encoding) as reader:
        return reader.read()


def spit(target: Any, content: Any, encoding: str = "utf-8") -> None:
    """Write ``str(content)`` as the entire contents of ``target``."""
    with make_writer(target, encoding) as writer:
        writer.write(str(content))
