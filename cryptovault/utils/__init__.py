"""
Utils module - Stream access and input validation.
"""

from cryptovault.utils.streams import (
    StreamSource,
    make_reader,
    make_writer,
    open_raw_input_stream,
    open_raw_output_stream,
    slurp,
    spit,
)
from cryptovault.utils.validators import ValidationError, validate_passphrase, validate_path

__all__ = [
    "StreamSource",
    "open_raw_input_stream",
    "open_raw_output_stream",
    "make_reader",
    "make_writer",
    "slurp",
    "spit",
    "ValidationError",
    "validate_passphrase",
    "validate_path",
]
