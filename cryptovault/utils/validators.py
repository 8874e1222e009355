"""
Validation Utilities
====================

Input validation for vault construction.
"""

from __future__ import annotations

import os
from pathlib import Path


class ValidationError(ValueError):
    """Raised when validation fails."""
    pass


def validate_path(
    path: str | os.PathLike,
    field_name: str = "path",
) -> Path:
    """
    Validate a vault file path.

    The path need not exist. It must not be empty, contain null bytes,
    or point at an existing directory.

    Returns:
        The path as a Path object

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(path, (str, os.PathLike)):
        raise ValidationError(f"{field_name} must be a str or path-like object")

    text = os.fspath(path)
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} must be a text path")
    if not text:
        raise ValidationError(f"{field_name} cannot be empty")
    if "\x00" in text:
        raise ValidationError(f"{field_name} contains invalid characters")

    validated = Path(text)
    if validated.is_dir():
        raise ValidationError(f"{field_name} is a directory: {validated}")

    return validated


def validate_passphrase(
    passphrase: str,
    max_length: int = 1024,
) -> str:
    """
    Validate a keystore passphrase.

    Raises:
        ValidationError: If the passphrase is not a non-empty string
    """
    if not isinstance(passphrase, str):
        raise ValidationError("passphrase must be a string")
    if not passphrase:
        raise ValidationError("passphrase cannot be empty")
    if len(passphrase) > max_length:
        raise ValidationError(f"passphrase must be at most {max_length} characters")
    if "\x00" in passphrase:
        raise ValidationError("passphrase contains invalid characters")
    return passphrase
