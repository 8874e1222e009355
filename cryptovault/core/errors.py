"""
Vault Error Taxonomy
====================

Every failure raised by the keystore, the cipher streams and the vault
derives from VaultError. Low-level exceptions are translated at the
boundary where they occur and chained with ``raise ... from``.

Error kinds:
    - NotFoundError: keystore, keystore entry or data file missing
    - AuthenticationError: passphrase does not unlock the keystore
    - CorruptFormatError: keystore or data file is not in a valid format
    - CryptoError: key generation or cipher setup failure
    - KeyMismatchError: data file was written under a different key
    - VaultIOError: underlying read/write failure

Security Notice:
    Messages never contain passphrases or key material.
"""

from __future__ import annotations


class VaultError(Exception):
    """Base class for all vault failures."""
    pass


class NotFoundError(VaultError, FileNotFoundError):
    """Raised when the keystore, its entry, or the data file does not exist."""
    pass


class AuthenticationError(VaultError):
    """
    Raised when the passphrase does not unlock the keystore.

    This does not reveal whether the passphrase or the container
    was at fault.
    """
    pass


class CorruptFormatError(VaultError, ValueError):
    """Raised when a keystore or data file cannot be parsed."""
    pass


class CryptoError(VaultError):
    """Raised when key generation or cipher setup fails."""
    pass


class KeyMismatchError(CryptoError):
    """
    Raised when a data file was encrypted under a different key.

    Typically the keystore was re-initialized after the file was written.
    """
    pass


class VaultIOError(VaultError, OSError):
    """Raised when the underlying storage cannot be read or written."""
    pass
