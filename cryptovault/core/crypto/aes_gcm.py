"""
AES-256-GCM Key Wrapping
========================

Wraps the vault's data key under a passphrase-derived key for storage
in the keystore container.

Security Properties:
    - 256-bit wrapping key
    - 96-bit random nonce per wrap (NIST recommended)
    - 128-bit authentication tag; a wrong passphrase is detected
      as a tag failure before any key material is returned
    - The entry alias is bound as associated data

WARNING:
    - Never reuse (key, nonce) pairs
    - Never catch InvalidTag silently
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Final, Optional

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

AES_KEY_SIZE: Final[int] = 32  # 256 bits
AES_NONCE_SIZE: Final[int] = 12  # 96 bits
AES_TAG_SIZE: Final[int] = 16  # 128 bits


@dataclass(frozen=True, slots=True)
class WrappedKey:
    """
    A data key encrypted under a wrapping key.

    Attributes:
        nonce: Nonce used for this wrap (stored with the ciphertext)
        ciphertext: Encrypted key with appended authentication tag
    """

    nonce: bytes
    ciphertext: bytes

    def __repr__(self) -> str:
        return f"WrappedKey(ciphertext_len={len(self.ciphertext)})"


class AesGcmCipher:
    """
    AES-256-GCM authenticated encryption used to wrap keys.

    Usage:
        cipher = AesGcmCipher()
        wrapped = cipher.wrap(data_key, wrapping_key, aad=b"vault-key")
        data_key = cipher.unwrap(wrapped, wrapping_key, aad=b"vault-key")
    """

    __slots__ = ()

    @staticmethod
    def generate_key() -> bytes:
        """Generate a random AES-256 key from the OS CSPRNG."""
        return secrets.token_bytes(AES_KEY_SIZE)

    @staticmethod
    def generate_nonce() -> bytes:
        return secrets.token_bytes(AES_NONCE_SIZE)

    def wrap(
        self,
        key: bytes,
        wrapping_key: bytes,
        aad: Optional[bytes] = None,
    ) -> WrappedKey:
        """
        Encrypt ``key`` under ``wrapping_key``.

        Raises:
            ValueError: If the wrapping key has the wrong size
        """
        if len(wrapping_key) != AES_KEY_SIZE:
            raise ValueError(f"Wrapping key must be exactly {AES_KEY_SIZE} bytes")

        nonce = self.generate_nonce()
        ciphertext = AESGCM(wrapping_key).encrypt(nonce, key, aad)
        return WrappedKey(nonce=nonce, ciphertext=ciphertext)

    def unwrap(
        self,
        wrapped: WrappedKey,
        wrapping_key: bytes,
        aad: Optional[bytes] = None,
    ) -> bytes:
        """
        Decrypt a wrapped key, verifying its tag first.

        Raises:
            ValueError: If parameters are malformed
            cryptography.exceptions.InvalidTag: If the wrapping key is wrong
                or the entry was tampered with
        """
        if len(wrapping_key) != AES_KEY_SIZE:
            raise ValueError(f"Wrapping key must be exactly {AES_KEY_SIZE} bytes")
        if len(wrapped.nonce) != AES_NONCE_SIZE:
            raise ValueError(f"Nonce must be exactly {AES_NONCE_SIZE} bytes")
        if len(wrapped.ciphertext) < AES_TAG_SIZE:
            raise ValueError("Ciphertext too short (missing authentication tag)")

        return AESGCM(wrapping_key).decrypt(wrapped.nonce, wrapped.ciphertext, aad)
