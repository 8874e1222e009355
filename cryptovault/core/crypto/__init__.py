"""
CryptoVault Cryptographic Core
==============================

Architecture:
    1. Argon2id / PBKDF2: passphrase -> keystore wrapping key
    2. AES-256-GCM: wraps the data key inside the keystore
    3. AES-256-CTR: transparent stream encryption of the data file

WARNING: This module handles sensitive cryptographic material.
"""

from cryptovault.core.crypto.aes_ctr import StreamHeader, new_decryptor, new_encryptor
from cryptovault.core.crypto.aes_gcm import AesGcmCipher, WrappedKey
from cryptovault.core.crypto.kdf import KdfParams

__all__ = [
    "AesGcmCipher",
    "WrappedKey",
    "KdfParams",
    "StreamHeader",
    "new_encryptor",
    "new_decryptor",
]
