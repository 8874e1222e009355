"""
Key Derivation Functions
========================

Passphrase-based derivation of the keystore wrapping key.

Implements:
    - Argon2id for memory-hard derivation (default)
    - PBKDF2-HMAC-SHA256 for environments that require it

The parameters used are stored with each keystore entry, so an entry
can always be unlocked with the parameters it was created under.
"""

from __future__ import annotations

import base64
import secrets
from dataclasses import dataclass
from typing import Any, Final, Optional

from argon2.low_level import Type, hash_secret_raw
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from cryptovault.core.config import KeystoreConfig

WRAPPING_KEY_LENGTH: Final[int] = 32  # AES-256


def derive_key_argon2(
    passphrase: str,
    salt: bytes,
    time_cost: int,
    memory_cost: int,
    parallelism: int,
    length: int = WRAPPING_KEY_LENGTH,
) -> bytes:
    """
    Derive a key from a passphrase using Argon2id.

    Args:
        passphrase: Keystore passphrase
        salt: Random salt (at least 16 bytes)
        time_cost: Number of iterations
        memory_cost: Memory in KiB
        parallelism: Number of lanes
        length: Output key length

    Returns:
        Derived key bytes
    """
    return hash_secret_raw(
        secret=passphrase.encode("utf-8"),
        salt=salt,
        time_cost=time_cost,
        memory_cost=memory_cost,
        parallelism=parallelism,
        hash_len=length,
        type=Type.ID,
    )


def derive_key_pbkdf2(
    passphrase: str,
    salt: bytes,
    iterations: int,
    length: int = WRAPPING_KEY_LENGTH,
) -> bytes:
    """Derive a key from a passphrase using PBKDF2-HMAC-SHA256."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=length,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(passphrase.encode("utf-8"))


@dataclass(frozen=True, slots=True)
class KdfParams:
    """
    KDF name, salt and cost parameters of one keystore entry.

    Serialized into the keystore container so that load() does not
    depend on the current configuration.
    """

    name: str
    salt: bytes
    time_cost: Optional[int] = None
    memory_cost: Optional[int] = None
    parallelism: Optional[int] = None
    iterations: Optional[int] = None

    @classmethod
    def generate(cls, config: KeystoreConfig) -> KdfParams:
        """Fresh parameters with a random salt, following ``config``."""
        salt = secrets.token_bytes(config.salt_length)
        if config.kdf == "pbkdf2":
            return cls(name="pbkdf2", salt=salt, iterations=config.pbkdf2_iterations)
        return cls(
            name="argon2id",
            salt=salt,
            time_cost=config.argon2_time_cost,
            memory_cost=config.argon2_memory_cost,
            parallelism=config.argon2_parallelism,
        )

    def derive(self, passphrase: str) -> bytes:
        """Derive the wrapping key for ``passphrase``."""
        if self.name == "argon2id":
            return derive_key_argon2(
                passphrase,
                self.salt,
                time_cost=self.time_cost,
                memory_cost=self.memory_cost,
                parallelism=self.parallelism,
            )
        if self.name == "pbkdf2":
            return derive_key_pbkdf2(passphrase, self.salt, iterations=self.iterations)
        raise ValueError(f"Unsupported KDF: {self.name}")

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the keystore container (salt as base64)."""
        data: dict[str, Any] = {"name": self.name, "salt": base64.b64encode(self.salt).decode("ascii")}
        if self.name == "pbkdf2":
            data["iterations"] = self.iterations
        else:
            data["time_cost"] = self.time_cost
            data["memory_cost"] = self.memory_cost
            data["parallelism"] = self.parallelism
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KdfParams:
        """
        Deserialize parameters written by to_dict().

        Raises:
            ValueError, KeyError, TypeError: If the data is malformed
        """
        name = data["name"]
        salt = base64.b64decode(data["salt"], validate=True)
        if name == "pbkdf2":
            return cls(name=name, salt=salt, iterations=int(data["iterations"]))
        if name == "argon2id":
            return cls(
                name=name,
                salt=salt,
                time_cost=int(data["time_cost"]),
                memory_cost=int(data["memory_cost"]),
                parallelism=int(data["parallelism"]),
            )
        raise ValueError(f"Unsupported KDF: {name}")

    def __repr__(self) -> str:
        """Safe representation without the salt."""
        return f"KdfParams(name={self.name!r})"
