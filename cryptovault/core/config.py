"""
Vault Configuration Module
==========================

Provides immutable, environment-aware configuration for the keystore,
the cipher streams and logging.

Features:
- Immutable configuration after initialization
- Environment variable override support
- Sensitive keys are never read from the environment
- Validation in __post_init__
"""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from typing import Any, Final, Optional


# Keys that must never be configured from the environment
_SENSITIVE_KEYS: Final[frozenset[str]] = frozenset({
    "password", "passphrase", "secret", "token", "private", "credential",
})

SUPPORTED_KDFS: Final[frozenset[str]] = frozenset({"argon2id", "pbkdf2"})


def _is_sensitive_key(key: str) -> bool:
    """Check if a configuration key might contain sensitive data."""
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in _SENSITIVE_KEYS)


@dataclass(frozen=True, slots=True)
class KeystoreConfig:
    """Immutable key derivation settings used when a keystore is created."""

    kdf: str = "argon2id"
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536  # KiB, 64 MB
    argon2_parallelism: int = 4
    pbkdf2_iterations: int = 600_000  # OWASP recommended for PBKDF2-SHA256
    salt_length: int = 16

    def __post_init__(self) -> None:
        """Validate KDF settings."""
        if self.kdf not in SUPPORTED_KDFS:
            raise ValueError(f"Unsupported KDF: {self.kdf}")
        if self.argon2_time_cost < 1:
            raise ValueError("Argon2 time cost must be at least 1")
        if self.argon2_parallelism < 1:
            raise ValueError("Argon2 parallelism must be at least 1")
        # argon2 requires at least 8 KiB per lane
        if self.argon2_memory_cost < 8 * self.argon2_parallelism:
            raise ValueError("Argon2 memory cost must be at least 8 KiB per lane")
        if self.pbkdf2_iterations < 1:
            raise ValueError("PBKDF2 iterations must be positive")
        if self.salt_length < 16:
            raise ValueError("Salt length must be at least 16 bytes")


@dataclass(frozen=True, slots=True)
class StreamConfig:
    """Immutable stream settings."""

    chunk_size: int = 64 * 1024

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError("Chunk size must be positive")


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Immutable logging configuration."""

    level: str = "INFO"
    max_file_size_bytes: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    enable_console: bool = True
    enable_file: bool = False

    def __post_init__(self) -> None:
        """Validate logging settings."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {self.level}")


class VaultSettings:
    """
    Centralized, immutable configuration loader with environment override support.

    Usage:
        settings = VaultSettings.load()
        kdf = settings.keystore.kdf
        chunk = settings.streams.chunk_size
    """

    __slots__ = ("_keystore", "_streams", "_logging", "_frozen", "_config_hash")

    _instance: Optional[VaultSettings] = None

    def __init__(
        self,
        keystore: Optional[KeystoreConfig] = None,
        streams: Optional[StreamConfig] = None,
        logging: Optional[LoggingConfig] = None,
    ) -> None:
        """Initialize configuration. Use VaultSettings.load() for standard initialization."""
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_keystore", keystore or KeystoreConfig())
        object.__setattr__(self, "_streams", streams or StreamConfig())
        object.__setattr__(self, "_logging", logging or LoggingConfig())
        object.__setattr__(self, "_config_hash", self._compute_hash())
        object.__setattr__(self, "_frozen", True)

    def _compute_hash(self) -> str:
        config_str = f"{self._keystore}|{self._streams}|{self._logging}"
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @property
    def keystore(self) -> KeystoreConfig:
        """Get keystore configuration."""
        return self._keystore

    @property
    def streams(self) -> StreamConfig:
        """Get stream configuration."""
        return self._streams

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return self._logging

    @property
    def config_hash(self) -> str:
        return self._config_hash

    @classmethod
    def load(cls, env_prefix: str = "CRYPTOVAULT") -> VaultSettings:
        """
        Load configuration with environment variable overrides.

        Environment variables are prefixed with CRYPTOVAULT_ and use
        double underscores for nested values.

        Examples:
            CRYPTOVAULT_KEYSTORE__KDF=pbkdf2
            CRYPTOVAULT_KEYSTORE__PBKDF2_ITERATIONS=800000
            CRYPTOVAULT_STREAMS__CHUNK_SIZE=131072
            CRYPTOVAULT_LOGGING__LEVEL=DEBUG

        Args:
            env_prefix: Prefix for environment variables (default: CRYPTOVAULT)

        Returns:
            Configured VaultSettings instance
        """
        env_overrides = cls._parse_env_overrides(env_prefix)

        keystore_kwargs: dict[str, Any] = {}
        if "keystore.kdf" in env_overrides:
            keystore_kwargs["kdf"] = env_overrides["keystore.kdf"].lower()
        for name in (
            "argon2_time_cost",
            "argon2_memory_cost",
            "argon2_parallelism",
            "pbkdf2_iterations",
            "salt_length",
        ):
            if f"keystore.{name}" in env_overrides:
                keystore_kwargs[name] = int(env_overrides[f"keystore.{name}"])

        streams_kwargs: dict[str, Any] = {}
        if "streams.chunk_size" in env_overrides:
            streams_kwargs["chunk_size"] = int(env_overrides["streams.chunk_size"])

        logging_kwargs: dict[str, Any] = {}
        if "logging.level" in env_overrides:
            logging_kwargs["level"] = env_overrides["logging.level"].upper()
        if "logging.enable_console" in env_overrides:
            logging_kwargs["enable_console"] = env_overrides["logging.enable_console"].lower() == "true"
        if "logging.enable_file" in env_overrides:
            logging_kwargs["enable_file"] = env_overrides["logging.enable_file"].lower() == "true"

        return cls(
            keystore=KeystoreConfig(**keystore_kwargs) if keystore_kwargs else None,
            streams=StreamConfig(**streams_kwargs) if streams_kwargs else None,
            logging=LoggingConfig(**logging_kwargs) if logging_kwargs else None,
        )

    @staticmethod
    def _parse_env_overrides(prefix: str) -> dict[str, str]:
        """Parse environment variables with the given prefix."""
        overrides: dict[str, str] = {}
        prefix_upper = f"{prefix.upper()}_"

        for key, value in os.environ.items():
            if key.startswith(prefix_upper):
                # CRYPTOVAULT_SECTION__KEY -> section.key
                config_key = key[len(prefix_upper):].lower().replace("__", ".")

                if _is_sensitive_key(config_key):
                    continue

                overrides[config_key] = value

        return overrides

    @classmethod
    def get_instance(cls) -> VaultSettings:
        """Get or create the process-wide settings instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance. Use only for testing."""
        cls._instance = None

    def __repr__(self) -> str:
        return f"VaultSettings(hash={self._config_hash}, kdf={self._keystore.kdf})"

    def __setattr__(self, name: str, value: Any) -> None:
        """Prevent modification after initialization."""
        if hasattr(self, "_frozen") and self._frozen:
            raise AttributeError("VaultSettings is immutable after initialization")
        super().__setattr__(name, value)
