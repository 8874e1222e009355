"""Shared fixtures: cheap KDF settings and a fresh vault per test."""

from pathlib import Path

import pytest

from cryptovault.core.config import KeystoreConfig, StreamConfig, VaultSettings
from cryptovault.core.keystore import FileKeystore
from cryptovault.core.vault import CryptoVault


@pytest.fixture(autouse=True)
def reset_settings():
    """Keep the process-wide settings from leaking between tests."""
    VaultSettings.reset_instance()
    yield
    VaultSettings.reset_instance()


@pytest.fixture
def fast_keystore_config() -> KeystoreConfig:
    """Argon2id parameters low enough for unit tests."""
    return KeystoreConfig(
        argon2_time_cost=1,
        argon2_memory_cost=1024,
        argon2_parallelism=1,
    )


@pytest.fixture
def settings(fast_keystore_config: KeystoreConfig) -> VaultSettings:
    return VaultSettings(
        keystore=fast_keystore_config,
        streams=StreamConfig(chunk_size=7),
    )


@pytest.fixture
def keystore(fast_keystore_config: KeystoreConfig) -> FileKeystore:
    return FileKeystore(fast_keystore_config)


@pytest.fixture
def vault(tmp_path: Path, settings: VaultSettings) -> CryptoVault:
    """An uninitialized vault at keystore.jks / data.enc."""
    return CryptoVault(
        data_path=tmp_path / "data.enc",
        keystore_path=tmp_path / "keystore.jks",
        passphrase="secret",
        settings=settings,
    )
