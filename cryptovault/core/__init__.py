"""
Core module - Configuration, logging, errors, keystore and vault.
"""

from cryptovault.core.config import VaultSettings
from cryptovault.core.logging import get_secure_logger, SecureLogFilter

__all__ = ["VaultSettings", "get_secure_logger", "SecureLogFilter"]
