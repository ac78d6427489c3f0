"""
Persistent Storage Module.

Provides:
- ORM-backed store with a write-through config cache (DatabaseManager)
- Lock-guarded sealed seed store (SecretStore)
- One-time legacy flat-file migration (LegacyMigrator)
- Config mirror files for file-only readers (ConfigMirror)
"""

from lnstore.core.storage.config_cache import ConfigCache
from lnstore.core.storage.database_manager import DatabaseManager
from lnstore.core.storage.migration import LegacyMigrator, MigrationReport
from lnstore.core.storage.mirror import ConfigMirror, SyncReport
from lnstore.core.storage.secret_store import SecretStore
from lnstore.core.storage.storage_manager import StorageManager

__all__ = [
    "ConfigCache",
    "ConfigMirror",
    "DatabaseManager",
    "LegacyMigrator",
    "MigrationReport",
    "SecretStore",
    "StorageManager",
    "SyncReport",
]
