"""
File Mirror Sync.

The protocol engine reads some configuration straight from files in the
storage directory. The database is the source of truth; these files are a
read-only copy regenerated on every sync and never read back.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from lnstore.core.errors import IOFailure
from lnstore.core.storage.database_manager import DatabaseManager
from lnstore.utils.logger import get_logger

logger = get_logger("storage.mirror")

MIRRORED_KEYS: Tuple[str, ...] = (
    "indexer_url",
    "proxy_endpoint",
    "bitcoin_network",
    "wallet_fingerprint",
    "wallet_account_xpub_colored",
    "wallet_account_xpub_vanilla",
    "wallet_master_fingerprint",
)


@dataclass
class SyncReport:
    written: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)


class ConfigMirror:
    """
    Writes config values from the store to <storage_dir>/<key>.

    Keys without a stored value are left alone: an existing file is not
    deleted and no empty file is created.
    """

    def __init__(self, db: DatabaseManager, storage_dir: Path, keys: Tuple[str, ...] = MIRRORED_KEYS):
        self.db = db
        self.storage_dir = Path(storage_dir)
        self.keys = keys

    def path_for(self, key: str) -> Path:
        return self.storage_dir / key

    async def sync(self) -> SyncReport:
        """
        Mirror every key. Failure to write one file does not stop the rest.

        Raises:
            IOFailure: after all keys were attempted, if any write failed
        """
        report = SyncReport()

        for key in self.keys:
            value = await self.db.load_config(key)
            if value is None:
                continue

            path = self.path_for(key)
            try:
                path.write_text(value)
            except OSError as e:
                logger.error(f"Failed to sync {key} to file: {e}")
                report.failed[key] = str(e)
                continue
            report.written.append(key)
            logger.info(f"Synced {key} to file")

        if report.failed:
            raise IOFailure(
                f"Failed to sync config to files: {', '.join(sorted(report.failed))}",
                self.storage_dir,
            )
        return report
