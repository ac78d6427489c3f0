"""
Legacy-File Migrator.

Before the relational store existed, configuration lived in one flat file
per key inside the storage directory, and the channel-id map lived in an
encoded container in the protocol data directory. Migration copies those
records into the store once. A missing file is not an error.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from lnstore.core.codec import CHANNEL_IDS_FNAME, ChannelIdsMap, CodecError
from lnstore.core.errors import IOFailure, StoreError
from lnstore.core.storage.database_manager import DatabaseManager
from lnstore.utils.logger import get_logger

logger = get_logger("storage.migration")

# Legacy file name -> config key. The files are kept after migration:
# they become the mirror files written by ConfigMirror.
LEGACY_CONFIG_FILES: Tuple[Tuple[str, str], ...] = (
    ("indexer_url", "indexer_url"),
    ("proxy_endpoint", "proxy_endpoint"),
    ("bitcoin_network", "bitcoin_network"),
    ("wallet_fingerprint", "wallet_fingerprint"),
    ("wallet_account_xpub_colored", "wallet_account_xpub_colored"),
    ("wallet_account_xpub_vanilla", "wallet_account_xpub_vanilla"),
    ("wallet_master_fingerprint", "wallet_master_fingerprint"),
)


@dataclass
class MigrationReport:
    """What a migration run did."""

    migrated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    channel_ids_migrated: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed


class LegacyMigrator:
    """
    Runs legacy-file migration against a DatabaseManager.

    Args:
        db: Open store
        storage_dir: Directory holding the legacy config files
        ldk_data_dir: Directory holding the legacy channel_ids container
    """

    def __init__(self, db: DatabaseManager, storage_dir: Path, ldk_data_dir: Path):
        self.db = db
        self.storage_dir = Path(storage_dir)
        self.ldk_data_dir = Path(ldk_data_dir)
        self._report = None

    async def run(self) -> MigrationReport:
        """
        Migrate every legacy record. A second call on the same migrator
        returns the first report without touching files or the store.

        Raises:
            IOFailure: the storage directory itself is not accessible
        """
        if self._report is not None:
            return self._report

        if not self.storage_dir.is_dir():
            raise IOFailure(f"Storage directory not accessible: {self.storage_dir}", self.storage_dir)

        report = MigrationReport()
        for fname, key in LEGACY_CONFIG_FILES:
            try:
                if await self.migrate_config_file(fname, key):
                    report.migrated.append(key)
                else:
                    report.skipped.append(key)
            except StoreError as e:
                logger.error(f"Failed to migrate {fname}: {e}")
                report.failed[key] = str(e)

        try:
            report.channel_ids_migrated = await self.migrate_channel_ids()
        except StoreError as e:
            logger.error(f"Failed to migrate {CHANNEL_IDS_FNAME}: {e}")
            report.failed[CHANNEL_IDS_FNAME] = str(e)

        self._report = report
        return report

    async def migrate_config_file(self, fname: str, key: str) -> bool:
        """
        Copy one legacy config file into the store.

        Returns:
            True if a file was found and migrated, False if absent
        """
        path = self.storage_dir / fname

        if not path.exists():
            logger.info(f"No existing {fname} file found, skipping migration")
            return False

        logger.info(f"Found existing {fname} file, migrating to database")
        try:
            value = path.read_text().strip()
        except (OSError, UnicodeDecodeError) as e:
            raise IOFailure(f"Failed to read {path}: {e}", path) from e

        await self.db.save_config(key, value)
        logger.info(f"Successfully migrated {fname} from file to database")
        return True

    async def migrate_channel_ids(self) -> int:
        """
        Move the legacy channel_ids container into the store.

        The file is removed only after every mapping has been saved, so an
        interrupted run is simply repeated on the next start. A container
        that does not decode is left in place.

        Returns:
            Number of mappings migrated
        """
        path = self.ldk_data_dir / CHANNEL_IDS_FNAME

        if not path.exists():
            logger.info(f"No existing {CHANNEL_IDS_FNAME} file found, skipping migration")
            return 0

        logger.info(f"Found existing {CHANNEL_IDS_FNAME} file, migrating to database")
        try:
            channel_ids_map = ChannelIdsMap.decode(path.read_bytes())
        except OSError as e:
            raise IOFailure(f"Failed to read {path}: {e}", path) from e
        except CodecError as e:
            raise IOFailure(f"Unreadable {CHANNEL_IDS_FNAME} file, left in place: {e}", path) from e

        for temp_id, chan_id in channel_ids_map.channel_ids.items():
            await self.db.save_channel_id(temp_id, chan_id)

        count = len(channel_ids_map.channel_ids)
        logger.info(f"Successfully migrated {count} channel ID mappings from file to database")

        try:
            path.unlink()
            logger.info(f"Removed old {CHANNEL_IDS_FNAME} file after migration")
        except OSError as e:
            logger.warning(f"Failed to remove old {CHANNEL_IDS_FNAME} file: {e}")

        return count
