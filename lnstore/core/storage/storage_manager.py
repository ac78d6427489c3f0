from pathlib import Path
from typing import Dict, Optional, Set, Union

from lnstore.core.codec import (
    CHANNEL_IDS_FNAME,
    INBOUND_PAYMENTS_FNAME,
    MAKER_SWAPS_FNAME,
    NETWORK_GRAPH_FNAME,
    OUTBOUND_PAYMENTS_FNAME,
    OUTPUT_SPENDER_TXES_FNAME,
    SCORER_FNAME,
    TAKER_SWAPS_FNAME,
    ChannelIdsMap,
    OpaqueBlob,
    OutputSpenderTxes,
    PaymentInfoStorage,
    SwapMap,
    read_channel_ids_info,
    read_inbound_payment_info,
    read_network,
    read_outbound_payment_info,
    read_output_spender_txes,
    read_scorer,
    read_swaps_info,
)
from lnstore.core.config import StoreConfig
from lnstore.core.storage.database_manager import DatabaseManager
from lnstore.core.storage.migration import LegacyMigrator, MigrationReport
from lnstore.core.storage.mirror import ConfigMirror, SyncReport
from lnstore.core.storage.secret_store import SecretStore
from lnstore.crypto import SecretVault
from lnstore.utils.logger import get_logger

logger = get_logger("storage.manager")


class StorageManager:
    """
    Manages persistent storage for the node.

    Startup order:
    1. Open the database (fatal on failure) and the secret store
    2. Migrate legacy flat files into the database
    3. Mirror config back to files for the protocol engine

    Afterwards callers use `db` directly or the peer helpers below.
    """

    def __init__(
        self,
        config: StoreConfig,
        db: DatabaseManager,
        secrets: SecretStore,
    ):
        self.config = config
        self.db = db
        self.secrets = secrets
        self.migrator = LegacyMigrator(db, config.storage_dir, config.protocol_data_dir)
        self.mirror = ConfigMirror(db, config.storage_dir)
        self.last_migration: Optional[MigrationReport] = None
        self.last_sync: Optional[SyncReport] = None

    @classmethod
    async def open(cls, config: StoreConfig) -> "StorageManager":
        """Open both stores without running migration."""
        config.ensure_dirs()
        db = await DatabaseManager.open(config.db_path, config)
        try:
            secrets = SecretStore(config.secret_db_path, SecretVault(config.pbkdf2_iterations))
        except Exception:
            await db.close()
            raise
        logger.info(f"StorageManager initialized at {config.storage_dir}")
        return cls(config, db, secrets)

    @classmethod
    async def start(cls, config: StoreConfig) -> "StorageManager":
        """Open, migrate legacy files, then sync mirror files."""
        manager = await cls.open(config)
        try:
            await manager.migrate()
            await manager.sync_config_to_files()
        except Exception:
            await manager.close()
            raise
        return manager

    async def migrate(self) -> MigrationReport:
        report = await self.migrator.run()
        if not report.ok:
            for key, problem in report.failed.items():
                logger.warning(f"Migration of {key} incomplete: {problem}")
        self.last_migration = report
        return report

    async def sync_config_to_files(self) -> SyncReport:
        self.last_sync = await self.mirror.sync()
        return self.last_sync

    async def close(self):
        await self.db.close()
        self.secrets.close()

    async def __aenter__(self) -> "StorageManager":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    # =========================================================================
    # Channel Peers
    # =========================================================================

    async def persist_channel_peer(self, pubkey: Union[str, bytes], address: str):
        await self.db.save_channel_peer(pubkey, address)

    async def delete_channel_peer(self, pubkey: Union[str, bytes]) -> bool:
        return await self.db.delete_channel_peer(pubkey)

    async def read_channel_peer_data(self) -> Dict[str, str]:
        return await self.db.load_channel_peers()

    async def revoked_tokens(self) -> Set[bytes]:
        return await self.db.load_revoked_tokens()

    # =========================================================================
    # Protocol Files (read-or-default)
    # =========================================================================

    def _protocol_path(self, fname: str) -> Path:
        return self.config.protocol_data_dir / fname

    def read_network_graph(self) -> OpaqueBlob:
        return read_network(self._protocol_path(NETWORK_GRAPH_FNAME))

    def read_scorer(self) -> OpaqueBlob:
        return read_scorer(self._protocol_path(SCORER_FNAME))

    def read_inbound_payments(self) -> PaymentInfoStorage:
        return read_inbound_payment_info(self._protocol_path(INBOUND_PAYMENTS_FNAME))

    def read_outbound_payments(self) -> PaymentInfoStorage:
        return read_outbound_payment_info(self._protocol_path(OUTBOUND_PAYMENTS_FNAME))

    def read_output_spender_txes(self) -> OutputSpenderTxes:
        return read_output_spender_txes(self._protocol_path(OUTPUT_SPENDER_TXES_FNAME))

    def read_maker_swaps(self) -> SwapMap:
        return read_swaps_info(self._protocol_path(MAKER_SWAPS_FNAME))

    def read_taker_swaps(self) -> SwapMap:
        return read_swaps_info(self._protocol_path(TAKER_SWAPS_FNAME))

    def read_channel_ids_info(self) -> ChannelIdsMap:
        """Channel-id container still on disk (empty once migrated)."""
        return read_channel_ids_info(self._protocol_path(CHANNEL_IDS_FNAME))
