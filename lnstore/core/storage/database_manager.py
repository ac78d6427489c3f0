import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Optional, Set, Union

from sqlalchemy import delete, event, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool

from lnstore.core.config import StoreConfig
from lnstore.core.errors import DatabaseError, InvalidPeerInfoError, NotInitializedError
from lnstore.core.storage.config_cache import ConfigCache
from lnstore.core.storage.entities import (
    Base,
    ChannelIds,
    ChannelPeerData,
    Mnemonic,
    RevokedToken,
    RgbConfig,
)
from lnstore.crypto import hex_str
from lnstore.utils.logger import get_logger
from lnstore.utils.validation import (
    CHANNEL_ID_SIZE,
    check_channel_id_row,
    check_public_key,
    check_revocation_id,
    check_socket_addr,
)

logger = get_logger("storage.database")


def _normalize_pubkey(pubkey: Union[str, bytes]) -> str:
    if isinstance(pubkey, (bytes, bytearray)):
        pubkey = hex_str(bytes(pubkey))
    check = check_public_key(pubkey)
    if not check.ok:
        raise InvalidPeerInfoError(check.problem)
    return check.value


def _channel_id_hex(channel_id: bytes, name: str) -> str:
    if len(channel_id) != CHANNEL_ID_SIZE:
        raise ValueError(f"{name} must be {CHANNEL_ID_SIZE} bytes, got {len(channel_id)}")
    return hex_str(channel_id)


class DatabaseManager:
    """
    ORM-backed store for the node's records.

    Record kinds:
    1. Mnemonic: singleton sealed seed (delete-all then insert).
    2. Channel peers: pubkey -> last known address (upsert).
    3. RGB config: key -> value (upsert, write-through cached).
    4. Channel ids: temporary -> final channel id (upsert).
    5. Revoked tokens: insert-if-absent set.

    Every engine failure is raised as DatabaseError. Every write is
    committed before the call returns.
    """

    def __init__(self, engine: AsyncEngine, db_path: Path):
        self.db_path = db_path
        self._engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
        self.config_cache = ConfigCache()
        self._config_write_lock = asyncio.Lock()

    @classmethod
    async def open(cls, db_path: Path, config: Optional[StoreConfig] = None) -> "DatabaseManager":
        """
        Connect to (and create if absent) the database file, then create
        all tables that do not exist yet.

        Raises:
            DatabaseError: connection or schema creation failed
        """
        config = config or StoreConfig()
        db_path = Path(db_path)
        logger.info(f"Initializing database at path: {db_path}")

        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)

        engine = create_async_engine(
            f"sqlite+aiosqlite:///{db_path}",
            poolclass=AsyncAdaptedQueuePool,
            pool_size=config.max_connections,
            max_overflow=config.max_overflow,
            pool_timeout=config.connect_timeout,
            connect_args={"timeout": config.connect_timeout},
        )

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, _record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=FULL;")
            cursor.close()

        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            await engine.dispose()
            raise DatabaseError(str(e)) from e
        logger.info("Database schema ready")

        return cls(engine, db_path)

    async def close(self):
        await self.config_cache.clear()
        await self._engine.dispose()

    async def __aenter__(self) -> "DatabaseManager":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """One autonomous unit of work, committed on successful exit."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            raise DatabaseError(str(e)) from e

    # =========================================================================
    # Mnemonic
    # =========================================================================

    async def save_mnemonic(self, encrypted_mnemonic: str):
        """Replace the stored seed; exactly one row remains afterwards."""
        logger.info("Saving mnemonic to database")
        async with self._session() as session:
            await session.execute(delete(Mnemonic))
            session.add(Mnemonic(encrypted_mnemonic=encrypted_mnemonic))
        logger.info("Mnemonic saved successfully")

    async def load_mnemonic(self) -> str:
        """
        Raises:
            NotInitializedError: no mnemonic saved yet
        """
        logger.info("Loading mnemonic from database")
        async with self._session() as session:
            row = (await session.execute(select(Mnemonic).limit(1))).scalar_one_or_none()
        if row is None:
            raise NotInitializedError()
        return row.encrypted_mnemonic

    async def check_already_initialized(self) -> bool:
        async with self._session() as session:
            row = (await session.execute(select(Mnemonic.id).limit(1))).first()
        initialized = row is not None
        logger.info(f"Already initialized: {initialized}")
        return initialized

    # =========================================================================
    # Channel Peers
    # =========================================================================

    async def save_channel_peer(self, pubkey: Union[str, bytes], address: str):
        """Create or update the address of a peer."""
        public_key = _normalize_pubkey(pubkey)
        addr_check = check_socket_addr(address)
        if not addr_check.ok:
            raise InvalidPeerInfoError(addr_check.problem)

        logger.info(f"Saving channel peer to database: {public_key}@{address}")
        async with self._session() as session:
            existing = (
                await session.execute(
                    select(ChannelPeerData).where(ChannelPeerData.public_key == public_key)
                )
            ).scalar_one_or_none()
            if existing is not None:
                existing.socket_addr = address
            else:
                session.add(ChannelPeerData(public_key=public_key, socket_addr=address))

    async def load_channel_peers(self) -> Dict[str, str]:
        """
        Load pubkey -> address for all peers.

        Raises:
            InvalidPeerInfoError: a row holds an unparsable key or address
        """
        async with self._session() as session:
            rows = (await session.execute(select(ChannelPeerData))).scalars().all()

        peers = {}
        for row in rows:
            key_check = check_public_key(row.public_key)
            if not key_check.ok:
                raise InvalidPeerInfoError(f"Invalid public key: {key_check.problem}")
            addr_check = check_socket_addr(row.socket_addr)
            if not addr_check.ok:
                raise InvalidPeerInfoError(addr_check.problem)
            peers[key_check.value] = addr_check.value

        logger.debug(f"Loaded {len(peers)} channel peers from database")
        return peers

    async def delete_channel_peer(self, pubkey: Union[str, bytes]) -> bool:
        """Returns True if a row was removed."""
        public_key = _normalize_pubkey(pubkey)
        logger.info(f"Deleting channel peer from database: {public_key}")
        async with self._session() as session:
            result = await session.execute(
                delete(ChannelPeerData).where(ChannelPeerData.public_key == public_key)
            )
        if result.rowcount:
            logger.info("Channel peer deleted successfully")
            return True
        logger.warning(f"Channel peer not found for deletion: {public_key}")
        return False

    # =========================================================================
    # RGB Config (write-through cached)
    # =========================================================================

    async def save_config(self, key: str, value: str):
        """
        Upsert the entry, then refresh the cache once the commit succeeded.

        Config writes are serialized so the cache ends with the value of the
        last commit.
        """
        logger.info(f"Saving RGB config to database: {key} = {value}")
        async with self._config_write_lock:
            async with self._session() as session:
                existing = (
                    await session.execute(select(RgbConfig).where(RgbConfig.key == key))
                ).scalar_one_or_none()
                if existing is not None:
                    existing.value = value
                else:
                    session.add(RgbConfig(key=key, value=value))

            await self.config_cache.store(key, value)

    async def load_config(self, key: str) -> Optional[str]:
        """
        Cached lookup; a missing key is cached as None too.

        A miss never replaces an entry that a concurrent save_config stored
        while the database was being read.
        """
        hit, value = await self.config_cache.lookup(key)
        if hit:
            return value

        logger.debug(f"Loading RGB config from database: {key}")
        value = await self._fetch_config(key)
        return await self.config_cache.store_if_absent(key, value)

    async def _fetch_config(self, key: str) -> Optional[str]:
        async with self._session() as session:
            row = (
                await session.execute(select(RgbConfig.value).where(RgbConfig.key == key))
            ).first()
        return row[0] if row else None

    # =========================================================================
    # Channel IDs
    # =========================================================================

    async def save_channel_id(self, temporary_channel_id: bytes, channel_id: bytes):
        temp_id_hex = _channel_id_hex(temporary_channel_id, "temporary_channel_id")
        chan_id_hex = _channel_id_hex(channel_id, "channel_id")
        logger.debug(f"Saving channel ID mapping to database: {temp_id_hex} -> {chan_id_hex}")

        async with self._session() as session:
            existing = (
                await session.execute(
                    select(ChannelIds).where(ChannelIds.temporary_channel_id == temp_id_hex)
                )
            ).scalar_one_or_none()
            if existing is not None:
                existing.channel_id = chan_id_hex
            else:
                session.add(ChannelIds(temporary_channel_id=temp_id_hex, channel_id=chan_id_hex))

    async def load_channel_ids(self) -> Dict[bytes, bytes]:
        """Load all well-formed mappings; malformed rows are skipped."""
        async with self._session() as session:
            rows = (await session.execute(select(ChannelIds))).scalars().all()

        channel_ids = {}
        for row in rows:
            check = check_channel_id_row(row.temporary_channel_id, row.channel_id)
            if not check.ok:
                logger.warning(check.problem)
                continue
            temp_id, chan_id = check.value
            channel_ids[temp_id] = chan_id

        logger.debug(f"Loaded {len(channel_ids)} channel ID mappings from database")
        return channel_ids

    async def delete_channel_id_by_channel_id(self, channel_id: bytes) -> int:
        """Remove every mapping that resolves to channel_id."""
        chan_id_hex = _channel_id_hex(channel_id, "channel_id")
        logger.debug(f"Deleting channel ID mapping by channel_id: {chan_id_hex}")
        async with self._session() as session:
            result = await session.execute(
                delete(ChannelIds).where(ChannelIds.channel_id == chan_id_hex)
            )
        if not result.rowcount:
            logger.debug("No channel ID mapping found for deletion")
        return result.rowcount or 0

    # =========================================================================
    # Revoked Tokens
    # =========================================================================

    async def save_revoked_token(self, revocation_id_hex: str):
        """
        Store a revocation id; saving one already present is a no-op.

        The id is stored as lowercase hex of its decoded bytes, so "AB" and
        "ab" are the same token.

        Raises:
            ValueError: revocation_id_hex is empty or not hex
        """
        check = check_revocation_id(revocation_id_hex)
        if not check.ok:
            raise ValueError(check.problem)
        revocation_id = hex_str(check.value)

        logger.debug(f"Saving revoked token to database: {revocation_id}")
        async with self._session() as session:
            existing = (
                await session.execute(
                    select(RevokedToken.id).where(RevokedToken.revocation_id == revocation_id)
                )
            ).first()
            if existing is not None:
                logger.debug("Revocation ID already exists in database, skipping")
                return
            session.add(RevokedToken(revocation_id=revocation_id))

    async def load_revoked_tokens(self) -> Set[bytes]:
        async with self._session() as session:
            rows = (await session.execute(select(RevokedToken.revocation_id))).scalars().all()

        revoked = set()
        for revocation_id in rows:
            check = check_revocation_id(revocation_id)
            if not check.ok:
                logger.warning(check.problem)
                continue
            revoked.add(check.value)

        logger.info(f"Loaded {len(revoked)} revoked tokens from database")
        return revoked
