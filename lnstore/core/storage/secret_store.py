import sqlite3
import threading
from pathlib import Path
from typing import Optional

from lnstore.core.errors import (
    AlreadyInitializedError,
    DatabaseError,
    NotInitializedError,
)
from lnstore.crypto import DEFAULT_PBKDF2_ITERATIONS, SecretVault
from lnstore.utils.logger import get_logger

logger = get_logger("storage.secret")

RLN_DB_NAME = "rln_db"
MNEMONIC_FNAME = "mnemonic"


class SecretStore:
    """
    SQLite backend for the sealed wallet seed.

    A single connection guarded by a plain lock: the seed is read at
    unlock and written at init/restore, so one in-flight operation at a
    time is enough. The mnemonic lives in row id=1; saving again updates
    that row in place.
    """

    def __init__(self, db_path: Path, vault: Optional[SecretVault] = None):
        self.db_path = db_path
        self.vault = vault or SecretVault(DEFAULT_PBKDF2_ITERATIONS)
        self._lock = threading.Lock()

        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self._conn = sqlite3.connect(db_path, timeout=30.0, check_same_thread=False)
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to open database: {e}") from e
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    @classmethod
    def init_db(cls, storage_dir: Path, vault: Optional[SecretVault] = None) -> "SecretStore":
        """Open <storage_dir>/rln_db."""
        return cls(Path(storage_dir) / RLN_DB_NAME, vault)

    def _init_schema(self):
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute("""
                        CREATE TABLE IF NOT EXISTS mnemonic (
                            id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
                            encrypted_mnemonic TEXT NOT NULL
                        )
                    """)
            except sqlite3.Error as e:
                raise DatabaseError(f"Failed to create mnemonic table: {e}") from e

    def close(self):
        with self._lock:
            self._conn.close()

    # =========================================================================
    # Initialization State
    # =========================================================================

    def _is_initialized(self) -> bool:
        cursor = self._conn.execute("SELECT id FROM mnemonic WHERE id = 1")
        return cursor.fetchone() is not None

    def is_initialized(self) -> bool:
        with self._lock:
            try:
                return self._is_initialized()
            except sqlite3.Error as e:
                raise DatabaseError(str(e)) from e

    def check_already_initialized(self):
        """
        Raises:
            AlreadyInitializedError: a mnemonic is already stored
        """
        if self.is_initialized():
            raise AlreadyInitializedError()

    # =========================================================================
    # Mnemonic
    # =========================================================================

    def save_encrypted_mnemonic(self, password: str, mnemonic: str):
        """Validate, seal and store the seed phrase."""
        encrypted_mnemonic = self.vault.seal_mnemonic(password, mnemonic)

        with self._lock:
            try:
                with self._conn:
                    if self._is_initialized():
                        self._conn.execute(
                            "UPDATE mnemonic SET encrypted_mnemonic = ? WHERE id = 1",
                            (encrypted_mnemonic,),
                        )
                    else:
                        self._conn.execute(
                            "INSERT INTO mnemonic (encrypted_mnemonic) VALUES (?)",
                            (encrypted_mnemonic,),
                        )
                        logger.info("Created a new wallet")
            except sqlite3.Error as e:
                raise DatabaseError(f"Failed to save mnemonic: {e}") from e

    def get_mnemonic(self, password: str) -> str:
        """
        Unseal the stored seed phrase.

        Raises:
            NotInitializedError: nothing stored yet
            WrongPasswordError: password does not match
        """
        with self._lock:
            try:
                row = self._conn.execute(
                    "SELECT encrypted_mnemonic FROM mnemonic WHERE id = 1"
                ).fetchone()
            except sqlite3.Error as e:
                raise DatabaseError(str(e)) from e

        if row is None:
            raise NotInitializedError()
        return self.vault.open_mnemonic(password, row["encrypted_mnemonic"])

    def migrate_mnemonic_from_file(self, storage_dir: Path, password: str) -> str:
        """
        Move a legacy file-sealed mnemonic into the database.

        Used when restoring a backup taken before the seed moved into the
        database. The legacy file is removed on success.

        Raises:
            NotInitializedError: no legacy mnemonic file
            WrongPasswordError: password does not match
        """
        mnemonic_path = Path(storage_dir) / MNEMONIC_FNAME

        try:
            encrypted_mnemonic = mnemonic_path.read_text()
        except OSError as e:
            raise NotInitializedError() from e

        mnemonic = self.vault.open_mnemonic(password, encrypted_mnemonic)
        self.save_encrypted_mnemonic(password, mnemonic)
        logger.info("Migrated mnemonic from file to database")

        try:
            mnemonic_path.unlink()
        except OSError as e:
            logger.warning(f"Failed to remove old mnemonic file: {e}")

        return mnemonic
