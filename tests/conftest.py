import sqlite3
from pathlib import Path

import pytest

from lnstore.core.config import StoreConfig
from lnstore.core.storage import DatabaseManager
from lnstore.crypto import SecretVault

VALID_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
OTHER_MNEMONIC = (
    "legal winner thank year wave sausage worth useful legal winner thank yellow"
)

PUBKEY_A = "02" + "11" * 32
PUBKEY_B = "03" + "22" * 32


@pytest.fixture
def fast_vault():
    """Vault with a cheap KDF so tests stay quick."""
    return SecretVault(iterations=1000)


@pytest.fixture
def store_config(tmp_path):
    config = StoreConfig(storage_dir=tmp_path / "storage", pbkdf2_iterations=1000)
    config.ensure_dirs()
    return config


@pytest.fixture
async def db(tmp_path):
    manager = await DatabaseManager.open(tmp_path / "test.db")
    yield manager
    await manager.close()


def raw_rows(db_path: Path, sql: str, params=()):
    """Read rows straight from the database file, bypassing the ORM."""
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute(sql, params).fetchall()
    finally:
        conn.close()


def raw_execute(db_path: Path, sql: str, params=()):
    conn = sqlite3.connect(db_path)
    try:
        with conn:
            conn.execute(sql, params)
    finally:
        conn.close()
