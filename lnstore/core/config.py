"""
Store configuration parameters for lnstore.

Defines paths, connection pool limits and key-derivation cost.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ENV_PREFIX = "LNSTORE_"


class StoreConfig(BaseModel):
    """Persistence configuration parameters"""

    # Paths
    storage_dir: Path = Path("data")
    ldk_data_dir: Optional[Path] = None  # Defaults to <storage_dir>/.ldk
    db_name: str = "lnstore.db"  # ORM-backed store
    secret_db_name: str = "rln_db"  # Lock-guarded encrypted secret store
    log_dir: Path = Path("logs")

    # Connection pool
    max_connections: int = Field(default=10, ge=1)
    max_overflow: int = Field(default=0, ge=0)
    connect_timeout: float = Field(default=30.0, gt=0)

    # Secret vault
    pbkdf2_iterations: int = Field(default=100_000, ge=1)

    @property
    def db_path(self) -> Path:
        return self.storage_dir / self.db_name

    @property
    def secret_db_path(self) -> Path:
        return self.storage_dir / self.secret_db_name

    @property
    def protocol_data_dir(self) -> Path:
        return self.ldk_data_dir if self.ldk_data_dir else self.storage_dir / ".ldk"

    def ensure_dirs(self):
        """Create the storage directories if missing"""
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self.protocol_data_dir.mkdir(parents=True, exist_ok=True)


def load_config(env_file: Optional[str] = None, **overrides) -> StoreConfig:
    """
    Load configuration from LNSTORE_* environment variables.

    Args:
        env_file: Optional .env file loaded before reading the environment
        **overrides: Explicit values that win over the environment

    Returns:
        StoreConfig instance
    """
    if env_file:
        load_dotenv(env_file, override=False)

    values = {}
    for name in StoreConfig.model_fields:
        raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None:
            values[name] = raw
    values.update({k: v for k, v in overrides.items() if v is not None})

    return StoreConfig(**values)
