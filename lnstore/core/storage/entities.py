"""
ORM entities for the relational store.

One table per record kind. Every table has an auto-increment surrogate
id; business columns are UTF-8 strings.
"""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Mnemonic(Base):
    """Singleton row holding the sealed wallet seed."""

    __tablename__ = "mnemonic"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    encrypted_mnemonic: Mapped[str] = mapped_column(String, nullable=False)


class ChannelPeerData(Base):
    """Last known address of a channel peer, one row per node identity."""

    __tablename__ = "channel_peer_data"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    public_key: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    socket_addr: Mapped[str] = mapped_column(String, nullable=False)


class RgbConfig(Base):
    """Free-form key/value configuration."""

    __tablename__ = "rgb_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)


class ChannelIds(Base):
    """Temporary channel id -> final channel id, both hex-encoded."""

    __tablename__ = "channel_ids"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    temporary_channel_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    channel_id: Mapped[str] = mapped_column(String, nullable=False)


class RevokedToken(Base):
    """Revocation identifier of a revoked access token (hex)."""

    __tablename__ = "revoked_token"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    revocation_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
