"""
Encoded-Record Codec - read-or-default access to protocol state files.

The protocol engine keeps its own state (network graph, scorer, payment
bookkeeping, swaps, channel-id map) in files next to the store. Every
reader here follows one policy: if the file opens and decodes, return the
decoded value; on any failure return the type's empty default, so the
engine can always start, even from a wiped data directory.

Records implement the Decodable interface:

    decode(data: bytes) -> T     (classmethod, raises on bad input)
    default() -> T               (classmethod, never raises)
    encode() -> bytes
"""

import os
import struct
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Literal, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel, Field

from lnstore.utils.logger import get_logger

logger = get_logger("codec")

T = TypeVar("T", bound="Decodable")

# =============================================================================
# File Names
# =============================================================================

NETWORK_GRAPH_FNAME = "network_graph"
SCORER_FNAME = "scorer"
INBOUND_PAYMENTS_FNAME = "inbound_payments"
OUTBOUND_PAYMENTS_FNAME = "outbound_payments"
OUTPUT_SPENDER_TXES_FNAME = "output_spender_txes"
CHANNEL_IDS_FNAME = "channel_ids"
MAKER_SWAPS_FNAME = "maker_swaps"
TAKER_SWAPS_FNAME = "taker_swaps"


class Decodable(Protocol):
    """Capability interface for read-or-default records."""

    @classmethod
    def decode(cls: Type[T], data: bytes) -> T:
        ...

    @classmethod
    def default(cls: Type[T]) -> T:
        ...

    def encode(self) -> bytes:
        ...


class CodecError(ValueError):
    """Raised by decode() on malformed input."""


# =============================================================================
# Read / Write
# =============================================================================


def read_or_default(path: Path, record_type: Type[T]) -> T:
    """
    Decode the record stored at path, or return record_type.default().

    Missing files, truncated or corrupt content and version mismatches all
    fall back to the default.
    """
    try:
        data = Path(path).read_bytes()
    except OSError:
        return record_type.default()

    try:
        return record_type.decode(data)
    except Exception as e:  # any decode failure means "start fresh"
        logger.debug(f"Falling back to empty {record_type.__name__} for {path}: {e}")
        return record_type.default()


def write_record(path: Path, record: Decodable):
    """Write record atomically (temp file in the same dir, then replace)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(record.encode())
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


# =============================================================================
# Channel IDs
# =============================================================================

CHANNEL_IDS_MAGIC = b"CIDM"
CHANNEL_IDS_VERSION = 1
_CHANNEL_ID_SIZE = 32
_HEADER = struct.Struct(">4sBI")  # magic, version, entry count


@dataclass
class ChannelIdsMap:
    """Temporary channel id -> final channel id, both 32 bytes."""

    channel_ids: Dict[bytes, bytes] = field(default_factory=dict)

    @classmethod
    def default(cls) -> "ChannelIdsMap":
        return cls()

    @classmethod
    def decode(cls, data: bytes) -> "ChannelIdsMap":
        if len(data) < _HEADER.size:
            raise CodecError("channel_ids: truncated header")
        magic, version, count = _HEADER.unpack_from(data, 0)
        if magic != CHANNEL_IDS_MAGIC:
            raise CodecError("channel_ids: bad magic")
        if version != CHANNEL_IDS_VERSION:
            raise CodecError(f"channel_ids: unsupported version {version}")

        expected = _HEADER.size + count * 2 * _CHANNEL_ID_SIZE
        if len(data) != expected:
            raise CodecError(f"channel_ids: expected {expected} bytes, got {len(data)}")

        channel_ids = {}
        offset = _HEADER.size
        for _ in range(count):
            temp_id = data[offset:offset + _CHANNEL_ID_SIZE]
            offset += _CHANNEL_ID_SIZE
            chan_id = data[offset:offset + _CHANNEL_ID_SIZE]
            offset += _CHANNEL_ID_SIZE
            channel_ids[temp_id] = chan_id
        return cls(channel_ids=channel_ids)

    def encode(self) -> bytes:
        parts = [_HEADER.pack(CHANNEL_IDS_MAGIC, CHANNEL_IDS_VERSION, len(self.channel_ids))]
        for temp_id, chan_id in self.channel_ids.items():
            if len(temp_id) != _CHANNEL_ID_SIZE or len(chan_id) != _CHANNEL_ID_SIZE:
                raise CodecError("channel ids must be 32 bytes")
            parts.append(temp_id)
            parts.append(chan_id)
        return b"".join(parts)


# =============================================================================
# JSON-encoded bookkeeping (pydantic)
# =============================================================================


class _JsonRecord(BaseModel):
    """Shared decode/encode for pydantic-backed records."""

    version: Literal[1] = 1

    @classmethod
    def default(cls):
        return cls()

    @classmethod
    def decode(cls, data: bytes):
        return cls.model_validate_json(data)

    def encode(self) -> bytes:
        return self.model_dump_json().encode()


class HTLCStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PaymentInfo(BaseModel):
    preimage: Optional[str] = None
    secret: Optional[str] = None
    status: HTLCStatus = HTLCStatus.PENDING
    amt_msat: Optional[int] = None
    created_at: int = 0
    updated_at: int = 0


class PaymentInfoStorage(_JsonRecord):
    """Inbound or outbound payments keyed by hex payment hash/id."""

    payments: Dict[str, PaymentInfo] = Field(default_factory=dict)


class OutputSpenderTxes(_JsonRecord):
    """Sweep transactions keyed by txid (raw tx hex)."""

    txes: Dict[str, str] = Field(default_factory=dict)


class SwapStatus(str, Enum):
    WAITING = "waiting"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    EXPIRED = "expired"
    FAILED = "failed"


class SwapData(BaseModel):
    qty_from: int
    qty_to: int
    from_asset: Optional[str] = None
    to_asset: Optional[str] = None
    expiry: int = 0
    status: SwapStatus = SwapStatus.WAITING


class SwapMap(_JsonRecord):
    """Maker or taker swaps keyed by hex payment hash."""

    swaps: Dict[str, SwapData] = Field(default_factory=dict)


# =============================================================================
# Opaque protocol blobs
# =============================================================================


@dataclass
class OpaqueBlob:
    """
    Bytes owned by the protocol engine (network graph, scorer).

    Any readable content is accepted as-is; an empty blob tells the engine
    to build a fresh structure.
    """

    data: bytes = b""

    @classmethod
    def default(cls) -> "OpaqueBlob":
        return cls()

    @classmethod
    def decode(cls, data: bytes) -> "OpaqueBlob":
        return cls(data=data)

    def encode(self) -> bytes:
        return self.data

    @property
    def is_empty(self) -> bool:
        return not self.data


# =============================================================================
# Readers
# =============================================================================


def read_network(path: Path) -> OpaqueBlob:
    return read_or_default(path, OpaqueBlob)


def read_scorer(path: Path) -> OpaqueBlob:
    return read_or_default(path, OpaqueBlob)


def read_inbound_payment_info(path: Path) -> PaymentInfoStorage:
    return read_or_default(path, PaymentInfoStorage)


def read_outbound_payment_info(path: Path) -> PaymentInfoStorage:
    return read_or_default(path, PaymentInfoStorage)


def read_output_spender_txes(path: Path) -> OutputSpenderTxes:
    return read_or_default(path, OutputSpenderTxes)


def read_swaps_info(path: Path) -> SwapMap:
    return read_or_default(path, SwapMap)


def read_channel_ids_info(path: Path) -> ChannelIdsMap:
    return read_or_default(path, ChannelIdsMap)
