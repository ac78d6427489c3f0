"""
Row Validation - structural checks for values read back from the store.

Every check returns a RowCheck: either the decoded value, or None plus a
human-readable problem. Checks never log; callers decide whether a bad
row is skipped with a warning or escalated to an error.
"""

import re
from dataclasses import dataclass
from typing import Any, Generic, Optional, Tuple, TypeVar

from lnstore.crypto import hex_str, try_hex_to_bytes

T = TypeVar("T")

# =============================================================================
# Constants
# =============================================================================

CHANNEL_ID_SIZE = 32
PUBLIC_KEY_SIZE = 33  # compressed secp256k1
MAX_PORT = 65535

_HOST_PORT_RE = re.compile(r"^(\[[0-9a-fA-F:.]+\]|[^\s:\[\]]+):(\d{1,5})$")


@dataclass(frozen=True)
class RowCheck(Generic[T]):
    """Outcome of validating one persisted row."""

    value: Optional[T] = None
    problem: str = ""

    @property
    def ok(self) -> bool:
        return not self.problem

    @classmethod
    def keep(cls, value: T) -> "RowCheck[T]":
        return cls(value=value)

    @classmethod
    def skip(cls, problem: str) -> "RowCheck[T]":
        return cls(problem=problem)


# =============================================================================
# Validation Functions
# =============================================================================


def check_hex(value: Any, name: str, expected_bytes: Optional[int] = None) -> RowCheck[bytes]:
    """
    Decode a stored hex string.

    Args:
        value: Column value
        name: Column name for diagnostics
        expected_bytes: Exact decoded length, if any

    Returns:
        RowCheck holding the raw bytes
    """
    if not isinstance(value, str):
        return RowCheck.skip(f"{name} must be str, got {type(value).__name__}")

    data = try_hex_to_bytes(value)
    if data is None:
        return RowCheck.skip(f"Invalid {name} hex in database: {value}")

    if expected_bytes is not None and len(data) != expected_bytes:
        return RowCheck.skip(
            f"Invalid {name} length in database: expected {expected_bytes}, got {len(data)}"
        )

    return RowCheck.keep(data)


def check_channel_id_row(temporary_channel_id: Any, channel_id: Any) -> RowCheck[Tuple[bytes, bytes]]:
    """Validate a (temporary_channel_id, channel_id) row; both must be 32 bytes."""
    temp = check_hex(temporary_channel_id, "temporary_channel_id", CHANNEL_ID_SIZE)
    if not temp.ok:
        return RowCheck.skip(temp.problem)
    chan = check_hex(channel_id, "channel_id", CHANNEL_ID_SIZE)
    if not chan.ok:
        return RowCheck.skip(chan.problem)
    return RowCheck.keep((temp.value, chan.value))


def check_revocation_id(revocation_id: Any) -> RowCheck[bytes]:
    """Validate a revoked token identifier (any non-empty length)."""
    check = check_hex(revocation_id, "revocation_id")
    if check.ok and not check.value:
        return RowCheck.skip("Empty revocation_id in database")
    return check


def check_public_key(public_key: Any) -> RowCheck[str]:
    """
    A node identity must be a 33-byte compressed key (02/03 prefix).

    The kept value is the canonical spelling: lowercase hex of the decoded
    bytes, no prefix or whitespace.
    """
    check = check_hex(public_key, "public_key", PUBLIC_KEY_SIZE)
    if not check.ok:
        return RowCheck.skip(check.problem)
    if check.value[0] not in (2, 3):
        return RowCheck.skip(f"Invalid public key prefix: {public_key}")
    return RowCheck.keep(hex_str(check.value))


def check_socket_addr(address: Any) -> RowCheck[str]:
    """Validate a host:port address ([v6]:port accepted)."""
    if not isinstance(address, str):
        return RowCheck.skip(f"socket_addr must be str, got {type(address).__name__}")
    match = _HOST_PORT_RE.match(address)
    if not match:
        return RowCheck.skip(f"Invalid socket address: {address}")
    port = int(match.group(2))
    if port > MAX_PORT:
        return RowCheck.skip(f"Invalid socket address port: {address}")
    return RowCheck.keep(address)
