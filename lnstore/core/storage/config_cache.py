import asyncio
from typing import Dict, Optional, Tuple


class ConfigCache:
    """
    In-process cache for config entries.

    Stores both present values and explicit misses (None), so a key that
    was never set is only looked up in the database once. Owned by a
    single DatabaseManager; the lock is held for one get or one insert,
    never across a database round-trip.
    """

    def __init__(self):
        self._entries: Dict[str, Optional[str]] = {}
        self._lock = asyncio.Lock()

    async def lookup(self, key: str) -> Tuple[bool, Optional[str]]:
        """Return (hit, value). A cached miss is a hit with value None."""
        async with self._lock:
            if key in self._entries:
                return True, self._entries[key]
            return False, None

    async def store(self, key: str, value: Optional[str]):
        async with self._lock:
            self._entries[key] = value

    async def store_if_absent(self, key: str, value: Optional[str]) -> Optional[str]:
        """
        Populate a miss without replacing a newer entry.

        A save that committed while the caller was reading the database has
        already stored its value; that value wins and is returned.
        """
        async with self._lock:
            return self._entries.setdefault(key, value)

    async def clear(self):
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
