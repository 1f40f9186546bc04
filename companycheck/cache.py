"""
Two-tier cache for search results.

The fast tier is an in-process dict with a short TTL. The durable tier is a
DurableStorage backend with a long TTL so results survive restarts and can be
reused offline. Reads check the fast tier first; a valid durable entry is
promoted back into the fast tier.

Durable entries are JSON: {"data": ..., "createdAt": <epoch ms>, "ttl": <ms>},
stored under a fixed key prefix so clear() only removes entries it owns.
"""

import json
import time
from typing import Any, Callable, Dict, Optional

from .logger import StructuredLogger, get_logger
from .storage import DurableStorage, StorageError

CACHE_PREFIX = "company_search_"
DEFAULT_TTL = 5 * 60  # seconds
STORAGE_TTL = 24 * 60 * 60  # seconds


class SearchCache:
    def __init__(
        self,
        storage: Optional[DurableStorage] = None,
        clock: Callable[[], float] = time.time,
        default_ttl: float = DEFAULT_TTL,
        storage_ttl: float = STORAGE_TTL,
        prefix: str = CACHE_PREFIX,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            storage: Durable backend; None disables the durable tier
            clock: Returns the current time in seconds since the epoch
            default_ttl: Fast-tier TTL in seconds
            storage_ttl: Durable-tier TTL in seconds
            prefix: Namespace for durable keys
            logger: StructuredLogger (default: global logger)
        """
        self.storage = storage
        self.clock = clock
        self.default_ttl = default_ttl
        self.storage_ttl = storage_ttl
        self.prefix = prefix
        self.logger = logger or get_logger()
        self._memory: Dict[str, Dict[str, Any]] = {}

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _entry(self, data: Any, ttl_seconds: float) -> Dict[str, Any]:
        return {"data": data, "createdAt": self._now_ms(), "ttl": int(ttl_seconds * 1000)}

    def _is_expired(self, entry: Dict[str, Any]) -> bool:
        return self._now_ms() - entry["createdAt"] > entry["ttl"]

    def get(self, key: str) -> Optional[Any]:
        entry = self._memory.get(key)
        if entry is not None:
            if not self._is_expired(entry):
                return entry["data"]
            del self._memory[key]

        if self.storage is None:
            return None

        storage_key = self.prefix + key
        try:
            stored = self.storage.get_item(storage_key)
            if stored is None:
                return None
            entry = json.loads(stored)
            if self._is_expired(entry):
                self.storage.remove_item(storage_key)
                return None
        except (StorageError, ValueError, KeyError, TypeError) as e:
            self.logger.error("Cache read error", key=key, error=str(e))
            return None

        self._memory[key] = entry
        return entry["data"]

    def set(self, key: str, data: Any, ttl: Optional[float] = None) -> None:
        self._memory[key] = self._entry(data, self.default_ttl if ttl is None else ttl)

        if self.storage is None:
            return
        try:
            payload = json.dumps(self._entry(data, self.storage_ttl), ensure_ascii=False)
            self.storage.set_item(self.prefix + key, payload)
        except (StorageError, TypeError, ValueError) as e:
            self.logger.error("Cache write error", key=key, error=str(e))

    def invalidate(self, key: str) -> None:
        self._memory.pop(key, None)
        if self.storage is None:
            return
        try:
            self.storage.remove_item(self.prefix + key)
            self.logger.debug("Invalidated cache entry", key=key)
        except StorageError as e:
            self.logger.error("Cache invalidate error", key=key, error=str(e))

    def clear(self) -> None:
        self._memory.clear()
        if self.storage is None:
            return
        try:
            for k in self.storage.keys():
                if k.startswith(self.prefix):
                    self.storage.remove_item(k)
            self.logger.info("Cleared search cache")
        except StorageError as e:
            self.logger.error("Cache clear error", error=str(e))

    def stats(self) -> Dict[str, int]:
        storage_entries = 0
        if self.storage is not None:
            try:
                storage_entries = sum(1 for k in self.storage.keys() if k.startswith(self.prefix))
            except StorageError as e:
                self.logger.error("Cache stats error", error=str(e))
        return {"memory_entries": len(self._memory), "storage_entries": storage_entries}
