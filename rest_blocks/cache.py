"""
Cache stores for enriched block trees.

Every store keeps two namespaces: the per-site one and a network-wide one
shared by all sites of a multi-tenant deployment (``site_wide=True``).
An expiration of 0 means the entry never expires.
"""

import copy
import json
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from .exceptions import CacheError
from .logger import get_module_logger

logger = get_module_logger("cache")


class BaseCacheStore(ABC):
    """Abstract key/value store with expiration."""

    @abstractmethod
    def get(self, key: str, site_wide: bool = False) -> Optional[Any]:
        """Return the cached value, or None on a miss or expired entry."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any, expiration: int = 0, site_wide: bool = False) -> None:
        """
        Store a value.

        Args:
            key: Cache key
            value: JSON-serializable value
            expiration: Lifetime in seconds, 0 for no expiry
            site_wide: Write to the network-wide namespace
        """
        pass

    @abstractmethod
    def delete(self, key: str, site_wide: bool = False) -> bool:
        """Delete an entry. Returns True if something was removed."""
        pass

    @abstractmethod
    def clear(self) -> int:
        """Remove every entry in both namespaces. Returns the count removed."""
        pass


def _expires_at(expiration: int) -> Optional[float]:
    return time.time() + expiration if expiration and expiration > 0 else None


class MemoryCacheStore(BaseCacheStore):
    """
    Process-local cache.

    Values are deep-copied in and out so callers mutating a returned tree
    cannot corrupt the cached copy.
    """

    def __init__(self):
        self._entries: dict[bool, dict[str, tuple[Any, Optional[float]]]] = {False: {}, True: {}}

    def get(self, key: str, site_wide: bool = False) -> Optional[Any]:
        entry = self._entries[site_wide].get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= time.time():
            del self._entries[site_wide][key]
            logger.debug(f"Cache entry expired: {key}")
            return None
        return copy.deepcopy(value)

    def set(self, key: str, value: Any, expiration: int = 0, site_wide: bool = False) -> None:
        self._entries[site_wide][key] = (copy.deepcopy(value), _expires_at(expiration))

    def delete(self, key: str, site_wide: bool = False) -> bool:
        return self._entries[site_wide].pop(key, None) is not None

    def clear(self) -> int:
        count = sum(len(entries) for entries in self._entries.values())
        for entries in self._entries.values():
            entries.clear()
        return count

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())


class FileCacheStore(BaseCacheStore):
    """
    File-based cache.

    Stores each entry as a JSON file under ``<cache_dir>/site`` or
    ``<cache_dir>/network``. Files are human-readable so entries can be
    inspected or edited by hand.
    """

    def __init__(self, cache_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the file cache.

        Args:
            cache_dir: Directory to store cache files.
                      Defaults to ./block_cache/
        """
        if cache_dir is None:
            cache_dir = Path.cwd() / "block_cache"

        self.cache_dir = Path(cache_dir)
        for namespace in ("site", "network"):
            (self.cache_dir / namespace).mkdir(parents=True, exist_ok=True)

        logger.info(f"Block cache initialized at: {self.cache_dir}")

    def _cache_file(self, key: str, site_wide: bool) -> Path:
        # Keep only filesystem-safe characters
        safe_key = "".join(c if c.isalnum() or c in "-_." else "_" for c in key)
        namespace = "network" if site_wide else "site"
        return self.cache_dir / namespace / f"{safe_key}.json"

    def get(self, key: str, site_wide: bool = False) -> Optional[Any]:
        cache_file = self._cache_file(key, site_wide)

        if not cache_file.exists():
            logger.debug(f"Cache miss for key: {key}")
            return None

        try:
            data = json.loads(cache_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load cached blocks for {key}: {e}")
            return None

        expires_at = data.get("expires_at")
        if expires_at is not None and expires_at <= time.time():
            logger.debug(f"Cache entry expired: {key}")
            cache_file.unlink(missing_ok=True)
            return None

        logger.debug(f"Cache hit for key: {key}")
        return data.get("value")

    def set(self, key: str, value: Any, expiration: int = 0, site_wide: bool = False) -> None:
        cache_file = self._cache_file(key, site_wide)

        cache_data = {
            "cache_key": key,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "expires_at": _expires_at(expiration),
            "value": value
        }

        try:
            payload = json.dumps(cache_data, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise CacheError(f"Value for {key} is not JSON-serializable: {e}", key=key)

        cache_file.write_text(payload, encoding="utf-8")
        logger.debug(f"Cached blocks with key: {key} -> {cache_file}")

    def delete(self, key: str, site_wide: bool = False) -> bool:
        cache_file = self._cache_file(key, site_wide)

        if cache_file.exists():
            cache_file.unlink()
            logger.info(f"Deleted cache for key: {key}")
            return True
        return False

    def clear(self) -> int:
        count = 0
        for cache_file in self.cache_dir.glob("*/*.json"):
            cache_file.unlink()
            count += 1
        logger.info(f"Cleared {count} cached block files")
        return count

    def list_cached(self) -> list[dict]:
        """List all cache entries with their namespace and timestamps."""
        entries = []
        for cache_file in sorted(self.cache_dir.glob("*/*.json")):
            try:
                data = json.loads(cache_file.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Skipping unreadable cache file {cache_file}: {e}")
                continue
            entries.append({
                "cache_key": data.get("cache_key"),
                "namespace": cache_file.parent.name,
                "created_at": data.get("created_at"),
                "expires_at": data.get("expires_at"),
                "file": str(cache_file)
            })
        return entries


# Process-wide default cache, shared by get_blocks() calls
_default_cache: Optional[BaseCacheStore] = None


def get_default_cache() -> BaseCacheStore:
    """Get or create the default cache instance."""
    global _default_cache
    if _default_cache is None:
        _default_cache = MemoryCacheStore()
    return _default_cache
