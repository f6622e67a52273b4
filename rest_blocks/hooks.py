"""
Filter hooks.

A hook is a named, ordered chain of functions. ``apply`` threads a value
through every function registered under a name: each receives the current
value plus the hook's extra arguments and returns the new value. Lower
priorities run first; equal priorities run in registration order.

Hook points used by the pipeline:

  cache_enabled(enabled) -> bool
  multisite_cache(enabled) -> bool
  cache_expiration(seconds) -> int
  blocks_parsed(blocks, content, entity_id) -> list[BlockNode]
  blocks_enriched(output, content, entity_id) -> list[dict]     (before caching)
  output(output, content, entity_id, cached) -> list[dict]      (before returning)
"""

import itertools
from typing import Any, Callable, Optional

from .logger import get_module_logger

logger = get_module_logger("hooks")

CACHE_ENABLED = "cache_enabled"
MULTISITE_CACHE = "multisite_cache"
CACHE_EXPIRATION = "cache_expiration"
BLOCKS_PARSED = "blocks_parsed"
BLOCKS_ENRICHED = "blocks_enriched"
OUTPUT = "output"

HOOK_NAMES = (CACHE_ENABLED, MULTISITE_CACHE, CACHE_EXPIRATION, BLOCKS_PARSED, BLOCKS_ENRICHED, OUTPUT)


class Hooks:
    """Registry of filter chains."""

    def __init__(self):
        self._filters: dict[str, list[tuple[int, int, Callable]]] = {}
        self._sequence = itertools.count()

    def add(self, name: str, func: Optional[Callable] = None, priority: int = 10):
        """
        Register ``func`` under ``name``.

        Usable directly or as a decorator::

            @hooks.add("cache_expiration")
            def one_hour(seconds):
                return 3600
        """
        if func is None:
            def decorator(f: Callable) -> Callable:
                self.add(name, f, priority)
                return f
            return decorator

        if name not in HOOK_NAMES:
            logger.debug(f"Registering filter on custom hook '{name}'")
        self._filters.setdefault(name, []).append((priority, next(self._sequence), func))
        self._filters[name].sort(key=lambda entry: entry[:2])
        return func

    def remove(self, name: str, func: Callable) -> bool:
        """Unregister every occurrence of ``func`` under ``name``."""
        chain = self._filters.get(name, [])
        kept = [entry for entry in chain if entry[2] is not func]
        self._filters[name] = kept
        return len(kept) != len(chain)

    def has(self, name: str, func: Optional[Callable] = None) -> bool:
        """True if anything, or ``func`` specifically, is registered under ``name``."""
        chain = self._filters.get(name, [])
        if func is None:
            return bool(chain)
        return any(entry[2] is func for entry in chain)

    def apply(self, name: str, value: Any, *args: Any) -> Any:
        """Run ``value`` through the chain registered under ``name``."""
        for _, _, func in self._filters.get(name, []):
            value = func(value, *args)
        return value
