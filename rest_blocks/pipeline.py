"""
Main orchestrator for rest_blocks.

BlockPipeline.process() turns raw content into the enriched block list:

  1. cache lookup by fingerprint (content hash + entity metadata hash)
  2. on a miss: parse → enrich every top-level block → cache the result
  3. the "output" hook sees the result either way, with a cached flag
"""

import hashlib
import json
from typing import Any, Callable, Iterable, Optional, Union

from . import hooks as hook_names
from .cache import BaseCacheStore, MemoryCacheStore, get_default_cache
from .config import PipelineConfig
from .dom import DomQuery
from .enricher import BlockEnricher
from .hooks import Hooks
from .meta import BaseMetadataStore, InMemoryMetadataStore
from .registry import BlockTypeRegistry
from .resolver import AttributeResolver
from .schemas import BlockNode
from .validation import SchemaValidator
from .logger import get_module_logger

logger = get_module_logger("pipeline")

BlockParser = Callable[[str], Iterable[Union[BlockNode, dict]]]


def _md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8", errors="replace")).hexdigest()


class BlockPipeline:
    """
    Coordinates parsing, enrichment and caching.

    Collaborators left unset fall back to the in-memory reference
    implementations; only the block-grammar parser is required.
    """

    def __init__(
        self,
        parser: BlockParser,
        registry: Optional[BlockTypeRegistry] = None,
        renderer: Optional[Callable[[BlockNode], str]] = None,
        shortcodes: Optional[Callable[[str], str]] = None,
        metadata: Optional[BaseMetadataStore] = None,
        cache: Optional[BaseCacheStore] = None,
        validator: Optional[SchemaValidator] = None,
        dom: Optional[DomQuery] = None,
        hooks: Optional[Hooks] = None,
        config: Optional[PipelineConfig] = None
    ):
        self.parser = parser
        self.config = config or PipelineConfig()
        self.hooks = hooks or Hooks()
        self.registry = registry if registry is not None else BlockTypeRegistry()
        self.metadata = metadata if metadata is not None else InMemoryMetadataStore()
        self.cache = cache if cache is not None else MemoryCacheStore()

        transform = self.config.output_transform
        # Pipelines sharing hooks and config register the transform once
        if transform is not None and not self.hooks.has(hook_names.OUTPUT, transform):
            self.hooks.add(hook_names.OUTPUT, transform)

        self.resolver = AttributeResolver(
            dom=dom or DomQuery(parser=self.config.html_parser),
            metadata=self.metadata,
            validator=validator,
            max_query_depth=self.config.max_query_depth
        )
        self.enricher = BlockEnricher(
            self.registry,
            self.resolver,
            renderer=renderer,
            shortcodes=shortcodes
        )

        logger.debug("BlockPipeline initialized")

    # --- Cache keys ---

    def cache_key(self, content: str, entity_id: int = 0) -> str:
        """
        Fingerprint for ``content`` parsed in the context of ``entity_id``.

        The entity's full metadata is part of the key, so a metadata change
        moves every entity-scoped entry to a fresh key.
        """
        key = self.config.cache_key_prefix + _md5(content)
        if entity_id:
            serialized = json.dumps(self.metadata.get_all(entity_id), sort_keys=True, default=str)
            key += "_" + _md5(serialized)
        return key

    def _site_wide(self) -> bool:
        return self.config.multisite and bool(
            self.hooks.apply(hook_names.MULTISITE_CACHE, self.config.multisite_cache)
        )

    def _cache_enabled(self) -> bool:
        return bool(self.hooks.apply(hook_names.CACHE_ENABLED, self.config.cache_enabled))

    def invalidate(self, content: str, entity_id: int = 0) -> bool:
        """Drop the cached result for ``content``. Returns True if one existed."""
        key = self.cache_key(content, entity_id)
        removed = self.cache.delete(key, site_wide=self._site_wide())
        if removed:
            logger.info(f"Invalidated cached blocks: {key}")
        return removed

    # --- Processing ---

    def process(self, content: str, entity_id: int = 0) -> list[dict[str, Any]]:
        """
        Parse and enrich the blocks in ``content``.

        Args:
            content: Raw content with block annotations
            entity_id: Owning entity (0 = no entity context)

        Returns:
            Enriched blocks as JSON-ready dicts, in source order
        """
        do_cache = self._cache_enabled()
        key = None
        site_wide = False

        if do_cache:
            key = self.cache_key(content, entity_id)
            site_wide = self._site_wide()
            cached = self.cache.get(key, site_wide=site_wide)
            # Anything but a non-empty list is a miss
            if cached and isinstance(cached, list):
                logger.debug(f"Cache hit: {key}")
                return self.hooks.apply(hook_names.OUTPUT, cached, content, entity_id, True)
            logger.debug(f"Cache miss: {key}")

        blocks = [
            block if isinstance(block, BlockNode) else BlockNode.model_validate(block)
            for block in self.parser(content)
        ]
        blocks = self.hooks.apply(hook_names.BLOCKS_PARSED, blocks, content, entity_id)

        output = []
        for block in blocks:
            enriched = self.enricher.enrich(block, entity_id)
            if enriched is not None:
                output.append(enriched.to_output())

        output = self.hooks.apply(hook_names.BLOCKS_ENRICHED, output, content, entity_id)

        if do_cache:
            expiration = int(self.hooks.apply(hook_names.CACHE_EXPIRATION, self.config.cache_expiration))
            self.cache.set(key, output, expiration=expiration, site_wide=site_wide)
            logger.info(f"Cached {len(output)} blocks under {key}")

        return self.hooks.apply(hook_names.OUTPUT, output, content, entity_id, False)


def get_blocks(content: str, parser: BlockParser, entity_id: int = 0, **collaborators) -> list[dict[str, Any]]:
    """
    Convenience function to process content once.

    Uses the process-wide default cache unless ``cache`` is given.
    """
    collaborators.setdefault("cache", get_default_cache())
    return BlockPipeline(parser, **collaborators).process(content, entity_id)
