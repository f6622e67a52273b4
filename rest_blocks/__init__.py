"""
rest_blocks

Extracts structured block data from content carrying comment-delimited
block annotations, for embedding in API responses.
- AttributeResolver: schema-driven attribute extraction from block HTML
- BlockEnricher: fills attributes, renders, recurses into inner blocks
- BlockPipeline: fingerprint cache + hooks around the whole tree

Public API surface:
  Pipeline: BlockPipeline, get_blocks, PipelineConfig, Hooks
  Components: AttributeResolver, BlockEnricher, StaticRenderer
  Data models: BlockNode, AttributeSchema, AttributeSource, BlockType
  Collaborators: BlockTypeRegistry, DomQuery, SchemaValidator,
                 InMemoryMetadataStore, MemoryCacheStore, FileCacheStore
  Error types: BlocksError, AttributeResolutionError, QueryDepthError,
               SelectorError, BlockTypeError, CacheError
"""

from .pipeline import BlockPipeline, get_blocks
from .config import PipelineConfig
from .hooks import Hooks

from .resolver import AttributeResolver
from .enricher import BlockEnricher
from .render import StaticRenderer, passthrough

from .schemas import BlockNode, AttributeSchema, AttributeSource, BlockType

from .registry import BlockTypeRegistry
from .dom import DomQuery
from .validation import SchemaValidator
from .meta import BaseMetadataStore, InMemoryMetadataStore
from .cache import BaseCacheStore, MemoryCacheStore, FileCacheStore, get_default_cache

from .exceptions import (
    BlocksError,
    AttributeResolutionError,
    QueryDepthError,
    SelectorError,
    BlockTypeError,
    CacheError,
)

__version__ = "0.1.0"
__all__ = [
    "BlockPipeline",
    "get_blocks",
    "PipelineConfig",
    "Hooks",
    "AttributeResolver",
    "BlockEnricher",
    "StaticRenderer",
    "passthrough",
    "BlockNode",
    "AttributeSchema",
    "AttributeSource",
    "BlockType",
    "BlockTypeRegistry",
    "DomQuery",
    "SchemaValidator",
    "BaseMetadataStore",
    "InMemoryMetadataStore",
    "BaseCacheStore",
    "MemoryCacheStore",
    "FileCacheStore",
    "get_default_cache",
    "BlocksError",
    "AttributeResolutionError",
    "QueryDepthError",
    "SelectorError",
    "BlockTypeError",
    "CacheError",
]
