"""
Custom exceptions for rest_blocks.

Error severity:
  - QueryDepthError / SelectorError → PARTIAL: the attribute being resolved
    falls back to its default, the block and the pipeline carry on.
  - BlockTypeError → FAIL HARD: a block type cannot be registered.
  - CacheError → FAIL HARD on writes; unreadable entries are a logged miss.

Missing block types, unmatched selectors and bad cache payloads are not
errors at all. Exceptions raised by injected collaborators (renderer,
validator, stores) are not wrapped and reach the caller unchanged.
"""

from typing import Optional


class BlocksError(Exception):
    """Base exception for all rest_blocks errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- PARTIAL: one attribute degrades to its default ---

class AttributeResolutionError(BlocksError):
    """Raised while computing a single attribute value."""

    def __init__(
        self,
        message: str,
        attribute: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.attribute = attribute


class QueryDepthError(AttributeResolutionError):
    """
    Raised when nested ``query`` sub-schemas go deeper than the configured
    limit. Protects against cyclic or pathological block-type schemas.
    """

    def __init__(self, depth: int, limit: int, attribute: Optional[str] = None):
        super().__init__(
            f"Query nesting depth {depth} exceeds limit of {limit}",
            attribute=attribute,
            details={"depth": depth, "limit": limit}
        )
        self.depth = depth
        self.limit = limit


class SelectorError(AttributeResolutionError):
    """Raised when a CSS or XPath selector cannot be compiled."""

    def __init__(self, selector: str, reason: str):
        super().__init__(
            f"Invalid selector '{selector}': {reason}",
            details={"selector": selector}
        )
        self.selector = selector


# --- FAIL HARD ---

class BlockTypeError(BlocksError):
    """Raised when a block type is invalid or registered twice."""

    def __init__(self, message: str, block_name: Optional[str] = None,
                 details: Optional[dict] = None):
        super().__init__(message, details)
        self.block_name = block_name


class CacheError(BlocksError):
    """Raised when a value cannot be written to a cache store."""

    def __init__(self, message: str, key: Optional[str] = None,
                 details: Optional[dict] = None):
        super().__init__(message, details)
        self.key = key
