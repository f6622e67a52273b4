"""
Block-type registry.

Maps block names ("namespace/name") to their attribute schemas and
supports flags. Types are registered from Python or loaded from
block.json metadata files.
"""

import json
import re
from pathlib import Path
from typing import Callable, Optional, Union

from pydantic import ValidationError

from .schemas import BlockType
from .exceptions import BlockTypeError
from .logger import get_module_logger

logger = get_module_logger("registry")

BLOCK_NAME_PATTERN = re.compile(r"^[a-z0-9-]+/[a-z0-9-]+$")


class BlockTypeRegistry:
    """In-memory registry of block types."""

    def __init__(self):
        self._types: dict[str, BlockType] = {}

    def register(
        self,
        block_type: Union[str, BlockType],
        attributes: Optional[dict] = None,
        supports: Optional[dict] = None,
        render: Optional[Callable[..., str]] = None,
        **extra
    ) -> BlockType:
        """
        Register a block type.

        Args:
            block_type: Block name, or a ready BlockType
            attributes: Attribute schemas keyed by attribute name
            supports: Capability flags (e.g. {"anchor": True})
            render: Optional render callback (attrs, content, node) -> html

        Returns:
            The registered BlockType

        Raises:
            BlockTypeError: invalid name, invalid schema, or already registered
        """
        if not isinstance(block_type, BlockType):
            try:
                block_type = BlockType(
                    name=block_type,
                    attributes=attributes or {},
                    supports=supports or {},
                    render=render,
                    **extra
                )
            except ValidationError as e:
                raise BlockTypeError(
                    f"Invalid block type definition for '{block_type}'",
                    block_name=str(block_type),
                    details={"errors": e.errors(include_url=False)}
                )

        name = block_type.name
        if not BLOCK_NAME_PATTERN.match(name):
            raise BlockTypeError(
                f"Block type names must look like 'namespace/name', got '{name}'",
                block_name=name
            )
        if name in self._types:
            raise BlockTypeError(f"Block type '{name}' is already registered", block_name=name)

        self._types[name] = block_type
        logger.debug(f"Registered block type: {name} ({len(block_type.attributes)} attributes)")
        return block_type

    def register_from_metadata(self, path: Union[str, Path], render: Optional[Callable[..., str]] = None) -> BlockType:
        """
        Register a block type from a block.json file (or a directory holding one).

        Raises:
            BlockTypeError: if the file is missing or not valid JSON
        """
        path = Path(path)
        if path.is_dir():
            path = path / "block.json"

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise BlockTypeError(f"Cannot read block metadata from {path}: {e}", details={"path": str(path)})

        if not isinstance(data, dict) or "name" not in data:
            raise BlockTypeError(f"Block metadata in {path} has no 'name'", details={"path": str(path)})

        return self.register(
            data["name"],
            attributes=data.get("attributes") or {},
            supports=data.get("supports") or {},
            render=render,
            title=data.get("title")
        )

    def unregister(self, name: str) -> BlockType:
        if name not in self._types:
            raise BlockTypeError(f"Block type '{name}' is not registered", block_name=name)
        logger.debug(f"Unregistered block type: {name}")
        return self._types.pop(name)

    def get(self, name: Optional[str]) -> Optional[BlockType]:
        """Return the block type for ``name``, or None if unregistered."""
        if not name:
            return None
        return self._types.get(name)

    def is_registered(self, name: str) -> bool:
        return name in self._types

    def __contains__(self, name: str) -> bool:
        return self.is_registered(name)

    def __len__(self) -> int:
        return len(self._types)

    def names(self) -> list[str]:
        return sorted(self._types)
