"""
Block enrichment.

Turns one parsed block node into its API form: missing attributes filled
from the block type's schemas, ``rendered`` HTML attached, and inner
blocks enriched depth-first. Freeform nodes (no block name) are dropped
at every level.
"""

from typing import Any, Callable, Optional, Union

from .exceptions import AttributeResolutionError
from .registry import BlockTypeRegistry
from .render import StaticRenderer, passthrough
from .resolver import AttributeResolver
from .schemas import AttributeSchema, AttributeSource, BlockNode, BlockType
from .logger import get_module_logger

logger = get_module_logger("enricher")

# Added to every block type that supports anchors: the wrapper element's id
ANCHOR_SCHEMA = AttributeSchema(
    type="string",
    source=AttributeSource.ATTRIBUTE,
    attribute="id",
    selector="*",
    default="",
)


def attribute_schemas(block_type: BlockType) -> dict[str, AttributeSchema]:
    """Declared attribute schemas plus the synthesized ``anchor`` schema."""
    schemas = dict(block_type.attributes)
    if block_type.supports_anchor and "anchor" not in schemas:
        schemas["anchor"] = ANCHOR_SCHEMA
    return schemas


class BlockEnricher:
    """Enriches block nodes, recursively."""

    def __init__(
        self,
        registry: BlockTypeRegistry,
        resolver: AttributeResolver,
        renderer: Optional[Callable[[BlockNode], str]] = None,
        shortcodes: Optional[Callable[[str], str]] = None
    ):
        self.registry = registry
        self.resolver = resolver
        self.renderer = renderer or StaticRenderer(registry)
        self.shortcodes = shortcodes or passthrough

    def enrich(self, node: Union[BlockNode, dict], entity_id: int = 0) -> Optional[BlockNode]:
        """
        Enrich a block node.

        Args:
            node: Parsed block node (dicts are validated into BlockNode)
            entity_id: Entity the content belongs to (0 = none)

        Returns:
            A new, enriched BlockNode, or None for freeform content
        """
        if isinstance(node, dict):
            node = BlockNode.model_validate(node)

        if node.is_freeform:
            return None

        attrs = self._resolve_attributes(node, entity_id)
        with_attrs = node.model_copy(update={"attrs": attrs})
        rendered = self.shortcodes(self.renderer(with_attrs))

        inner_blocks = []
        for child in node.inner_blocks:
            enriched = self.enrich(child, entity_id)
            if enriched is not None:
                inner_blocks.append(enriched)

        return with_attrs.model_copy(update={"rendered": rendered, "inner_blocks": inner_blocks})

    def _resolve_attributes(self, node: BlockNode, entity_id: int) -> dict[str, Any]:
        attrs = dict(node.attrs)

        block_type = self.registry.get(node.name)
        if block_type is None:
            logger.debug(f"No registered block type for '{node.name}', keeping raw attributes")
            return attrs

        for key, schema in attribute_schemas(block_type).items():
            # Annotation values win; null counts as missing
            if attrs.get(key) is not None:
                continue
            try:
                attrs[key] = self.resolver.resolve(schema, node.inner_html, entity_id)
            except AttributeResolutionError as e:
                logger.warning(f"Could not resolve '{key}' on {node.name}: {e.message}")
                attrs[key] = schema.default
        return attrs
