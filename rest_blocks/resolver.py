"""
Attribute resolution.

Computes one attribute value from its AttributeSchema, the block's HTML
fragment and (for ``meta`` sources) the entity metadata store.

Resolution order:
  1. source-specific lookup (DOM query or metadata)
  2. schema default when the lookup produced nothing
  3. sanitization when a typed value fails validation
"""

from typing import Any, Optional, Union

from .dom import DomQuery, Fragment, NodeSet
from .exceptions import QueryDepthError
from .meta import BaseMetadataStore
from .schemas import AttributeSchema, AttributeSource
from .validation import SchemaValidator
from .logger import get_module_logger

logger = get_module_logger("resolver")

DOM_SOURCES = (
    AttributeSource.ATTRIBUTE,
    AttributeSource.HTML,
    AttributeSource.TEXT,
    AttributeSource.QUERY,
)


class AttributeResolver:
    """Resolves attribute schemas against HTML fragments."""

    def __init__(
        self,
        dom: Optional[DomQuery] = None,
        metadata: Optional[BaseMetadataStore] = None,
        validator: Optional[SchemaValidator] = None,
        max_query_depth: int = 8
    ):
        self.dom = dom or DomQuery()
        self.metadata = metadata
        self.validator = validator or SchemaValidator()
        self.max_query_depth = max_query_depth

    def resolve(
        self,
        schema: Union[AttributeSchema, dict],
        html: Union[str, Fragment],
        entity_id: int = 0,
        depth: int = 0
    ) -> Any:
        """
        Compute an attribute value.

        Args:
            schema: Attribute schema (dicts are validated into AttributeSchema)
            html: The block's inner HTML, or an already-parsed Fragment
                  (query records pass the matched element this way)
            entity_id: Entity whose metadata backs ``meta`` sources (0 = none)
            depth: Current ``query`` nesting level

        Returns:
            The resolved value, or None

        Raises:
            QueryDepthError: nested queries deeper than max_query_depth
            SelectorError: a selector in the schema is invalid
        """
        if isinstance(schema, dict):
            schema = AttributeSchema.model_validate(schema)

        value = self._from_source(schema, html, entity_id, depth)

        if value is None and schema.default is not None:
            value = schema.default

        # Unset stays unset: only concrete values are checked against the type
        if value is not None and schema.type and not self.validator.validate(value, schema):
            value = self.validator.sanitize(value, schema)

        return value

    def _from_source(self, schema: AttributeSchema, html: Union[str, Fragment], entity_id: int, depth: int) -> Any:
        source = schema.source
        if source is None or source is AttributeSource.NONE:
            return None
        if source in DOM_SOURCES:
            return self._from_dom(schema, html, entity_id, depth)
        if source is AttributeSource.META:
            return self._from_meta(schema, entity_id)
        raise ValueError(f"Unhandled attribute source: {source}")

    def _from_meta(self, schema: AttributeSchema, entity_id: int) -> Any:
        if not entity_id or not schema.meta or self.metadata is None:
            return None
        return self.metadata.get(entity_id, schema.meta)

    def _from_dom(self, schema: AttributeSchema, html: Union[str, Fragment], entity_id: int, depth: int) -> Any:
        if isinstance(html, Fragment):
            fragment = html
        else:
            fragment = self.dom.parse((html or "").strip())
        source = schema.source

        if schema.selector:
            nodes = fragment.query(schema.selector)
            if source is AttributeSource.QUERY:
                return self._from_query(schema, nodes, entity_id, depth)
        else:
            # Rules without a selector read the fragment root; queries need one
            if source is AttributeSource.QUERY:
                return None
            nodes = fragment.query()

        if source is AttributeSource.ATTRIBUTE:
            return nodes.attr(schema.attribute) if schema.attribute else None
        if source is AttributeSource.HTML:
            return nodes.html()
        return nodes.text()

    def _from_query(self, schema: AttributeSchema, nodes: NodeSet, entity_id: int, depth: int) -> Optional[list]:
        """
        One record per matched node, in document order.

        Each record maps sub-attribute names to their non-null values. The
        result is None when nothing matched or every record came out empty.
        """
        if not schema.query:
            return None
        if depth >= self.max_query_depth:
            raise QueryDepthError(depth + 1, self.max_query_depth)

        records = []
        for element in nodes:
            record = {}
            for key, sub_schema in schema.query.items():
                sub_value = self.resolve(sub_schema, element, entity_id, depth + 1)
                if sub_value is not None:
                    record[key] = sub_value
            records.append(record)

        if not any(records):
            return None
        return records
