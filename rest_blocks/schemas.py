"""
Pydantic schemas defining the contracts between the pipeline stages.

BlockNode:        one node of the block tree, as the block-grammar parser
                  produces it and as the enricher returns it.
AttributeSchema:  declarative rule describing how one attribute value is
                  computed (annotation, HTML fragment, or entity metadata).
BlockType:        what the registry knows about a block name.

Data flow through the pipeline:
  content → parser → list[BlockNode] → BlockEnricher (per node, recursive)
          → AttributeResolver (per missing attribute) → enriched BlockNode
          → to_output() → JSON-ready dict (cached and returned)
"""

from enum import Enum
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AttributeSource(str, Enum):
    """Where an attribute value comes from."""
    NONE = "none"              # Only the raw annotation (or default) supplies it
    ATTRIBUTE = "attribute"    # An HTML attribute of the matched element
    HTML = "html"              # Inner HTML of the matched element
    TEXT = "text"              # Text content of the matched element
    QUERY = "query"            # One sub-record per matched element
    META = "meta"              # Entity metadata store


# Keys that drive resolution; everything else on an AttributeSchema is
# JSON-schema vocabulary handed to the validator.
RESOLUTION_KEYS = {"source", "selector", "attribute", "query", "meta", "default"}


class AttributeSchema(BaseModel):
    """
    Resolution rule for a single block attribute.

    Unknown keys (``enum``, ``items``, ``properties``, ...) are kept so the
    validator sees the full schema the block type declared.
    """
    model_config = ConfigDict(extra="allow")

    type: Optional[Union[str, list[str]]] = None
    source: Optional[AttributeSource] = None
    selector: Optional[str] = None
    attribute: Optional[str] = None
    query: Optional[dict[str, "AttributeSchema"]] = None
    meta: Optional[str] = None
    default: Any = None

    def validation_schema(self) -> dict:
        """Return the JSON-schema part of this rule (no resolution keys)."""
        return self.model_dump(exclude=RESOLUTION_KEYS, exclude_none=True)


AttributeSchema.model_rebuild()


class BlockType(BaseModel):
    """A registered block type: its attribute schemas and capabilities."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    title: Optional[str] = None
    attributes: dict[str, AttributeSchema] = Field(default_factory=dict)
    supports: dict[str, Any] = Field(default_factory=dict)
    # render(attrs, content, node) -> html; static blocks leave it unset
    render: Optional[Callable[..., str]] = Field(default=None, exclude=True)

    @property
    def supports_anchor(self) -> bool:
        return bool(self.supports.get("anchor"))


class BlockNode(BaseModel):
    """
    A node of the block tree.

    Field aliases match the keys the block-grammar parser emits
    (``blockName``, ``innerHTML``, ...) so raw parser output validates
    directly. Unknown keys survive the round trip.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[str] = Field(default=None, alias="blockName")
    attrs: dict[str, Any] = Field(default_factory=dict)
    inner_html: str = Field(default="", alias="innerHTML")
    inner_blocks: list["BlockNode"] = Field(default_factory=list, alias="innerBlocks")
    # Text chunks around inner blocks; None marks the slot of the next inner block
    inner_content: list[Optional[str]] = Field(default_factory=list, alias="innerContent")
    rendered: Optional[str] = None

    @field_validator("attrs", mode="before")
    @classmethod
    def _empty_attrs(cls, value):
        # Parsers built on PHP-style JSON emit [] for a block without attributes
        if value is None or value == []:
            return {}
        return value

    @property
    def is_freeform(self) -> bool:
        """True for plain content between blocks (no block name)."""
        return not self.name

    def to_output(self) -> dict:
        """Serialize for API responses and the cache."""
        return self.model_dump(by_alias=True, mode="json")


BlockNode.model_rebuild()
