"""
Reference renderer and shortcode expander.

StaticRenderer reproduces the saved markup of a block: inner content
chunks with inner blocks rendered into their slots. A block type with a
``render`` callback (a dynamic block) gets the callback's output instead.
"""

from typing import Optional

from .registry import BlockTypeRegistry
from .schemas import BlockNode


class StaticRenderer:
    """Default renderer collaborator."""

    def __init__(self, registry: Optional[BlockTypeRegistry] = None):
        self.registry = registry

    def __call__(self, node: BlockNode) -> str:
        return self.render(node)

    def render(self, node: BlockNode) -> str:
        content = self._inner_content(node)
        block_type = self.registry.get(node.name) if self.registry is not None else None
        if block_type is not None and block_type.render is not None:
            return block_type.render(node.attrs, content, node) or ""
        return content

    def _inner_content(self, node: BlockNode) -> str:
        if not node.inner_content:
            return node.inner_html

        parts = []
        children = iter(node.inner_blocks)
        for chunk in node.inner_content:
            if chunk is not None:
                parts.append(chunk)
                continue
            child = next(children, None)
            if child is not None:
                parts.append(self.render(child))
        return "".join(parts)


def passthrough(html: str) -> str:
    """Shortcode expander for deployments without shortcodes."""
    return html
