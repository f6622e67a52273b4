"""Shared fixtures for the rest_blocks tests."""

import pytest

from rest_blocks.registry import BlockTypeRegistry
from rest_blocks.meta import InMemoryMetadataStore
from rest_blocks.cache import MemoryCacheStore

PARAGRAPH_CONTENT = '<!-- block:core/paragraph {"content":"hi"} --><p>hi</p><!-- /block -->'


def block(name, html="", attrs=None, inner_blocks=None, inner_content=None):
    """Build a node the way the block-grammar parser emits it."""
    return {
        "blockName": name,
        "attrs": attrs if attrs is not None else {},
        "innerHTML": html,
        "innerBlocks": inner_blocks or [],
        "innerContent": inner_content if inner_content is not None else ([html] if html else []),
    }


def freeform(html="\n\n"):
    return block(None, html)


class FakeParser:
    """Stands in for the block-grammar parser: content string → canned nodes."""

    def __init__(self, documents):
        self.documents = documents
        self.calls = 0

    def __call__(self, content):
        self.calls += 1
        return self.documents.get(content, [])


@pytest.fixture
def registry():
    registry = BlockTypeRegistry()
    registry.register(
        "core/paragraph",
        attributes={
            "content": {"type": "string", "source": "html", "selector": "p"},
            "dropCap": {"type": "boolean", "default": False},
        },
        supports={"anchor": True},
    )
    registry.register(
        "core/heading",
        attributes={
            "content": {"type": "string", "source": "html", "selector": "h1,h2,h3,h4,h5,h6"},
            "level": {"type": "number", "default": 2},
        },
        supports={"anchor": True},
    )
    registry.register(
        "core/gallery",
        attributes={
            "images": {
                "type": "array",
                "source": "query",
                "selector": "img",
                "query": {
                    "url": {"type": "string", "source": "attribute", "attribute": "src"},
                    "alt": {"type": "string", "source": "attribute", "attribute": "alt"},
                },
            },
        },
    )
    registry.register("core/group", attributes={}, supports={"anchor": False})
    registry.register(
        "acme/subtitle",
        attributes={"subtitle": {"type": "string", "source": "meta", "meta": "subtitle", "default": ""}},
    )
    return registry


@pytest.fixture
def metadata():
    return InMemoryMetadataStore({
        1: {"subtitle": "First", "views": 10},
        2: {"subtitle": "Second", "views": 10},
    })


@pytest.fixture
def cache():
    return MemoryCacheStore()


@pytest.fixture
def paragraph_parser():
    return FakeParser({
        PARAGRAPH_CONTENT: [block("core/paragraph", "<p>hi</p>", attrs={"content": "hi"})],
    })
