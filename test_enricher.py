"""Tests for BlockEnricher."""

import copy

import pytest

from conftest import block, freeform
from rest_blocks.enricher import BlockEnricher, attribute_schemas
from rest_blocks.resolver import AttributeResolver
from rest_blocks.schemas import BlockNode


@pytest.fixture
def enricher(registry, metadata):
    return BlockEnricher(registry, AttributeResolver(metadata=metadata))


def test_freeform_node_is_omitted(enricher):
    assert enricher.enrich(freeform()) is None
    assert enricher.enrich(block("", "<p>x</p>")) is None


def test_raw_attributes_win(enricher):
    node = block("core/paragraph", "<p>from html</p>", attrs={"content": "from annotation"})
    result = enricher.enrich(node)
    assert result.attrs["content"] == "from annotation"


def test_missing_attribute_resolved_from_html(enricher):
    result = enricher.enrich(block("core/paragraph", "<p>hi</p>"))
    assert result.attrs["content"] == "hi"
    assert result.attrs["dropCap"] is False
    assert result.rendered == "<p>hi</p>"


def test_null_raw_attribute_is_resolved(enricher):
    result = enricher.enrich(block("core/paragraph", "<p>hi</p>", attrs={"content": None}))
    assert result.attrs["content"] == "hi"


def test_anchor_synthesized_from_wrapper_id(enricher):
    result = enricher.enrich(block("core/heading", '<h2 id="intro">Intro</h2>', attrs={"level": 2}))
    assert result.attrs["anchor"] == "intro"
    assert result.attrs["content"] == "Intro"


def test_anchor_defaults_to_empty_string(enricher):
    result = enricher.enrich(block("core/heading", "<h3>Plain</h3>"))
    assert result.attrs["anchor"] == ""
    assert result.attrs["level"] == 2


def test_anchor_only_for_supporting_types(registry):
    assert "anchor" in attribute_schemas(registry.get("core/paragraph"))
    assert "anchor" not in attribute_schemas(registry.get("core/group"))
    assert "anchor" not in attribute_schemas(registry.get("core/gallery"))


def test_unregistered_block_keeps_raw_attributes(enricher):
    node = block("foo/bar", '<div id="x">custom</div>', attrs={"size": "large"})
    result = enricher.enrich(node)
    assert result.attrs == {"size": "large"}
    assert result.rendered == '<div id="x">custom</div>'


def test_query_attribute_on_gallery(enricher):
    html = '<figure><img src="1.jpg" alt="one"><img src="2.jpg"></figure>'
    result = enricher.enrich(block("core/gallery", html))
    assert result.attrs["images"] == [{"url": "1.jpg", "alt": "one"}, {"url": "2.jpg"}]


def test_meta_attribute_uses_entity(enricher):
    assert enricher.enrich(block("acme/subtitle"), entity_id=2).attrs["subtitle"] == "Second"
    assert enricher.enrich(block("acme/subtitle")).attrs["subtitle"] == ""


def test_inner_blocks_enriched_and_compacted(enricher):
    group = block(
        "core/group",
        '<div class="wp-block-group"></div>',
        inner_blocks=[
            block("core/paragraph", "<p>one</p>"),
            freeform(),
            block("core/heading", '<h2 id="h">Two</h2>'),
        ],
        inner_content=['<div class="wp-block-group">', None, None, None, "</div>"],
    )
    result = enricher.enrich(group)

    assert [child.name for child in result.inner_blocks] == ["core/paragraph", "core/heading"]
    assert result.inner_blocks[0].attrs["content"] == "one"
    assert result.inner_blocks[1].attrs["anchor"] == "h"
    assert result.inner_blocks[1].rendered == '<h2 id="h">Two</h2>'
    assert result.rendered == '<div class="wp-block-group"><p>one</p>\n\n<h2 id="h">Two</h2></div>'


def test_freeform_never_emitted_at_depth(enricher):
    tree = block("core/group", "", inner_blocks=[
        block("core/group", "", inner_blocks=[freeform(), block("core/paragraph", "<p>deep</p>"), freeform()]),
        freeform(),
    ])
    output = enricher.enrich(tree).to_output()

    def names(node):
        yield node["blockName"]
        for child in node["innerBlocks"]:
            yield from names(child)

    assert None not in list(names(output))
    assert output["innerBlocks"][0]["innerBlocks"][0]["attrs"]["content"] == "deep"


def test_input_node_is_not_mutated(enricher):
    node = block("core/paragraph", "<p>hi</p>", inner_blocks=[block("core/paragraph", "<p>c</p>")])
    snapshot = copy.deepcopy(node)
    parsed = BlockNode.model_validate(node)
    enricher.enrich(parsed)
    assert node == snapshot
    assert parsed.attrs == {}
    assert parsed.rendered is None


def test_bad_selector_degrades_to_default(registry):
    registry.register(
        "acme/broken",
        attributes={"title": {"type": "string", "source": "html", "selector": "h2[", "default": "untitled"}},
    )
    enricher = BlockEnricher(registry, AttributeResolver())
    result = enricher.enrich(block("acme/broken", "<h2>Title</h2>"))
    assert result.attrs["title"] == "untitled"
    assert result.rendered == "<h2>Title</h2>"


def test_out_of_range_number_is_sanitized(registry):
    registry.register(
        "acme/stat",
        attributes={
            "value": {"type": "integer", "source": "text", "selector": "span"},
            "ratio": {"type": "number", "source": "text", "selector": "em"},
        },
    )
    enricher = BlockEnricher(registry, AttributeResolver())
    result = enricher.enrich(block("acme/stat", "<p><span>1e999</span><em>inf</em></p>"))
    assert result.attrs["value"] == 0
    assert result.attrs["ratio"] == 0.0
    assert result.rendered == "<p><span>1e999</span><em>inf</em></p>"


def test_shortcodes_expanded_after_render(registry):
    enricher = BlockEnricher(
        registry,
        AttributeResolver(),
        shortcodes=lambda html: html.replace("[year]", "2026"),
    )
    result = enricher.enrich(block("core/paragraph", "<p>(c) [year]</p>"))
    assert result.rendered == "<p>(c) 2026</p>"
    # Attributes come from the unexpanded fragment
    assert result.attrs["content"] == "(c) [year]"


def test_dynamic_block_render_callback(registry):
    registry.register(
        "acme/latest",
        attributes={"count": {"type": "integer", "default": 3}},
        render=lambda attrs, content, node: f"<ul data-count=\"{attrs['count']}\"></ul>",
    )
    enricher = BlockEnricher(registry, AttributeResolver())
    result = enricher.enrich(block("acme/latest"))
    assert result.rendered == '<ul data-count="3"></ul>'


def test_custom_renderer_receives_merged_attributes(registry):
    seen = []

    def renderer(node):
        seen.append(dict(node.attrs))
        return "<rendered/>"

    enricher = BlockEnricher(registry, AttributeResolver(), renderer=renderer)
    result = enricher.enrich(block("core/paragraph", "<p>hi</p>"))
    assert result.rendered == "<rendered/>"
    assert seen[0]["content"] == "hi"
