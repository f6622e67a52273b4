"""Tests for the block-type registry, validator and configuration."""

import json

import pytest

from rest_blocks.config import PipelineConfig
from rest_blocks.exceptions import BlockTypeError
from rest_blocks.registry import BlockTypeRegistry
from rest_blocks.schemas import AttributeSchema, AttributeSource, BlockNode
from rest_blocks.validation import SchemaValidator


# --- Registry ---

def test_register_and_lookup():
    registry = BlockTypeRegistry()
    block_type = registry.register(
        "acme/card",
        attributes={"title": {"type": "string", "source": "text", "selector": "h3"}},
        supports={"anchor": True},
    )
    assert registry.get("acme/card") is block_type
    assert "acme/card" in registry
    assert block_type.supports_anchor
    assert block_type.attributes["title"].source is AttributeSource.TEXT
    assert registry.get("acme/missing") is None
    assert registry.get(None) is None


def test_register_rejects_duplicates_and_bad_names():
    registry = BlockTypeRegistry()
    registry.register("acme/card")
    with pytest.raises(BlockTypeError):
        registry.register("acme/card")
    with pytest.raises(BlockTypeError):
        registry.register("Card")


def test_register_rejects_unknown_source():
    registry = BlockTypeRegistry()
    with pytest.raises(BlockTypeError) as exc_info:
        registry.register("acme/card", attributes={"title": {"source": "children"}})
    assert exc_info.value.block_name == "acme/card"


def test_unregister():
    registry = BlockTypeRegistry()
    registry.register("acme/card")
    registry.unregister("acme/card")
    assert not registry.is_registered("acme/card")
    with pytest.raises(BlockTypeError):
        registry.unregister("acme/card")


def test_register_from_block_json(tmp_path):
    block_dir = tmp_path / "quote"
    block_dir.mkdir()
    (block_dir / "block.json").write_text(json.dumps({
        "name": "acme/quote",
        "title": "Quote",
        "attributes": {
            "value": {"type": "string", "source": "html", "selector": "blockquote", "default": ""},
            "citation": {"type": "string", "source": "html", "selector": "cite"},
        },
        "supports": {"anchor": True, "html": False},
    }))

    registry = BlockTypeRegistry()
    block_type = registry.register_from_metadata(block_dir)
    assert block_type.title == "Quote"
    assert registry.names() == ["acme/quote"]
    assert set(block_type.attributes) == {"value", "citation"}


def test_register_from_missing_block_json(tmp_path):
    with pytest.raises(BlockTypeError):
        BlockTypeRegistry().register_from_metadata(tmp_path / "nothing")


# --- Schemas ---

def test_attribute_schema_keeps_validation_keywords():
    schema = AttributeSchema(type="string", source="attribute", selector="a",
                             attribute="href", enum=["a", "b"], default="a")
    assert schema.validation_schema() == {"type": "string", "enum": ["a", "b"]}


def test_block_node_accepts_parser_output():
    node = BlockNode.model_validate({
        "blockName": "core/paragraph",
        "attrs": [],
        "innerHTML": "<p>x</p>",
        "innerBlocks": [],
        "innerContent": ["<p>x</p>"],
    })
    assert node.name == "core/paragraph"
    assert node.attrs == {}
    assert node.to_output()["innerHTML"] == "<p>x</p>"


# --- Validator ---

@pytest.mark.parametrize("value, schema, expected", [
    ("5", {"type": "integer"}, 5),
    ("2.5", {"type": "number"}, 2.5),
    ("nope", {"type": "integer"}, 0),
    ("1e999", {"type": "integer"}, 0),
    ("nan", {"type": "integer"}, 0),
    ("inf", {"type": "number"}, 0.0),
    ("-1e999", {"type": "number"}, 0.0),
    ("0", {"type": "boolean"}, False),
    (12, {"type": "string"}, "12"),
    ("a, b c", {"type": "array"}, ["a", "b", "c"]),
    ("1,2", {"type": "array", "items": {"type": "integer"}}, [1, 2]),
    ("text", {"type": "object"}, {}),
    ("7", {"type": ["integer", "string"]}, "7"),
    (None, {"type": "null"}, None),
])
def test_sanitize(value, schema, expected):
    assert SchemaValidator().sanitize(value, schema) == expected


def test_validate_ignores_unknown_types():
    validator = SchemaValidator()
    assert validator.validate("<b>x</b>", {"type": "rich-text"})
    assert validator.validate(3, {"type": "integer", "minimum": 1})
    assert not validator.validate(0, {"type": "integer", "minimum": 1})


# --- Config ---

def test_config_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("REST_BLOCKS_CACHE", "false")
    monkeypatch.setenv("REST_BLOCKS_CACHE_EXPIRATION", "3600")
    monkeypatch.setenv("REST_BLOCKS_HTML_PARSER", "lxml")
    config = PipelineConfig.from_env(env_file=str(tmp_path / "absent.env"), multisite=True)
    assert config.cache_enabled is False
    assert config.cache_expiration == 3600
    assert config.html_parser == "lxml"
    assert config.multisite is True
    assert config.max_query_depth == 8


def test_config_defaults():
    config = PipelineConfig()
    assert config.cache_enabled is True
    assert config.multisite is False
    assert config.cache_expiration == 0


# --- Metadata store ---

def test_metadata_store_round_trip():
    from rest_blocks.meta import InMemoryMetadataStore

    store = InMemoryMetadataStore({"3": {"subtitle": "x"}})
    assert store.get(3, "subtitle") == "x"
    store.set(3, "tags", ["a"])
    assert store.get_all(3) == {"subtitle": "x", "tags": ["a"]}
    assert store.delete(3, "subtitle") is True
    assert store.delete(3, "subtitle") is False
    assert store.get(3, "subtitle") is None
    assert store.get_all(99) == {}


# --- Logging ---

def test_setup_logger_levels_and_file(tmp_path):
    import logging

    from rest_blocks.logger import get_module_logger, setup_logger

    log_file = tmp_path / "blocks.log"
    test_logger = setup_logger("rest_blocks_test", level="debug", log_file=str(log_file))
    setup_logger("rest_blocks_test", level=logging.WARNING, log_file=str(log_file))
    try:
        assert test_logger.level == logging.WARNING
        assert len(test_logger.handlers) == 2
        test_logger.warning("cache miss")
        for handler in test_logger.handlers:
            handler.flush()
        assert "rest_blocks_test - WARNING - cache miss" in log_file.read_text()
        assert get_module_logger("pipeline").name == "rest_blocks.pipeline"
        with pytest.raises(ValueError):
            setup_logger("rest_blocks_test", level="chatty")
    finally:
        for handler in list(test_logger.handlers):
            test_logger.removeHandler(handler)
            handler.close()
