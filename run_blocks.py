#!/usr/bin/env python3
"""
CLI script to enrich pre-parsed block trees.

Each input file holds the JSON output of a block-grammar parser (a list of
{blockName, attrs, innerHTML, innerBlocks, innerContent} nodes). Block
types come from block.json files; entity metadata from a JSON file of
{entity_id: {key: value}}.

Usage:
    python run_blocks.py post.json --block-types blocks/paragraph blocks/gallery
    python run_blocks.py post.json -e 42 --meta meta.json --cache-dir .block_cache
    python run_blocks.py post*.json -o enriched.json --no-cache
"""

import argparse
import json
import logging
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from rest_blocks.pipeline import BlockPipeline
from rest_blocks.config import PipelineConfig
from rest_blocks.registry import BlockTypeRegistry
from rest_blocks.meta import InMemoryMetadataStore
from rest_blocks.cache import FileCacheStore
from rest_blocks.exceptions import BlocksError
from rest_blocks.logger import setup_logger


def parse_json_blocks(content: str) -> list:
    """Block parser for input that is already parsed to JSON."""
    blocks = json.loads(content)
    if not isinstance(blocks, list):
        raise ValueError("Expected a JSON list of blocks")
    return blocks


def main():
    parser = argparse.ArgumentParser(description="Enrich parsed block trees with resolved attributes")
    parser.add_argument("files", nargs="+", help="JSON files of parsed blocks")
    parser.add_argument("--block-types", "-b", nargs="*", default=[],
                        help="block.json files or directories containing one")
    parser.add_argument("--entity-id", "-e", type=int, default=0, help="Entity the content belongs to")
    parser.add_argument("--meta", "-m", help="JSON file of entity metadata")
    parser.add_argument("--cache-dir", help="Directory for the file cache")
    parser.add_argument("--no-cache", action="store_true", help="Disable caching entirely")
    parser.add_argument("--output", "-o", help="Output JSON file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    setup_logger(level=logging.DEBUG if args.verbose else logging.WARNING)

    registry = BlockTypeRegistry()
    for path in args.block_types:
        block_type = registry.register_from_metadata(path)
        print(f"Registered: {block_type.name}")

    metadata = InMemoryMetadataStore()
    if args.meta:
        metadata = InMemoryMetadataStore(json.loads(Path(args.meta).read_text(encoding="utf-8")))

    overrides = {"cache_enabled": False} if args.no_cache else {}
    pipeline = BlockPipeline(
        parse_json_blocks,
        registry=registry,
        metadata=metadata,
        cache=FileCacheStore(args.cache_dir) if args.cache_dir and not args.no_cache else None,
        config=PipelineConfig.from_env(**overrides)
    )

    results = []

    for filepath in args.files:
        path = Path(filepath)
        print(f"Processing: {path.name}")

        try:
            content = path.read_text(encoding="utf-8")
            blocks = pipeline.process(content, args.entity_id)
            results.append({
                "file": path.name,
                "status": "success",
                "blocks": blocks
            })
            print(f"  ✓ {len(blocks)} blocks")

        except (OSError, ValueError, BlocksError) as e:
            results.append({
                "file": path.name,
                "status": "error",
                "error": str(e)
            })
            print(f"  ✗ Error: {e}")

    output = json.dumps(results, indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"\nSaved to: {args.output}")
    else:
        print("\n" + output)


if __name__ == "__main__":
    main()
