"""
pagedtree console demo.

Builds the in-memory example tree from configuration, loads a window of
rows and optionally reveals a node, printing the resulting rows.

Usage:
    pagedtree-demo --config settings.json --rows 0 20
    pagedtree-demo --reveal node:4512
"""
import sys
import asyncio
import argparse
from typing import List, Optional

from loguru import logger

from pagedtree.core.config import ConfigManager
from pagedtree.core.errors import TreeDataError
from pagedtree.core.logging import setup_logging
from pagedtree.tree.data_source import TreeDataSource
from pagedtree.tree.example_provider import InMemoryTreeDataProvider


def format_rows(source: TreeDataSource, start: int, end: int) -> List[str]:
    lines = []
    for i, node in enumerate(source.nodes[start:end], start):
        marker = "-" if node.expanded else ("+" if node.expandable else " ")
        label = node.data if node.loaded else "..."
        lines.append(f"{i:>6} {'  ' * node.level}{marker} {label}")
    return lines


async def run(config: ConfigManager, start: int = 0, end: int = 20, reveal: Optional[str] = None) -> List[str]:
    """Load rows ``[start, end)`` (around ``reveal`` when given) and return them formatted."""
    setup_logging(config.data.general.debug_mode, config.data.general.log_dir)

    provider = InMemoryTreeDataProvider.from_settings(config.data.example)
    logger.info(f"Example tree with {provider.node_count} nodes")
    source = TreeDataSource.from_config(provider, config)
    try:
        await source.initialize()
        if reveal is not None:
            index = await source.load_ancestor_path(reveal)
            if index is None:
                logger.warning(f"Node '{reveal}' not found")
            else:
                start, end = max(index - (end - start) // 2, 0), index + (end - start + 1) // 2
        await source.load_range(start, end)
        await source.wait_for_loads()
        return format_rows(source, start, end)
    finally:
        await source.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Console entry point."""
    parser = argparse.ArgumentParser(description="pagedtree - paged tree loading demo")
    parser.add_argument("--config", help="JSON or TOML settings file")
    parser.add_argument("--rows", type=int, nargs=2, default=[0, 20], metavar=("START", "END"),
                        help="Row window to load")
    parser.add_argument("--reveal", help="Node id to expand to and center on")
    args = parser.parse_args(argv)

    config = ConfigManager(args.config)
    try:
        lines = asyncio.run(run(config, args.rows[0], args.rows[1], args.reveal))
    except TreeDataError as e:
        logger.error(f"Demo failed: {e}")
        return 1

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
