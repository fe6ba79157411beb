"""Main entry point for the markdown-db command line."""

import argparse
import json
import logging
import sqlite3
import sys
from pathlib import Path

from markdown_db.config import Config, get_config, set_in_memory_override
from markdown_db.index import Index
from markdown_db.markdown import Collection, Dialect, Obsidian, Vault
from markdown_db.vaults import read_vaults

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_SERIALIZATION = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markdown-db",
        description="markdown-db helps with searching and navigating vaults of markdown documents",
    )
    parser.add_argument(
        "--in-memory",
        action="store_true",
        help="Use an in-memory index (env: MARKDOWN_DB_IN_MEMORY)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Use verbose output",
    )
    parser.add_argument(
        "--vault",
        action="append",
        type=Path,
        default=[],
        metavar="DIR",
        help="Index this directory instead of the Obsidian vaults (repeatable)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="Search for documents matching a query")
    search.add_argument("query", nargs="*", help="Search query")

    commands.add_parser("reset", help="Clear and reinitialize the index")
    commands.add_parser("info", help="Show document count and index location")
    return parser


def resolve_collections(
    config: Config, dialect: Dialect, vault_dirs: list[Path] | None = None
) -> list[Collection]:
    """Collections to index: explicit directories, else Obsidian's vaults."""
    directories = vault_dirs or config.vaults
    if directories:
        return [Vault(path, dialect) for path in directories]
    return list(read_vaults(config.obsidian_config, dialect))


def open_index(config: Config) -> Index:
    if config.in_memory:
        return Index.open_in_memory()
    return Index.open(config.db_path)


def search(index: Index, collections: list[Collection], query: str) -> int:
    index.refresh(collections)

    if not query.strip():
        print(f"Index contains {index.size()} documents")
        return EXIT_OK

    entries = index.search(query)
    try:
        output = json.dumps(
            [entry.to_dict() for entry in entries], indent=2, ensure_ascii=False
        )
    except (TypeError, ValueError) as e:
        logger.error("Failed to serialize results to JSON: %s", e)
        return EXIT_SERIALIZATION
    print(output)
    return EXIT_OK


def run(args: argparse.Namespace, config: Config) -> int:
    """Run one command against the index."""
    index = open_index(config)
    try:
        if args.command == "search":
            collections = resolve_collections(config, Obsidian(), args.vault)
            return search(index, collections, " ".join(args.query))

        if args.command == "reset":
            index.reset()
            print(f"Index reset at {index.location}")
            return EXIT_OK

        if args.command == "info":
            print(f"Index contains {index.size()} documents")
            print(f"Index location: {index.location}")
            return EXIT_OK

        raise ValueError(f"Unknown command {args.command!r}")
    finally:
        index.close()


def main(argv: list[str] | None = None) -> None:
    """Main function - parses arguments and runs a command."""
    args = build_parser().parse_args(argv)

    # Configure logging here to avoid side effects on import
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.in_memory:
        set_in_memory_override(True)

    try:
        config = get_config()
        logger.debug("Index: %s", "in memory" if config.in_memory else config.db_path)
        code = run(args, config)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(EXIT_INTERRUPTED)
    except sqlite3.Error:
        logger.exception("Index storage error")
        sys.exit(EXIT_ERROR)
    except (ValueError, OSError):
        logger.exception("markdown-db failed")
        sys.exit(EXIT_ERROR)
    sys.exit(code)


if __name__ == "__main__":
    main()
