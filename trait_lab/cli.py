"""Command line entry point.

Commands:
- generate: load a trait directory, generate a collection, write a zip archive
  and optionally save the run to the collection database
- list / show / delete: inspect saved collections
"""
from __future__ import annotations

import argparse
import os
import random
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from .config import TraitLabConfig, load_config
from .db import CollectionNotFoundError, SQLiteCollectionStore
from .export import write_archive, write_directory
from .items import trait_frequencies
from .logging_utils import RunLogger, configure_logging, create_logger
from .orchestrator import CollectionOrchestrator, Phase, RunProgress
from .registry import load_registry

CONFIG_ENV = "TRAITLAB_CONFIG"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trait-lab", description="Layered trait collection generator")
    parser.add_argument("--config", type=Path, help=f"YAML/JSON config (default: ${CONFIG_ENV})")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARN or ERROR")
    parser.add_argument("--db", type=Path, help="collection database path")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="generate a collection from a trait directory")
    gen.add_argument("registry", nargs="?", type=Path, help="trait directory or manifest file")
    gen.add_argument("-n", "--size", type=int, help="number of items")
    gen.add_argument("--width", type=int)
    gen.add_argument("--height", type=int)
    gen.add_argument("--seed", type=int)
    gen.add_argument("--name", help="collection name")
    gen.add_argument("--out", type=Path, help="output directory")
    gen.add_argument("--no-zip", action="store_true", help="write loose files instead of a zip archive")
    gen.add_argument("--save", action="store_true", help="save the collection to the database")

    sub.add_parser("list", help="list saved collections")

    show = sub.add_parser("show", help="show a saved collection")
    show.add_argument("collection_id")
    show.add_argument("--export", type=Path, help="write the stored items as a zip archive here")

    delete = sub.add_parser("delete", help="delete a saved collection")
    delete.add_argument("collection_id")
    return parser


def _resolve_config(args: argparse.Namespace) -> TraitLabConfig:
    path = args.config or (Path(os.environ[CONFIG_ENV]) if os.environ.get(CONFIG_ENV) else None)
    config = load_config(path) if path else TraitLabConfig()
    if args.log_level:
        config.log_level = args.log_level.upper()
    if args.db:
        config.paths.database = args.db
    return config


def _apply_generate_overrides(config: TraitLabConfig, args: argparse.Namespace) -> None:
    if args.registry:
        config.paths.registry = args.registry
    if args.size is not None:
        config.run.size = max(0, args.size)
    if args.width:
        config.canvas.width = args.width
    if args.height:
        config.canvas.height = args.height
    if args.seed is not None:
        config.run.seed = args.seed
    if args.name:
        config.collection.name = args.name
    if args.out:
        config.paths.output_dir = args.out


def _progress_printer(logger: RunLogger):
    def report(progress: RunProgress) -> None:
        if progress.phase is Phase.RECORDING and progress.item is not None:
            traits = ", ".join(f"{t.category}={t.trait}" for t in progress.item.traits) or "<empty>"
            logger.log("item", f"{progress.completed}/{progress.total} {traits}", level="DEBUG")

    return report


def cmd_generate(config: TraitLabConfig, args: argparse.Namespace, logger: RunLogger) -> int:
    _apply_generate_overrides(config, args)
    registry = logger.timed(
        "load",
        lambda reg: f"{len(reg)} categories from {config.paths.registry}",
        load_registry,
        config.paths.registry,
    )
    orchestrator = CollectionOrchestrator(
        registry,
        width=config.canvas.width,
        height=config.canvas.height,
        rng=random.Random(config.run.seed),
        yield_delay_s=config.run.yield_delay_s,
        on_progress=_progress_printer(logger),
    )
    run = logger.timed(
        "generate",
        lambda result: f"{len(result)} items",
        orchestrator.run,
        config.run.size,
    )
    if not run.items:
        logger.log("generate", "nothing generated (no categories or traits)", level="WARN")
        return 0

    frequencies = trait_frequencies(run.items)
    index = registry.build_index()
    for trait_id, count in sorted(frequencies.items(), key=lambda entry: -entry[1]):
        variant = index.variant(trait_id)
        label = variant.name if variant is not None else trait_id
        logger.log("stats", f"{label}: {count}", level="DEBUG")

    name = config.collection.name
    if args.no_zip:
        written = write_directory(run.items, config.paths.output_dir, name, description=config.collection.description)
        logger.log("export", f"{len(written)} files in {config.paths.output_dir}")
    else:
        archive = write_archive(run.items, config.paths.output_dir, name, description=config.collection.description)
        logger.log("export", f"archive {archive}")

    if args.save:
        store = SQLiteCollectionStore(config.paths.database)
        collection_id = store.save(
            name,
            config.canvas.width,
            config.canvas.height,
            registry.as_dict(),
            run.items,
        )
        logger.log("save", f"collection {collection_id}")
    return 0


def cmd_list(config: TraitLabConfig, logger: RunLogger) -> int:
    store = SQLiteCollectionStore(config.paths.database)
    summaries = store.list()
    if not summaries:
        logger.log("list", "no saved collections")
    for summary in summaries:
        logger.log(
            "list",
            f"{summary.id}  {summary.name}  {summary.canvas_width}x{summary.canvas_height}  items={summary.item_count}",
        )
    return 0


def cmd_show(config: TraitLabConfig, args: argparse.Namespace, logger: RunLogger) -> int:
    store = SQLiteCollectionStore(config.paths.database)
    record = store.get(args.collection_id)
    logger.log("show", f"{record.name} {record.canvas_width}x{record.canvas_height}, {len(record.categories)} categories")
    for number, item in enumerate(record.items, start=1):
        traits = ", ".join(f"{t.category}={t.trait}" for t in item.traits)
        logger.log("show", f"#{number} {traits}")
    if args.export:
        archive = write_archive(record.items, args.export, record.name)
        logger.log("export", f"archive {archive}")
    return 0


def cmd_delete(config: TraitLabConfig, args: argparse.Namespace, logger: RunLogger) -> int:
    store = SQLiteCollectionStore(config.paths.database)
    store.delete(args.collection_id)
    logger.log("delete", f"collection {args.collection_id} deleted")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    config = _resolve_config(args)
    configure_logging("WARNING" if config.log_level != "DEBUG" else "DEBUG")
    logger = create_logger(config.log_level, config.paths.log_file)
    try:
        if args.command == "generate":
            return cmd_generate(config, args, logger)
        if args.command == "list":
            return cmd_list(config, logger)
        if args.command == "show":
            return cmd_show(config, args, logger)
        if args.command == "delete":
            return cmd_delete(config, args, logger)
        parser.error(f"unknown command {args.command}")
    except CollectionNotFoundError as exc:
        logger.log(args.command, str(exc), level="ERROR")
        return 1
    except (FileNotFoundError, ValueError) as exc:
        logger.log(args.command, str(exc), level="ERROR")
        return 2
    finally:
        logger.close()
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
