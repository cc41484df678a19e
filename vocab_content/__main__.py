"""CLI entry point for vocab-content.

Usage:
  python -m vocab_content serve [--port PORT] [--host HOST] [--manual]
  python -m vocab_content validate [--data DIR]
  python -m vocab_content stats [--data DIR]
  python -m vocab_content export [--data DIR] [--out FILE]
  python -m vocab_content import FILE [--data DIR] [--overwrite]
"""
from __future__ import annotations

import asyncio
import json
import os
import sys
from pathlib import Path


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "validate":
        _validate(args[1:])
    elif command == "stats":
        _stats(args[1:])
    elif command == "export":
        _export(args[1:])
    elif command == "import":
        _import(args[1:])
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, validate, stats, export, import")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _open_store(args: list[str]):
    """Load the content store from --data or the configured data directory."""
    from vocab_content.config import load_settings
    from vocab_content.errors import DataLoadError
    from vocab_content.loader import DataLoader
    from vocab_content.store import ContentStore

    settings = load_settings()
    data_dir = Path(_parse_flag(args, "--data", str(settings.data_full_path)))
    store = ContentStore(data_dir)
    loader = DataLoader(store)
    try:
        stats = asyncio.run(loader.load_all_data())
    except DataLoadError as e:
        print(f"Failed to load {data_dir}: {e}")
        sys.exit(1)
    return store, loader, stats


def _serve(args: list[str]):
    import uvicorn

    if "--manual" in args:
        os.environ["MANUAL_DATA_MODE"] = "true"

    port = int(_parse_flag(args, "--port", "3000"))
    host = _parse_flag(args, "--host", "127.0.0.1")
    print(f"Starting Vocab Content on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    uvicorn.run(
        "vocab_content.app:app",
        host=host,
        port=port,
        reload=False,
        timeout_graceful_shutdown=5,
    )


def _validate(args: list[str]):
    _, loader, _ = _open_store(args)
    result = loader.validate_data_integrity()

    print("Data validation")
    print("=" * 40)
    for key, value in result.stats.items():
        print(f"{key.replace('_', ' ').capitalize() + ':':24s}{value}")
    if result.errors:
        print(f"\nErrors ({len(result.errors)}):")
        for e in result.errors:
            print(f"  - {e}")
    if result.warnings:
        print(f"\nWarnings ({len(result.warnings)}):")
        for w in result.warnings:
            print(f"  - {w}")
    print(f"\nResult: {'VALID' if result.is_valid else 'INVALID'}")
    if not result.is_valid:
        sys.exit(1)


def _stats(args: list[str]):
    store, _, load_stats = _open_store(args)
    stats = store.get_stats()

    print("Vocab Content Stats")
    print("=" * 40)
    print(f"Definitions:        {stats['total_definitions']}")
    print(f"Sentences:          {stats['total_sentences']}")
    print(f"Similar words:      {stats['total_similar_words']}")
    print(f"Distractors:        {stats['total_distractors']}")
    print(f"Exercise templates: {stats['total_exercise_templates']}")
    print(f"Contexts:           {', '.join(stats['available_contexts']) or '-'}")
    print(f"Load time:          {load_stats.load_time_ms}ms")
    print("\nDifficulty:")
    for level, n in stats["difficulty_distribution"].items():
        print(f"  {level:14s}{n}")


def _export(args: list[str]):
    store, _, _ = _open_store(args)
    payload = json.dumps(store.export_data(), indent=2, ensure_ascii=False)
    out = _parse_flag(args, "--out", "")
    if out:
        Path(out).write_text(payload + "\n", encoding="utf-8")
        print(f"Exported {len(store.get_all_words())} words to {out}")
    else:
        print(payload)


def _import(args: list[str]):
    if not args or args[0].startswith("--"):
        print("Usage: python -m vocab_content import FILE [--data DIR] [--overwrite]")
        sys.exit(1)
    source = Path(args[0])
    data = json.loads(source.read_text(encoding="utf-8"))
    store, _, _ = _open_store(args[1:])

    result = asyncio.run(store.import_data(data, overwrite="--overwrite" in args))
    print(f"Imported {result['imported']}, skipped {result['skipped']}")
    for e in result["errors"]:
        print(f"  - {e}")


if __name__ == "__main__":
    main()
