from __future__ import annotations

import argparse
import asyncio
import json
import logging
import re
import sys
from pathlib import Path
from typing import TextIO

from .config import Settings, find_config
from .indexer import IndexerError, LibraryIndexer
from .sink import JsonLinesSink

LOG_FORMAT = "%(levelname).1s | %(name)s | %(message)s"

C_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",  # Cyan
    logging.INFO: "\033[37m",  # Light gray
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",  # Red
    logging.CRITICAL: "\033[35m",  # Magenta
}


class ShortPathFormatter(logging.Formatter):
    """Strips library-root prefixes so log lines show library-relative paths."""

    def __init__(self, fmt: str, roots: list[Path]) -> None:
        super().__init__(fmt)
        # Longest first so nested roots are stripped correctly.
        self.roots = sorted((str(root) for root in roots if root), key=len, reverse=True)

    def _shorten(self, message: str) -> str:
        for root in self.roots:
            if not message:
                break
            message = message.replace(f"{root}/", "")
            # Bare root, but not as the prefix of a longer name (/lib vs /library).
            message = re.sub(re.escape(root) + r"(?![\w.-])", "", message)
        return message

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return self._shorten(message)


class ColorFormatter(ShortPathFormatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{C_RESET}"


class WarningBufferHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.records: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:  # pragma: no cover
            msg = record.getMessage()
        self.records.append(msg)


def configure_logging(level_name: str, roots: list[Path]) -> WarningBufferHandler:
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    console = logging.StreamHandler(sys.stderr)
    formatter_cls = ColorFormatter if sys.stderr.isatty() else ShortPathFormatter
    console.setFormatter(formatter_cls(LOG_FORMAT, roots))
    root_logger.addHandler(console)

    warn_buffer = WarningBufferHandler()
    warn_buffer.setFormatter(ShortPathFormatter(LOG_FORMAT, roots))
    root_logger.addHandler(warn_buffer)

    logging.getLogger("watchdog").setLevel(logging.WARNING)
    return warn_buffer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Index media libraries into typed entity trees")
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--log-level", default="INFO", help="Python logging level")
    parser.add_argument(
        "--output",
        type=Path,
        help="Write resolved entities to this file (JSON Lines) instead of stdout",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    scan_parser = subparsers.add_parser("scan", help="Scan configured libraries once")
    scan_parser.add_argument(
        "--library",
        action="append",
        dest="libraries",
        default=None,
        help="Only scan this library (repeatable)",
    )
    resolve_parser = subparsers.add_parser(
        "resolve", help="Resolve a single directory and print its entity tree"
    )
    resolve_parser.add_argument("directory", type=Path, help="Directory inside a configured library")
    watch_parser = subparsers.add_parser(
        "watch", help="Scan, then re-resolve directories as they change"
    )
    watch_parser.add_argument(
        "--no-initial-scan",
        action="store_true",
        help="Start watching without a full scan first",
    )
    return parser


def _open_output(path: Path | None) -> TextIO:
    if path is None:
        return sys.stdout
    path.parent.mkdir(parents=True, exist_ok=True)
    return path.open("w", encoding="utf-8")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = Settings.load(find_config(args.config))
    warn_buffer = configure_logging(args.log_level, settings.roots)
    logger = logging.getLogger(__name__)

    indexer = LibraryIndexer(settings)
    handle = _open_output(args.output)
    sink = JsonLinesSink(handle)
    try:
        match args.command:
            case "scan":
                stats = asyncio.run(indexer.run_scan(sink, library_names=args.libraries))
                logger.info(
                    "%d libraries, %d directories visited, %d entities written",
                    len(stats.libraries),
                    stats.directories,
                    sink.count,
                )
            case "resolve":
                resolved = indexer.resolve_path(args.directory)
                if resolved is None:
                    print(f"No resolver claimed {args.directory}", file=sys.stderr)
                    raise SystemExit(1)
                if args.output is None:
                    print(json.dumps(resolved.to_record(), indent=2, ensure_ascii=False))
                else:
                    sink.write(resolved)
            case "watch":
                try:
                    asyncio.run(indexer.run_watch(sink, initial_scan=not args.no_initial_scan))
                except KeyboardInterrupt:
                    logger.info("Stopped watching")
            case _:
                parser.error("Unknown command")
    except IndexerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(2)
    finally:
        if handle is not sys.stdout:
            handle.close()
        if warn_buffer.records:
            print("\n\033[33mWarnings/Errors summary:\033[0m", file=sys.stderr)
            for line in warn_buffer.records:
                print(f" - {line}", file=sys.stderr)


if __name__ == "__main__":  # pragma: no cover
    main()
