"""Command-line entry point for ingesting documents and asking questions."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence
from uuid import uuid4

from officegpt.bootstrap import AppDependencies, build_dependencies
from officegpt.config import Settings, get_settings
from officegpt.errors import OfficeGPTError
from officegpt.ingestion import validate_upload
from officegpt.metrics.observability import bind_correlation_id, clear_correlation_id, get_logger
from officegpt.models import PathDocument

_logger = get_logger("cli")


def _emit(payload: dict) -> None:
    print(json.dumps(payload, indent=2))


def run_ingest(deps: AppDependencies, settings: Settings, paths: Sequence[Path], name: str | None) -> int:
    exit_code = 0
    for path in paths:
        display_name = name or path.name
        try:
            size = path.stat().st_size if path.exists() else 0
            validate_upload(
                display_name,
                size,
                allowed_extensions=settings.allowed_extensions_tuple,
                max_bytes=settings.max_upload_bytes,
            )
            result = deps.pipeline.ingest(PathDocument(path=path, original_name=display_name))
        except OfficeGPTError as exc:
            _emit({"success": False, "error": "Failed to process document", "details": str(exc), "filename": display_name})
            exit_code = 1
            continue
        _emit(
            {
                "success": True,
                "message": "Document uploaded and indexed successfully",
                "filename": result.source,
                "chunks": result.chunk_count,
            },
        )
    return exit_code


def run_ask(deps: AppDependencies, question: str) -> int:
    try:
        answer = deps.orchestrator.answer(question)
    except OfficeGPTError as exc:
        _emit({"success": False, "error": "Failed to process message", "details": str(exc)})
        return 1
    _emit({"response": answer.response_text, "sources": answer.source_count})
    return 0


def run_health(deps: AppDependencies, settings: Settings) -> int:
    try:
        chunks = deps.store.count()
    except OfficeGPTError as exc:
        _emit({"status": "unhealthy", "service": settings.assistant_name, "details": str(exc)})
        return 1
    _emit({"status": "healthy", "service": settings.assistant_name, "chunks": chunks})
    return 0


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="officegpt", description="Index documents and ask grounded questions.")
    subcommands = parser.add_subparsers(dest="command", required=True)

    ingest = subcommands.add_parser("ingest", help="Index one or more documents")
    ingest.add_argument("paths", nargs="+", type=Path, help="Files to index")
    ingest.add_argument("--name", type=str, default=None, help="Original filename to record as the source")

    ask = subcommands.add_parser("ask", help="Answer a question from the indexed documents")
    ask.add_argument("question", type=str, help="Question to answer")

    subcommands.add_parser("health", help="Report vector store reachability")
    args = parser.parse_args(argv)
    if args.command == "ingest" and args.name and len(args.paths) > 1:
        parser.error("--name can only be used when ingesting a single file")
    return args


def main(argv: Sequence[str] | None = None, *, deps: AppDependencies | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    settings = get_settings()
    deps = deps or build_dependencies(settings)
    bind_correlation_id(uuid4().hex)
    try:
        _logger.debug("cli.command", command=args.command)
        if args.command == "ingest":
            return run_ingest(deps, settings, args.paths, args.name)
        if args.command == "ask":
            return run_ask(deps, args.question)
        return run_health(deps, settings)
    finally:
        clear_correlation_id()


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
