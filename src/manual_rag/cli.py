"""Command-line entry point (``manual-rag``).

Examples::

    manual-rag ingest ABC-100 https://example.com/manuals/abc-100.pdf
    manual-rag ingest-all
    manual-rag ask "What is the operating temperature range?" --document-id ABC-100
    manual-rag status ABC-100
    manual-rag wipe --yes
    manual-rag serve --port 8080
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel

from manual_rag.config import settings
from manual_rag.container import RagServices, build_services
from manual_rag.errors import classify_error
from manual_rag.events import configure_logging


def _print(payload: Any) -> None:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="manual-rag", description="Q&A over equipment manuals")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("ingest", help="Ingest one manual")
    p.add_argument("document_id")
    p.add_argument("source_uri", help="http(s) URL, file:// URI or local path")

    sub.add_parser("ingest-all", help="Ingest every registered manual")

    p = sub.add_parser("ask", help="Ask a question")
    p.add_argument("question")
    p.add_argument("--document-id", default=None)

    p = sub.add_parser("status", help="Processing status")
    p.add_argument("document_id", nargs="?", default=None)

    p = sub.add_parser("wipe", help="Delete every stored chunk")
    p.add_argument("--yes", action="store_true", help="Actually delete (otherwise show an overview)")

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default="0.0.0.0")
    p.add_argument("--port", type=int, default=8080)
    return parser


def run_command(args: argparse.Namespace, services: RagServices) -> int:
    """Execute one parsed command; returns the process exit code."""
    if args.command == "ingest":
        document = services.registry.add(args.document_id, args.source_uri)
        outcome = services.pipeline.ingest(document)
        _print(outcome)
        return 0 if outcome.success else 1

    if args.command == "ingest-all":
        summary = services.orchestrator.run()
        _print(summary)
        return 0 if summary.failed == 0 else 1

    if args.command == "ask":
        _print(services.qa.ask(args.question, args.document_id))
        return 0

    if args.command == "status":
        _print(services.maintenance.status(args.document_id))
        return 0

    if args.command == "wipe":
        if not args.yes:
            _print(services.maintenance.overview())
            return 0
        report = services.maintenance.wipe()
        _print({"success": True, "message": report.message, **report.model_dump(by_alias=True)})
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or settings.log_level)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("manual_rag.serving.app:app", host=args.host, port=args.port)
        return 0

    try:
        return run_command(args, build_services(settings))
    except Exception as exc:
        report = classify_error(exc)
        _print({"error": report.error, "details": report.details, "status_code": report.status_code})
        return 1


if __name__ == "__main__":
    sys.exit(main())
