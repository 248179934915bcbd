from __future__ import annotations

import argparse
import json
import os
from pathlib import Path

import uvicorn
from rich.panel import Panel

from .api import CONFIG_ENV_VAR
from .config import load_config
from .context import build_context
from .errors import NotesServiceError
from .ingest import import_documents, ingest_note
from .log import console, setup_logging
from .query import answer_question


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="Path to a config YAML file (default: config.yaml).",
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        description="RAG Notes Service - store notes and answer questions over them."
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API.")
    _add_config_option(serve_parser)

    add_parser = subparsers.add_parser("add", help="Store a single note.")
    add_parser.add_argument("text", type=str, help="Note text.")
    _add_config_option(add_parser)

    ask_parser = subparsers.add_parser("ask", help="Ask a question over the stored notes.")
    ask_parser.add_argument("question", type=str, help="Question to ask.")
    _add_config_option(ask_parser)

    import_parser = subparsers.add_parser(
        "import",
        help="Chunk .md, .txt and .pdf files into notes.",
    )
    import_parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory to import (default: data_dir from the config).",
    )
    _add_config_option(import_parser)

    args = parser.parse_args()

    cfg = load_config(Path(args.config))
    setup_logging(cfg.log_level)

    if args.command == "serve":
        os.environ[CONFIG_ENV_VAR] = args.config
        uvicorn.run(
            "rag_notes_service.api:create_app",
            factory=True,
            host=cfg.host,
            port=cfg.port,
        )
        return

    ctx = build_context(cfg)
    try:
        if args.command == "add":
            result = ingest_note(args.text, ctx)
            console.print_json(json.dumps(result.to_dict()))
        elif args.command == "ask":
            answer = answer_question(args.question, ctx)
            console.rule("[bold green]Answer[/bold green]")
            console.print(Panel(answer.strip(), expand=False))
        elif args.command == "import":
            data_dir = Path(args.data_dir) if args.data_dir else cfg.data_dir_resolved
            results = import_documents(data_dir, ctx)
            console.print(f"[bold green]Imported {len(results)} notes.[/bold green]")
        else:  # pragma: no cover - argparse enforces the choices
            parser.print_help()
    except NotesServiceError as exc:
        raise SystemExit(exc.message or exc.__class__.__name__) from exc


if __name__ == "__main__":
    main()
