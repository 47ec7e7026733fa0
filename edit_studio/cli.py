"""Edit Studio CLI entrypoint."""

from __future__ import annotations

import argparse
from pathlib import Path

from .config import StudioConfig
from .logging_config import configure_logging
from .ui.gradio_app import launch
from .utils import load_dotenv


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="edit-studio", description="Browser UI for prompt-driven image edits")
    parser.add_argument("--host", help="Bind address (default: EDIT_STUDIO_HOST or 127.0.0.1)")
    parser.add_argument("--port", type=int, help="Port (default: EDIT_STUDIO_PORT or 7860)")
    parser.add_argument("--provider", choices=("gemini", "dryrun"), help="Edit provider")
    parser.add_argument("--model", help="Image model name")
    parser.add_argument("--events", type=Path, help="Append diagnostics events to this JSONL file")
    parser.add_argument("--prompt", dest="default_prompt", help="Prompt to pre-fill in the UI")
    parser.add_argument("--log-level", dest="log_level", help="Logging level (default: EDIT_STUDIO_LOG_LEVEL or INFO)")
    return parser


def resolve_config(args: argparse.Namespace) -> StudioConfig:
    return StudioConfig.from_env().with_overrides(
        host=args.host,
        port=args.port,
        provider=args.provider,
        model=args.model,
        events_path=args.events,
        default_prompt=args.default_prompt,
    )


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level)
    launch(resolve_config(args))


if __name__ == "__main__":
    main()
