"""AMC 8 Coach CLI entrypoint: ``python -m amc8_coach.main``."""

from __future__ import annotations

import argparse
import logging
import sys

from .llm_client import get_llm_runner
from .observability.logging_setup import configure_logging
from .orchestration.workflow import run_workflow
from .util.console import console


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="amc8_coach", description="AMC 8 practice coach")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use the bundled question bank and rule-based advice only.",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP app with uvicorn instead of the terminal loop.",
    )
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = _parse_args(argv)

    if args.serve:
        import uvicorn

        uvicorn.run("amc8_coach.api:app", host=args.host, port=args.port)
        return

    configure_logging(default_format="text")
    # Keep the interactive screen readable.
    logging.getLogger().setLevel(logging.WARNING)

    offline = args.offline
    llm_run = None
    if not offline:
        llm_run = get_llm_runner()
    if llm_run is None and not offline:
        console.print("[yellow]No model credentials. Switching to offline mode.[/yellow]")
        offline = True

    try:
        run_workflow(offline=offline, llm_run=llm_run)
    except (KeyboardInterrupt, EOFError):
        console.print("\n[dim]Session cancelled.[/dim]")
        sys.exit(0)


if __name__ == "__main__":
    main()
