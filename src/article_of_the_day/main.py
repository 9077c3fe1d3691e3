#!/usr/bin/env python3
"""
Article of the Day

Entry point for the article-of-the-day service.
Fetches feeds, picks the most relevant new article, summarizes and archives it.

Usage:
    article-of-the-day serve      # Web app + daily scheduler (default)
    article-of-the-day run        # One pipeline run
    article-of-the-day show       # Print the current article
"""

import argparse
import logging
import sys

import uvicorn

from .config.settings import settings
from .pipeline.orchestrator import RunStatus, build_orchestrator


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Article of the Day")

    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=["serve", "run", "show"],
        help="serve the web app, run the pipeline once, or show the current article",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"Port for the web app (default: {settings.port})",
    )

    parser.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Serve without the daily trigger",
    )

    parser.add_argument(
        "--no-summary",
        action="store_true",
        help="Skip LLM summary enrichment",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Debug logging",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.no_summary:
        settings.enrichment_enabled = False

    if args.command == "serve":
        from .app.main import create_app

        scheduler_enabled = settings.scheduler_enabled and not args.no_scheduler
        uvicorn.run(create_app(scheduler_enabled=scheduler_enabled), host=settings.host, port=args.port)
        return 0

    orchestrator = build_orchestrator(settings)
    orchestrator.load_current()

    if args.command == "show":
        article = orchestrator.current_article
        if article is None:
            print("Article not yet available")
            return 0
        print(article.title)
        print(article.link)
        if article.summary:
            print(f"\n{article.summary}")
        return 0

    result = orchestrator.run_sync()
    print(f"Run finished: {result.status.value}")
    if result.status == RunStatus.APPENDED:
        print(f"   {result.article.title}")
        print(f"   {result.article.link}")
    if result.error:
        print(f"   Error: {result.error}")
    return 0 if result.ok else 1


def cli() -> None:
    """CLI entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
