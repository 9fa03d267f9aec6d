# goodreads_table/cli.py
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from goodreads_table.config import build_config, load_dotenv
from goodreads_table.enrich.pipeline import EnrichmentPipeline
from goodreads_table.integrations.goodreads import GoodreadsClient
from goodreads_table.integrations.http_client import ConfigurationError
from goodreads_table.io.csv_reader import CsvFormatError, read_books_csv
from goodreads_table.io.markdown import DEFAULT_COLUMNS, render_markdown_table
from goodreads_table.io.utils import atomic_write_text

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="goodreads-table",
        description="Enrich a CSV reading list with Goodreads metadata and print it as a Markdown table",
    )
    ap.add_argument("--log-level", default="info", help="Log level: debug, info, warning, error")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("parse", help="Parse CSV to create Markdown table")
    p.add_argument("filename", help="CSV with title, author and optional isbn columns")
    p.add_argument("--out", default=None, help="Write the table to this file instead of stdout")
    p.add_argument("--format", dest="response_format", choices=["xml", "json"], default=None,
                   help="Response format for book lookups (listing endpoints always use xml)")
    p.add_argument("--rate-interval-ms", type=float, default=None,
                   help="Minimum delay after every API request (default 1000)")
    p.add_argument("--timeout", type=float, default=None, help="HTTP timeout seconds")
    p.add_argument("--config", default=None, help="YAML config file (format, rate_interval_ms, timeout_s, base_url)")
    return ap


def _setup_logging(level_name: str) -> None:
    logging.basicConfig(
        level=LOG_LEVELS.get(level_name.lower(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
    )


def run_parse(args: argparse.Namespace) -> int:
    config = build_config(
        response_format=args.response_format,
        rate_interval_ms=args.rate_interval_ms,
        timeout_s=args.timeout,
        config_path=args.config,
    )
    books = read_books_csv(args.filename)
    logger.info(
        "Books: %s | format=%s | rate_interval=%.3fs",
        len(books),
        config.response_format,
        config.rate_interval_s,
    )

    with GoodreadsClient(config) as client:
        rows = EnrichmentPipeline(client).run(books)

    lines = render_markdown_table(DEFAULT_COLUMNS, rows)
    if args.out:
        atomic_write_text("\n".join(lines) + "\n", args.out)
        logger.info("Done: wrote %s rows -> %s", len(rows), args.out)
    else:
        for line in lines:
            print(line)

    not_enriched = [r for r in rows if not r.enriched]
    if not_enriched:
        logger.warning("%s books kept without Goodreads data.", len(not_enriched))
        for r in not_enriched[:10]:
            logger.warning("not enriched (%s): %s | %s", r.status, r.author, r.title)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.log_level)

    used = load_dotenv(".env")
    if used:
        logger.info("loaded .env: %s", used)
    else:
        logger.debug(".env not found via search paths; relying on existing environment variables")

    try:
        code = run_parse(args)
    except (ConfigurationError, CsvFormatError) as e:
        raise SystemExit(str(e)) from e
    sys.exit(code)


if __name__ == "__main__":
    main()
