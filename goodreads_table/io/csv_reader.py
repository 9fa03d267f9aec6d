from __future__ import annotations

import csv
import logging
from typing import Dict, List

from goodreads_table.core.models import BookQuery

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("title", "author")


class CsvFormatError(RuntimeError):
    pass


def _norm_row(row: Dict[str, str]) -> Dict[str, str]:
    return {(k or "").strip().lower(): (v or "").strip() for k, v in row.items() if k is not None}


def read_books_csv(path: str) -> List[BookQuery]:
    """
    Read title/author(/isbn) rows from a CSV file with a header line.

    Rows are returned in file order; rows with neither title nor author are
    skipped.
    """
    try:
        f = open(path, "r", encoding="utf-8-sig", newline="")
    except OSError as e:
        raise CsvFormatError(f"Cannot read CSV: {path} ({e})") from e

    with f:
        reader = csv.DictReader(f)
        headers = {(h or "").strip().lower() for h in (reader.fieldnames or [])}
        missing = [c for c in REQUIRED_COLUMNS if c not in headers]
        if missing:
            raise CsvFormatError(f"CSV {path} is missing column(s): {', '.join(missing)}")

        out: List[BookQuery] = []
        for row in reader:
            r = _norm_row(row)
            if not r.get("title") and not r.get("author"):
                continue
            out.append(BookQuery(title=r.get("title", ""), author=r.get("author", ""), isbn=r.get("isbn", "")))

    logger.info("read %s books from %s", len(out), path)
    return out
