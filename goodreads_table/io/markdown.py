from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence

from goodreads_table.core.models import EnrichedBook

ALIGN_LEFT = "left"
ALIGN_RIGHT = "right"
ALIGN_CENTER = "center"


@dataclass(frozen=True)
class Column:
    key: str
    header: str
    align: str = ALIGN_LEFT


# Same layout as the original reading-list table.
DEFAULT_COLUMNS: List[Column] = [
    Column("image", "#"),
    Column("author", "Auteur"),
    Column("title", "Titel"),
    Column("isbn", "ISBN"),
    Column("publication_year", "Publicatiejaar"),
    Column("average_rating", "Goodreads cijfer"),
]


def _display_title(b: EnrichedBook) -> str:
    return b.display_title if b.display_title is not None else b.title


_CELL_GETTERS = {
    "title": _display_title,
    "image": lambda b: b.display_image or "",
}


def cell_value(book: EnrichedBook, key: str) -> str:
    getter: Callable[[EnrichedBook], str] = _CELL_GETTERS.get(key, lambda b: getattr(b, key, None) or "")
    return str(getter(book)).replace("|", "\\|").replace("\n", " ")


def _separator(col: Column, width: int) -> str:
    if col.align == ALIGN_RIGHT:
        return "-" * (width - 1) + ":"
    if col.align == ALIGN_CENTER:
        return ":" + "-" * (width - 2) + ":"
    return ":" + "-" * (width - 1)


def _pad(text: str, col: Column, width: int) -> str:
    if col.align == ALIGN_RIGHT:
        return text.rjust(width)
    if col.align == ALIGN_CENTER:
        return text.center(width)
    return text.ljust(width)


def render_markdown_table(columns: Sequence[Column], books: Iterable[EnrichedBook]) -> List[str]:
    for col in columns:
        if col.align not in (ALIGN_LEFT, ALIGN_RIGHT, ALIGN_CENTER):
            raise ValueError(f"Unknown alignment for column {col.key}: {col.align}")

    cells = [[cell_value(b, c.key) for c in columns] for b in books]
    widths = [max([3, len(c.header)] + [len(row[i]) for row in cells]) for i, c in enumerate(columns)]

    def line(parts: List[str]) -> str:
        return "| " + " | ".join(parts) + " |"

    out = [
        line([_pad(c.header, c, w) for c, w in zip(columns, widths)]),
        line([_separator(c, w) for c, w in zip(columns, widths)]),
    ]
    for row in cells:
        out.append(line([_pad(v, c, w) for v, c, w in zip(row, columns, widths)]))
    return out
