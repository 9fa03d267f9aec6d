from __future__ import annotations

import re

ISBN10_RE = re.compile(r"^\d{9}[\dX]$")
ISBN13_RE = re.compile(r"^\d{13}$")
BOOK_ID_RE = re.compile(r"^\d+$")


def normalize_isbn(x: str) -> str:
    x = (x or "").strip()
    x = re.sub(r"[^0-9Xx]", "", x).upper()
    return x


def is_valid_isbn10(isbn10: str) -> bool:
    isbn10 = normalize_isbn(isbn10)
    if not ISBN10_RE.match(isbn10):
        return False
    total = sum(i * (10 if ch == "X" else int(ch)) for i, ch in enumerate(isbn10, start=1))
    return total % 11 == 0


def is_valid_isbn13(isbn13: str) -> bool:
    isbn13 = normalize_isbn(isbn13)
    if not ISBN13_RE.match(isbn13):
        return False
    digits = [int(c) for c in isbn13]
    s = sum(d * (1 if i % 2 == 0 else 3) for i, d in enumerate(digits[:12]))
    return (10 - (s % 10)) % 10 == digits[12]


def looks_like_isbn(x: str) -> bool:
    return is_valid_isbn13(x) or is_valid_isbn10(x)


def is_valid_book_id(book_id: str) -> bool:
    return bool(BOOK_ID_RE.match((book_id or "").strip()))


def markdown_link(text: str, url: str) -> str:
    return f"[{text}]({url})"


def markdown_image(alt: str, url: str) -> str:
    return f"![{alt}]({url})"
