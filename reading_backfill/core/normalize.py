from __future__ import annotations

import re

ISBN13_RE = re.compile(r"^\d{13}$")

_HTML_RE = re.compile(r"<[^>]*>")
_SEPARATORS_RE = re.compile(r"[-\s]")


def normalize_isbn(x: str) -> str:
    x = (x or "").strip()
    x = re.sub(r"[^0-9Xx]", "", x).upper()
    return x


def strip_isbn_separators(x: str) -> str:
    return _SEPARATORS_RE.sub("", x or "")


def isbn13_check_digit(core12: str) -> int:
    s = 0
    for i, ch in enumerate(core12[:12]):
        s += int(ch) * (1 if i % 2 == 0 else 3)
    return (10 - (s % 10)) % 10


def is_valid_isbn13(isbn13: str) -> bool:
    isbn13 = normalize_isbn(isbn13)
    if not ISBN13_RE.match(isbn13):
        return False
    return isbn13_check_digit(isbn13[:12]) == int(isbn13[12])


def isbn10_to_isbn13(isbn10: str) -> str:
    """
    Prefix the first nine digits with 978 and recompute the check digit.

    The ISBN-10 check digit is discarded, so inputs with a bad checksum still
    convert; registries key on the 13-digit form either way.
    """
    isbn10 = normalize_isbn(isbn10)
    if len(isbn10) != 10 or not isbn10[:9].isdigit():
        return ""
    core = "978" + isbn10[:9]
    return f"{core}{isbn13_check_digit(core)}"


def to_isbn13(isbn: str) -> str:
    clean = strip_isbn_separators(isbn)
    if len(clean) == 10:
        return isbn10_to_isbn13(clean)
    return clean


def strip_markup(text: str) -> str:
    if not text:
        return ""
    return _HTML_RE.sub("", str(text))


def format_pubdate(pubdate: str) -> str:
    pd = (pubdate or "").strip()
    if len(pd) == 8:
        return f"{pd[0:4]}-{pd[4:6]}-{pd[6:8]}"
    if len(pd) == 6:
        return f"{pd[0:4]}-{pd[4:6]}"
    return pd


def is_low_precision_date(date: str) -> bool:
    # year-only ("2019") or shorter
    return bool(date) and len(date) <= 4


def is_more_precise_date(current: str, incoming: str) -> bool:
    """True when `incoming` should replace a year-only `current` date."""
    return is_low_precision_date(current) and len(incoming or "") > len(current)
