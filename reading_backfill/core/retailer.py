from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

AMAZON_HOSTS = {
    "amazon.co.jp",
    "www.amazon.co.jp",
    "amazon.com",
    "www.amazon.com",
    "m.amazon.co.jp",
    "m.amazon.com",
}
SHORT_HOSTS = {"amzn.to", "amzn.asia"}

# A bare 13-digit ISBN in the path wins over the 10-character ASIN form.
_ASIN_RE = re.compile(
    r"(?:/dp/|/gp/product/|/product/|/ASIN/)(\d{13}|[A-Z0-9]{10})",
    re.IGNORECASE,
)


def is_amazon_url(url: str) -> bool:
    try:
        host = (urlparse(url or "").hostname or "").lower()
    except ValueError:
        return False
    return host in AMAZON_HOSTS or host in SHORT_HOSTS or host.startswith("amazon.")


def extract_asin(url: str) -> Optional[str]:
    m = _ASIN_RE.search(url or "")
    return m.group(1) if m else None


def is_likely_isbn(asin: str) -> bool:
    # Physical books carry their ISBN-10 as ASIN; Kindle editions start with "B".
    return bool(asin) and asin[0].isdigit()
