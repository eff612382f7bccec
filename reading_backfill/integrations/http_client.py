from __future__ import annotations

import json
import logging
import random
import time
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

USER_AGENT = "reading-backfill/1.0"
RETRYABLE_STATUSES = (500, 502, 503, 504)


class ProviderError(RuntimeError):
    pass


class RateLimitError(ProviderError):
    def __init__(self, label: str, status_code: int, body_preview: str = "") -> None:
        super().__init__(f"{label} rate limited (status={status_code})")
        self.label = label
        self.status_code = status_code
        self.body_preview = body_preview


def _safe_body_preview(resp: requests.Response, limit: int = 500) -> str:
    try:
        if "application/json" in (resp.headers.get("Content-Type") or "").lower():
            try:
                text = json.dumps(resp.json(), ensure_ascii=False)
            except ValueError:
                text = resp.text or ""
        else:
            text = resp.text or ""
    except Exception:
        return "<unavailable>"
    text = text.replace("\r", " ").replace("\n", " ").strip()
    if len(text) > limit:
        return text[:limit].rstrip() + "..."
    return text


def make_session() -> requests.Session:
    s = requests.Session()
    s.headers.update({
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
    })
    return s


def _sleep_jitter(base: float, jitter: float = 0.25) -> None:
    time.sleep(max(0.0, base + random.random() * jitter))


def get_json(
    session: requests.Session,
    url: str,
    *,
    params: Optional[dict] = None,
    timeout_s: float = 10.0,
    retries: int = 0,
    label: str = "",
    rate_limit_status: Optional[int] = None,
) -> Optional[Any]:
    """
    GET a JSON document.

      - rate_limit_status (if given) raises RateLimitError at once, never retried
      - 5xx and network errors are retried `retries` times with backoff + jitter
      - any other non-2xx, an empty body or undecodable JSON returns None
      - network errors that survive the retries raise ProviderError
    """
    label = label or url
    backoff = 1.0
    for attempt in range(1, retries + 2):
        try:
            logger.debug(
                "request | label=%s | url=%s | params=%s | attempt=%s/%s",
                label,
                url,
                _redact(params),
                attempt,
                retries + 1,
            )
            r = session.get(url, params=params, timeout=timeout_s)
        except requests.RequestException as e:
            if attempt <= retries:
                logger.warning("request error | label=%s | err=%r (retrying)", label, e)
                _sleep_jitter(backoff, 0.5)
                backoff = min(30.0, backoff * 2)
                continue
            raise ProviderError(f"{label} request failed: {e}") from e

        if rate_limit_status is not None and r.status_code == rate_limit_status:
            preview = _safe_body_preview(r)
            logger.warning("quota exhausted | label=%s | status=%s", label, r.status_code)
            raise RateLimitError(label, r.status_code, preview)

        if r.status_code in RETRYABLE_STATUSES and attempt <= retries:
            logger.warning("retrying | label=%s | status=%s | backoff=%s", label, r.status_code, backoff)
            _sleep_jitter(backoff, 0.5)
            backoff = min(30.0, backoff * 2)
            continue

        if r.status_code >= 400:
            logger.debug(
                "http error | label=%s | status=%s | body=%s",
                label,
                r.status_code,
                _safe_body_preview(r),
            )
            return None

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError:
            logger.debug("malformed json | label=%s | body=%s", label, _safe_body_preview(r))
            return None
    return None


def _redact(params: Optional[dict]) -> Optional[dict]:
    if not params or "key" not in params:
        return params
    return {**params, "key": "***"}
