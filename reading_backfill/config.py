from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


def _env_value(raw: str) -> str:
    """Drop an unquoted trailing `# comment`, then one pair of matching quotes."""
    quote = ""
    for i, ch in enumerate(raw):
        if ch in ("'", '"') and quote in ("", ch):
            quote = "" if quote else ch
        elif ch == "#" and not quote:
            raw = raw[:i]
            break
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ("'", '"'):
        raw = raw[1:-1]
    return raw


def load_dotenv(path: str = ".env") -> Optional[str]:
    """
    Read KEY=VALUE lines from ENV_PATH if set, else from `path`.

    Existing environment variables win. Returns the file used, or None.
    """
    env_file = Path(os.getenv("ENV_PATH") or path).expanduser().resolve()
    if not env_file.is_file():
        return None
    try:
        lines = env_file.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        logger.warning("could not read %s: %r", env_file, e)
        return None
    for line in lines:
        line = line.strip()
        if line.startswith("export "):
            line = line[len("export "):]
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, raw = line.split("=", 1)
        key = key.strip()
        if key:
            os.environ.setdefault(key, _env_value(raw.strip()))
    return str(env_file)


@dataclass
class BackfillConfig:
    google_api_key: str = ""
    library_path: str = "books.json"
    state_path: str = "backfill_state.json"

    cooldown_hours: float = 24.0
    no_data_days: float = 7.0
    max_title_searches: int = 30
    pacing_ms: int = 500
    lang: str = "ja"
    timeout_s: float = 10.0
    retries: int = 0

    @property
    def cooldown_ms(self) -> int:
        return int(self.cooldown_hours * 60 * 60 * 1000)

    @property
    def no_data_ttl_ms(self) -> int:
        return int(self.no_data_days * 24 * 60 * 60 * 1000)

    def validate(self) -> None:
        if self.cooldown_hours < 0:
            raise SystemExit("cooldown_hours must be >= 0.")
        if self.no_data_days <= 0:
            raise SystemExit("no_data_days must be > 0.")
        if self.max_title_searches < 0:
            raise SystemExit("max_title_searches must be >= 0.")
        if self.pacing_ms < 0:
            raise SystemExit("pacing_ms must be >= 0.")
        if self.timeout_s <= 0:
            raise SystemExit("timeout_s must be > 0.")
        if self.retries < 0:
            raise SystemExit("retries must be >= 0.")
        if not (self.lang or "").strip():
            raise SystemExit("lang must not be empty.")


def read_settings_file(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except FileNotFoundError as e:
        raise SystemExit(f"Settings file not found: {path}") from e
    except (OSError, yaml.YAMLError) as e:
        raise SystemExit(f"Failed to read settings file: {path} ({e})") from e
    if not isinstance(data, dict):
        raise SystemExit(f"Settings file must be a mapping: {path}")
    known = {f.name for f in fields(BackfillConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("ignoring unknown settings: %s", ", ".join(unknown))
    logger.info("Loaded settings file: %s", path)
    return {k: v for k, v in data.items() if k in known}


def load_config(settings_path: Optional[str] = None) -> BackfillConfig:
    """Defaults, then the YAML settings file, then environment variables."""
    values: Dict[str, Any] = {}
    if settings_path:
        values.update(read_settings_file(Path(settings_path)))

    env_map = {
        "GOOGLE_BOOKS_API_KEY": "google_api_key",
        "BACKFILL_LIBRARY_PATH": "library_path",
        "BACKFILL_STATE_PATH": "state_path",
    }
    for env_key, attr in env_map.items():
        val = (os.getenv(env_key) or "").strip()
        if val:
            values[attr] = val

    cfg = BackfillConfig(**values)
    cfg.validate()
    return cfg
