from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from goodreads_table.integrations.http_client import (
    ACCEPT_HEADERS,
    DEFAULT_USER_AGENT,
    FORMAT_XML,
    GOODREADS_BASE_URL,
    ConfigurationError,
)

DEFAULT_RATE_INTERVAL_MS = 1000
DEFAULT_TIMEOUT_S = 30.0


def _strip_inline_comment(val: str) -> str:
    in_single = False
    in_double = False
    for i, ch in enumerate(val):
        if ch == "'" and not in_double:
            in_single = not in_single
            continue
        if ch == '"' and not in_single:
            in_double = not in_double
            continue
        if ch == "#" and not in_single and not in_double:
            return val[:i].rstrip()
    return val.rstrip()


def _parse_env_file(path: Path) -> None:
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        k, v = line.split("=", 1)
        k = k.strip()
        v = _strip_inline_comment(v.strip())
        if len(v) >= 2 and v[0] == v[-1] and v[0] in ("'", '"'):
            v = v[1:-1]
        if k and k not in os.environ:
            os.environ[k] = v


def load_dotenv(path: str = ".env") -> Optional[str]:
    """
    Loads environment variables from a .env file without overriding
    variables that are already set.

    Search order:
    1) ENV_PATH (if set)
    2) explicit `path` as provided (relative to CWD or absolute)
    3) project root (parent of the goodreads_table package directory)

    Returns the resolved .env path used, or None if not found.
    """
    candidates: List[Path] = []
    override = os.getenv("ENV_PATH")
    if override:
        candidates.append(Path(override).expanduser())

    p = Path(path).expanduser()
    candidates.append(p if p.is_absolute() else (Path.cwd() / p))
    candidates.append(Path(__file__).resolve().parent.parent / ".env")

    seen = set()
    for c in candidates:
        c = c.resolve()
        if str(c) in seen:
            continue
        seen.add(str(c))
        if c.is_file():
            _parse_env_file(c)
            return str(c)
    return None


@dataclass(frozen=True)
class ClientConfig:
    api_key: str
    base_url: str = GOODREADS_BASE_URL
    response_format: str = FORMAT_XML
    rate_interval_s: float = DEFAULT_RATE_INTERVAL_MS / 1000.0
    timeout_s: float = DEFAULT_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT

    def validate(self) -> None:
        if not (self.api_key or "").strip():
            raise ConfigurationError("Missing GOODREADS_API_KEY (set in .env or environment).")
        if self.response_format not in ACCEPT_HEADERS:
            raise ConfigurationError(
                f"Unknown response format {self.response_format!r} (expected one of {sorted(ACCEPT_HEADERS)})"
            )
        if not math.isfinite(self.rate_interval_s) or self.rate_interval_s < 0:
            raise ConfigurationError(f"Rate interval must be a finite, non-negative number, got {self.rate_interval_s!r}")
        if not math.isfinite(self.timeout_s) or self.timeout_s <= 0:
            raise ConfigurationError(f"Timeout must be a finite, positive number, got {self.timeout_s!r}")
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Base URL must be http(s): {self.base_url}")


def load_config_file(path: str) -> Dict[str, Any]:
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {p}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to read config file: {p} ({e})") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must hold a mapping: {p}")
    return data


def _first(*values: Any) -> Any:
    for v in values:
        if v is not None and v != "":
            return v
    return None


def _to_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e


def build_config(
    *,
    api_key: Optional[str] = None,
    response_format: Optional[str] = None,
    rate_interval_ms: Optional[float] = None,
    timeout_s: Optional[float] = None,
    config_path: Optional[str] = None,
    environ: Optional[Dict[str, str]] = None,
) -> ClientConfig:
    """
    Resolve a ClientConfig. Precedence: explicit arguments, YAML file,
    environment, defaults. The result is validated before it is returned.
    """
    env = os.environ if environ is None else environ
    file_cfg = load_config_file(config_path) if config_path else {}

    key = _first(api_key, file_cfg.get("api_key"), env.get("GOODREADS_API_KEY")) or ""
    fmt = _first(response_format, file_cfg.get("format"), env.get("GOODREADS_FORMAT")) or FORMAT_XML
    interval_ms = _first(
        rate_interval_ms,
        file_cfg.get("rate_interval_ms"),
        env.get("GOODREADS_RATE_INTERVAL_MS"),
    )
    timeout = _first(timeout_s, file_cfg.get("timeout_s"))

    cfg = ClientConfig(
        api_key=str(key).strip(),
        base_url=str(file_cfg.get("base_url") or GOODREADS_BASE_URL).rstrip("/"),
        response_format=str(fmt).strip().lower(),
        rate_interval_s=(
            _to_float("rate_interval_ms", interval_ms) / 1000.0
            if interval_ms is not None
            else DEFAULT_RATE_INTERVAL_MS / 1000.0
        ),
        timeout_s=_to_float("timeout_s", timeout) if timeout is not None else DEFAULT_TIMEOUT_S,
    )
    cfg.validate()
    return cfg
