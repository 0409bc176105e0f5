from __future__ import annotations

import json
import os
import warnings
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path("~/.config/xeenaps/config.json").expanduser()

CONFIG_ENV_OVERRIDES = {
    "supabase_url": "XEENAPS_SUPABASE_URL",
    "supabase_key": "XEENAPS_SUPABASE_KEY",
    "gas_web_app_url": "XEENAPS_GAS_WEB_APP_URL",
    "vip_ads_csv_url": "XEENAPS_VIP_ADS_CSV_URL",
    "ai_provider": "XEENAPS_AI_PROVIDER",
    "ai_model": "XEENAPS_AI_MODEL",
    "ai_api_key": "XEENAPS_AI_API_KEY",
    "ai_max_chars": "XEENAPS_AI_MAX_CHARS",
    "ai_max_tokens": "XEENAPS_AI_MAX_TOKENS",
    "http_timeout_s": "XEENAPS_HTTP_TIMEOUT_S",
    "page_size": "XEENAPS_PAGE_SIZE",
    "profile_name": "XEENAPS_PROFILE_NAME",
    "log_level": "XEENAPS_LOG_LEVEL",
}

_INT_KEYS = {"ai_max_chars", "ai_max_tokens", "page_size"}
_FLOAT_KEYS = {"http_timeout_s"}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("XEENAPS_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def _strip_jsonc(text: str) -> str:
    """Drop // and /* */ comments plus trailing commas, leaving string contents alone."""
    out: list[str] = []
    in_string = False
    escape_next = False
    i = 0
    n = len(text)
    while i < n:
        char = text[i]
        if in_string:
            out.append(char)
            if escape_next:
                escape_next = False
            elif char == "\\":
                escape_next = True
            elif char == '"':
                in_string = False
            i += 1
            continue
        if char == '"':
            in_string = True
            out.append(char)
            i += 1
            continue
        if char == "/" and i + 1 < n and text[i + 1] == "/":
            while i < n and text[i] != "\n":
                i += 1
            continue
        if char == "/" and i + 1 < n and text[i + 1] == "*":
            end = text.find("*/", i + 2)
            if end == -1:
                # leave the opener in place so json.loads reports it
                out.append(text[i:])
                break
            i = end + 2
            continue
        if char == ",":
            j = i + 1
            while j < n and text[j].isspace():
                j += 1
            if j < n and text[j] in "]}":
                i += 1
                continue
        out.append(char)
        i += 1
    return "".join(out)


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        try:
            data = json.loads(_strip_jsonc(raw))
        except json.JSONDecodeError as exc:
            raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return config_path


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class XeenapsConfig:
    supabase_url: str | None = None
    supabase_key: str | None = None
    gas_web_app_url: str | None = None
    vip_ads_csv_url: str | None = None
    # "proxy" routes generation through the storage endpoint's aiProxy action.
    ai_provider: str = "proxy"
    ai_model: str | None = None
    ai_api_key: str | None = None
    ai_max_chars: int = 24000
    ai_max_tokens: int = 2000
    http_timeout_s: float = 30.0
    page_size: int = 25
    profile_name: str = "Xeenaps User"
    log_level: str = "WARNING"


def config_keys() -> list[str]:
    return [f.name for f in fields(XeenapsConfig)]


def _parse_int(value: object, default: int, *, key: str) -> int:
    if value is None:
        return default
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def _parse_float(value: object, default: float, *, key: str) -> float:
    if value is None:
        return default
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def coerce_value(key: str, value: object, default: Any) -> Any:
    if key in _INT_KEYS:
        return _parse_int(value, default, key=key)
    if key in _FLOAT_KEYS:
        return _parse_float(value, default, key=key)
    if value is None:
        return default
    if isinstance(value, str):
        value = value.strip()
        if key == "ai_provider":
            return value.lower() or default
        return value or default
    warnings.warn(f"Invalid value for {key}: {value!r}", RuntimeWarning, stacklevel=2)
    return default


def load_config(path: Path | None = None) -> XeenapsConfig:
    cfg = XeenapsConfig()
    try:
        data = read_config_file(path)
    except ValueError:
        warnings.warn("Ignoring unreadable xeenaps config file", RuntimeWarning, stacklevel=2)
        data = {}
    cfg = _apply_dict(cfg, data)
    cfg = _apply_dict(cfg, get_env_overrides())
    return cfg


def _apply_dict(cfg: XeenapsConfig, data: dict[str, Any]) -> XeenapsConfig:
    for key, value in data.items():
        if not hasattr(cfg, key):
            continue
        setattr(cfg, key, coerce_value(key, value, getattr(cfg, key)))
    return cfg
