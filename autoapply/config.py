"""Load the settings document and env configuration."""
from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from autoapply.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = Path(os.environ.get("AUTOAPPLY_CONFIG_DIR", ROOT_DIR / "config"))
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
DATA_DIR: Path = Path(os.environ.get("AUTOAPPLY_DATA_DIR", ROOT_DIR / "data"))
JOBS_PATH: Path = DATA_DIR / "jobs.json"
SCREENSHOTS_DIR: Path = DATA_DIR / "screenshots"

DEFAULT_SETTINGS: dict[str, Any] = {
    "llm": {
        "provider": "groq",
        "api_key": "",
        "model": "llama3-8b-8192",
    },
    "ocr": {
        "provider": "tesseract",
        "api_key": "",
    },
    "resume": {
        "path": "",
    },
    "email": {
        "smtp_host": "smtp.gmail.com",
        "smtp_port": 587,
        "user": "",
        "password": "",
        "from_email": "",
        "to_email": "",
    },
    "job_search": {
        "serpapi_key": "",
        "default_query": "software engineer",
        "default_location": "San Francisco, CA",
        "sources": ["google", "linkedin", "indeed"],
        "auto_scrape": False,
        "scrape_interval": 24,
    },
}

# Blank secrets in the settings document fall back to these env vars.
_ENV_FALLBACKS: dict[tuple[str, str], str] = {
    ("ocr", "api_key"): "GOOGLE_VISION_API_KEY",
    ("email", "user"): "SMTP_USER",
    ("email", "password"): "SMTP_PASSWORD",
    ("email", "to_email"): "TO_EMAIL",
    ("job_search", "serpapi_key"): "SERPAPI_KEY",
}
LLM_KEY_ENV: dict[str, str] = {
    "groq": "GROQ_API_KEY",
    "together": "TOGETHER_API_KEY",
    "huggingface": "HF_API_KEY",
}
_LITERAL_KEYS = frozenset({"api_key", "password", "user", "serpapi_key", "from_email", "to_email"})


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def ensure_dirs() -> None:
    for d in (CONFIG_DIR, DATA_DIR, SCREENSHOTS_DIR):
        d.mkdir(parents=True, exist_ok=True)


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _apply_env(settings: dict[str, Any]) -> dict[str, Any]:
    for (section, key), env_name in _ENV_FALLBACKS.items():
        block = settings.setdefault(section, {})
        if not block.get(key):
            block[key] = get_env(env_name)

    llm = settings["llm"]
    if not llm.get("api_key"):
        env_name = LLM_KEY_ENV.get(str(llm.get("provider", "")).lower())
        if env_name:
            llm["api_key"] = get_env(env_name)
    return settings


def read_stored(path: Path | None = None) -> dict[str, Any]:
    """The settings document exactly as saved, without defaults or env fallbacks."""
    path = path or SETTINGS_PATH
    if not path.exists():
        log.debug("No settings at %s, using defaults", path)
        return {}
    with open(path, "r", encoding="utf-8") as f:
        stored = yaml.safe_load(f) or {}
    if not isinstance(stored, dict):
        log.warning("Ignoring malformed settings document %s", path)
        return {}
    return stored


def read_config(path: Path | None = None) -> dict[str, Any]:
    """Return a snapshot of the settings document merged over the defaults.

    A missing file yields the defaults; env vars fill blank secrets. The
    returned dict is a fresh copy and may be handed to a processing run as-is.
    """
    return _apply_env(_merge(DEFAULT_SETTINGS, read_stored(path)))


def write_config(settings: dict[str, Any], path: Path | None = None) -> Path:
    path = path or SETTINGS_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(_merge(DEFAULT_SETTINGS, settings), f, sort_keys=False)
    log.info("Settings saved → %s", path)
    return path


def set_value(settings: dict[str, Any], dotted_key: str, value: Any) -> dict[str, Any]:
    """Set ``llm.model``-style keys in place.

    Values are YAML-parsed so numbers and booleans survive, except credential
    keys, which are always stored as the literal string.
    """
    *parents, leaf = dotted_key.split(".")
    node = settings
    for part in parents:
        node = node.setdefault(part, {})
    if leaf in _LITERAL_KEYS or not isinstance(value, str) or not value:
        node[leaf] = value
    else:
        node[leaf] = yaml.safe_load(value)
    return settings
