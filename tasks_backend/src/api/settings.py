from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - STORE_BACKEND: 'notion' (default) or 'memory'
    - NOTION_API_KEY: Notion integration token (required for the notion backend)
    - NOTION_DATABASE_ID: id of the Notion database exposed as a task list
    - SORT_PROPERTY: property the task list is sorted on, ascending. Default 'Due'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: standard logging level name. Default 'INFO'
    - LOG_FORMAT: 'console' (default) or 'json'
    """

    store_backend: str
    notion_api_key: Optional[str]
    notion_database_id: Optional[str]
    sort_property: str
    cors_allow_origins: List[str]
    log_level: str
    log_format: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("STORE_BACKEND", "notion").strip().lower()
    if backend not in {"notion", "memory"}:
        backend = "memory"

    log_format = _get_env("LOG_FORMAT", "console").strip().lower()
    if log_format not in {"console", "json"}:
        log_format = "console"

    return Settings(
        store_backend=backend,
        notion_api_key=os.getenv("NOTION_API_KEY") or None,
        notion_database_id=os.getenv("NOTION_DATABASE_ID") or None,
        sort_property=_get_env("SORT_PROPERTY", "Due").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_format=log_format,
    )
