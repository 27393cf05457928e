# config.py: settings from st.secrets / environment
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import streamlit as st

DEFAULT_API_BASE_URL = "https://api.alertas.buho.media"
DEFAULT_PING_INTERVAL_MS = 30_000

_TRUTHY = ("1", "true", "yes", "y", "on")


def _secret(name: str) -> Optional[str]:
    try:
        v = st.secrets.get(name)
    except Exception:
        # no secrets.toml: st.secrets raises on first access
        return None
    return None if v is None else str(v)


def _get(*names: str, default: str = "") -> str:
    for n in names:
        v = _secret(n)
        if v is None:
            v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v.strip()
    return default


def _as_int(raw: str, fallback: int) -> int:
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        return fallback


@dataclass(frozen=True)
class Settings:
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: int = 30
    page_size: int = 20
    toc_base_url: str = ""
    toc_platform_id: int = 1
    toc_ping_interval_ms: int = DEFAULT_PING_INTERVAL_MS
    log_level: str = "INFO"
    dev_mode: bool = False

    @property
    def metrics_enabled(self) -> bool:
        return bool(self.toc_base_url)


def load_settings() -> Settings:
    ping = _as_int(_get("TOC_PING_INTERVAL_MS"), DEFAULT_PING_INTERVAL_MS)
    return Settings(
        api_base_url=_get("ALERTAS_API_BASE_URL", default=DEFAULT_API_BASE_URL).rstrip("/"),
        request_timeout=_as_int(_get("ALERTAS_REQUEST_TIMEOUT"), 30),
        page_size=_as_int(_get("ALERTAS_PAGE_SIZE"), 20),
        toc_base_url=_get("TOC_BASE_URL", "TOC_PROXY_URL").rstrip("/"),
        toc_platform_id=_as_int(_get("TOC_PLATFORM_ID", "TOC_PLATAFORMA_ID", "PLATAFORMA_ID"), 1),
        toc_ping_interval_ms=ping if ping > 0 else DEFAULT_PING_INTERVAL_MS,
        log_level=_get("LOG_LEVEL", default="INFO").upper(),
        dev_mode=_get("DEV_MODE").lower() in _TRUTHY,
    )


_configured = False


def configure_logging(level: str = "INFO") -> None:
    global _configured
    if _configured:
        return
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _configured = True
