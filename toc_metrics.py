# toc_metrics.py: page-view + ping beacon for the TOC metrics collector
"""Client telemetry.

Reports how long each page was open (page views) and a periodic
"still visible" ping. Streamlit has no background timer per browser tab,
so pings are sent from `maybe_ping()`, which pages call on every rerun.
Telemetry never raises: failures are logged and dropped.
"""
from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

import requests

from config import Settings

logger = logging.getLogger(__name__)

PINGS_PATH = "metricas/frontend-pings"
PAGE_VIEWS_PATH = "metricas/page-views"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def join_url(base: str, path: str) -> str:
    base = (base or "").rstrip("/")
    path = path.lstrip("/")
    return f"{base}/{path}" if base else f"/{path}"


class TocMetrics:
    def __init__(
        self,
        settings: Settings,
        *,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
        user_agent: str = "",
    ):
        self.enabled = settings.metrics_enabled
        self.platform_id = settings.toc_platform_id
        self.ping_interval = settings.toc_ping_interval_ms / 1000.0
        self.pings_url = join_url(settings.toc_base_url, PINGS_PATH)
        self.page_views_url = join_url(settings.toc_base_url, PAGE_VIEWS_PATH)
        self.session = session or requests.Session()
        self.clock = clock
        self.user_agent = user_agent

        self.initialized = False
        self.correlation_id = ""
        self.user_email: Optional[str] = None
        self.current_page: Optional[str] = None
        self.started_at: Optional[str] = None
        self.last_ping: Optional[float] = None

    # ---------------------------------------------------------------- send
    def _post(self, url: str, payload: dict) -> None:
        try:
            self.session.post(url, json=payload, timeout=5)
        except requests.RequestException as exc:
            logger.warning("Metric not sent to %s: %s", url, exc)

    def send_ping(self, visibility: str = "visible") -> None:
        if not self.enabled:
            return
        self._post(self.pings_url, {
            "user_email": self.user_email,
            "plataforma_id": self.platform_id,
            "timestamp": _now_iso(),
            "visibility_state": visibility,
            "activity_state": "active",
            "correlation_id": self.correlation_id,
            "properties": {"path": self.current_page or ""},
        })
        self.last_ping = self.clock()

    def _send_page_view(self, page: str, started_at: str, ended_at: str) -> None:
        self._post(self.page_views_url, {
            "user_email": self.user_email,
            "plataforma_id": self.platform_id,
            "page": page,
            "referrer": None,
            "started_at": started_at,
            "ended_at": ended_at,
            "correlation_id": self.correlation_id,
            "user_agent": self.user_agent,
        })

    # ----------------------------------------------------------- lifecycle
    def _start_page_view(self, path: str, started_at: Optional[str] = None) -> None:
        self.current_page = path
        self.started_at = started_at or _now_iso()

    def _complete_page_view(self, ended_at: str, reset: bool) -> None:
        if not self.current_page or not self.started_at:
            return
        if self.enabled:
            self._send_page_view(self.current_page, self.started_at, ended_at)
        if reset:
            self.current_page = None
            self.started_at = None

    def initialize(self, path: str, user_email: Optional[str] = None) -> None:
        if self.initialized:
            return
        self.correlation_id = self.correlation_id or str(uuid.uuid4())
        self.user_email = user_email
        self._start_page_view(path)
        self.initialized = True
        self.send_ping("visible")

    def track_page_navigation(self, path: str) -> None:
        if not self.initialized or not self.current_page:
            self._start_page_view(path)
            return
        if self.current_page == path:
            return
        now = _now_iso()
        self._complete_page_view(now, reset=False)
        self._start_page_view(path, now)

    def maybe_ping(self) -> bool:
        if not (self.enabled and self.initialized):
            return False
        if self.last_ping is not None and self.clock() - self.last_ping < self.ping_interval:
            return False
        self.send_ping("visible")
        return True

    def shutdown(self, flush: bool = True) -> None:
        if not self.initialized:
            return
        if flush:
            self.send_ping("hidden")
            self._complete_page_view(_now_iso(), reset=True)
        else:
            self.current_page = None
            self.started_at = None
        self.initialized = False
        self.last_ping = None
