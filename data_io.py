# data_io.py: filter mapping -> API params, API records -> DataFrame
from __future__ import annotations
import math
from typing import Any, Mapping

import pandas as pd

from url_filters import is_active

BOOL_KEYS = {"estado_enviado", "estado_revisado"}

# screen filter key -> API query param
CONSULTA_RENAMES = {"proyecto_nombre": "proyecto"}


def build_api_params(
    filters: Mapping[str, str | None],
    *,
    page: int = 1,
    page_size: int = 20,
    renames: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    renames = renames or {}
    out: dict[str, Any] = {"page": page, "page_size": page_size}
    for k, v in filters.items():
        if not is_active(v):
            continue
        v = v.strip()
        if k in BOOL_KEYS:
            if v.lower() not in ("true", "false"):
                continue
            out[renames.get(k, k)] = v.lower() == "true"
        else:
            out[renames.get(k, k)] = v
    return out


def records_to_frame(records: list[dict] | None, columns: list[str]) -> pd.DataFrame:
    df = pd.DataFrame(records or [])
    for c in columns:
        if c not in df.columns:
            df[c] = ""
    return df[columns].fillna("").reset_index(drop=True)


def apply_text_filter(df: pd.DataFrame, query: str = "", cols: list[str] | None = None) -> pd.DataFrame:
    q = (query or "").strip().lower()
    if not q or df.empty:
        return df
    cols = [c for c in (cols or df.columns) if c in df.columns]
    mask = pd.Series(False, index=df.index)
    for c in cols:
        mask = mask | df[c].astype(str).str.lower().str.contains(q, regex=False, na=False)
    return df[mask].copy()


def filters_changed(state: dict, slot: str, filters: Mapping) -> bool:
    """True when `filters` is a different object than the one last seen under `slot`."""
    if state.get(slot) is filters:
        return False
    state[slot] = filters
    return True


def page_count(count: int, page_size: int) -> int:
    if page_size <= 0:
        return 1
    return max(1, math.ceil((count or 0) / page_size))


def estado_envio(record: Mapping[str, Any]) -> str:
    """Send state label: the API gives "Enviado"/"Pendiente", a bool (historial) or None."""
    enviado = record.get("estado_enviado")
    if isinstance(enviado, str) and enviado.strip():
        return enviado.strip()
    if enviado is True:
        return "Enviado"
    if enviado is False:
        return "Pendiente"
    return "Sin envío"


def plantilla_campos(plantilla: Mapping[str, Any]) -> list[str]:
    """Field names of a message template, in display order.

    `config_campos` ({campo: {"orden": n, ...}}) wins over the `campos` rows.
    """
    config = plantilla.get("config_campos")
    if isinstance(config, dict) and config:
        rows = [(v.get("orden", 0) if isinstance(v, dict) else 0, k) for k, v in config.items()]
    else:
        rows = [(c.get("orden", 0), c.get("campo")) for c in plantilla.get("campos") or []
                if isinstance(c, dict) and c.get("campo")]

    def _order(r):
        try:
            return int(r[0] or 0), str(r[1])
        except (TypeError, ValueError):
            return 0, str(r[1])

    return [name for _, name in sorted(rows, key=_order)]


def ingestion_summary(resp: Mapping[str, Any] | None) -> dict[str, int]:
    resp = resp or {}

    def _n(key):
        try:
            return int(resp.get(key) or 0)
        except (TypeError, ValueError):
            return 0

    return {
        "creados": len(resp.get("listado") or []),
        "duplicados": _n("duplicados"),
        "descartados": _n("descartados"),
        "errores": len(resp.get("errores") or []),
    }
