# highlight.py: keyword marks, date-range params, number formatting
from __future__ import annotations
import html
import re
from datetime import date, datetime, time

MARK_STYLE = "background:#FDE68A;color:#78350F;padding:0 .2rem;border-radius:3px"


def split_keywords(raw: str | None) -> list[str]:
    return [k.strip() for k in (raw or "").split(",") if k.strip()]


def highlight_keywords(text: str | None, keywords: list[str] | None = None) -> str:
    """HTML-safe text with every keyword match wrapped in <mark> (case-insensitive)."""
    if not text:
        return ""
    safe = html.escape(text)
    words = [html.escape(k.strip()) for k in (keywords or []) if k and k.strip()]
    if not words:
        return safe
    # longest first so "El Tiempo" wins over "Tiempo"
    words.sort(key=len, reverse=True)
    pat = re.compile("(" + "|".join(re.escape(w) for w in words) + ")", re.IGNORECASE)
    return pat.sub(lambda m: f'<mark style="{MARK_STYLE}">{m.group(1)}</mark>', safe)


def date_range_params(desde: date | None, hasta: date | None, *, prefix: str = "created_at") -> dict[str, str]:
    if desde and hasta and desde > hasta:
        raise ValueError("La fecha inicial no puede ser posterior a la final")
    out = {}
    if desde:
        out[f"{prefix}_desde"] = datetime.combine(desde, time.min).isoformat()
    if hasta:
        out[f"{prefix}_hasta"] = datetime.combine(hasta, time(23, 59, 59)).isoformat()
    return out


def parse_date(value: str | None) -> date | None:
    if not value or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError:
        return None


def format_number(n) -> str:
    # es-CO grouping: 1.234.567
    try:
        return f"{int(n):,}".replace(",", ".")
    except (TypeError, ValueError):
        return str(n)
