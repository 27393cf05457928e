# colors_tokens.py: single source of truth for status colors
import html

TOKENS = {
    "proyecto": {  # proyecto.estado
        "activo":     "#009E73",   # Teal Green
        "inactivo":   "#999999",   # Neutral Grey
        "completado": "#0074B2",   # Blue
    },
    "envio": {
        "Enviado":   "#009E73",
        "Pendiente": "#D55E00",    # Vermillion
        "Sin envío": "#999999",
    },
    "revision": {
        "Revisado":    "#0074B2",
        "Pendiente":   "#D55E00",
        "Sin revisar": "#999999",
    },
}

FALLBACK = "#7F7F7F"


def color_for(group: str, label: str) -> str:
    return TOKENS.get(group, {}).get(label, FALLBACK)


def badge(group: str, label: str) -> str:
    # label comes from the API: escaped
    c = color_for(group, label)
    return (
        f'<span style="border:1px solid {c};color:{c};border-radius:10px;'
        f'padding:.05rem .5rem;font-size:.8rem">{html.escape(str(label or ""))}</span>'
    )
