# pages/03_Historial.py: Send history (WhatsApp), filters persisted in URL
from datetime import date

import streamlit as st

from api_client import ApiError
from colors_tokens import color_for
from common_header import (filter_date, filter_select, filter_text, filters_header,
                           get_client, get_settings, top_nav)
from data_io import build_api_params, estado_envio, filters_changed, page_count, records_to_frame
from highlight import date_range_params, format_number, parse_date
from url_filters import use_url_filters

top_nav("Historial")
st.title("Historial")
st.caption("Revisa el historial completo de todos los envíos de alertas.")

client = get_client()
PAGE_SIZE = get_settings().page_size

DEFAULTS = {
    "search": "",
    "usuario_nombre": "",
    "proyecto_nombre": "",
    "estado_enviado": "",
    "url_coincide": "",
    "red_social_nombre": "",
    "created_at_desde": "",
    "created_at_hasta": "",
}
DATE_KEYS = ("created_at_desde", "created_at_hasta")

filters = use_url_filters("historial", DEFAULTS, allowed_keys=DEFAULTS)

with st.container(border=True):
    filters_header(filters, "hf")
    c1, c2, c3, c4 = st.columns([2, 1, 1, 1], gap="small")
    with c1:
        filter_text(filters, "hf", "search", "Buscar", placeholder="Mensaje o URL")
    with c2:
        filter_text(filters, "hf", "usuario_nombre", "Usuario")
    with c3:
        filter_text(filters, "hf", "proyecto_nombre", "Proyecto")
    with c4:
        filter_select(filters, "hf", "estado_enviado", "Estado",
                      {"": "Todos", "true": "Enviado", "false": "Pendiente"})
    c5, c6, c7, c8 = st.columns(4, gap="small")
    with c5:
        filter_text(filters, "hf", "url_coincide", "URL contiene")
    with c6:
        filter_text(filters, "hf", "red_social_nombre", "Red social")
    with c7:
        filter_date(filters, "hf", "created_at_desde", "Desde")
    with c8:
        filter_date(filters, "hf", "created_at_hasta", "Hasta")

if filters_changed(st.session_state, "hf_seen", filters.filters):
    st.session_state["hf_page"] = 1
    st.session_state.pop("hf_export", None)
page = st.session_state.setdefault("hf_page", 1)

params = build_api_params({k: v for k, v in filters.filters.items() if k not in DATE_KEYS},
                          page=page, page_size=PAGE_SIZE)
try:
    params.update(date_range_params(parse_date(filters.filters.get("created_at_desde")),
                                    parse_date(filters.filters.get("created_at_hasta"))))
except ValueError as exc:
    st.warning(str(exc))

try:
    with st.spinner("Cargando historial…"):
        result = client.list_historial(**params)
except ApiError as exc:
    st.error(f"Error al cargar el historial de envíos: {exc}")
    st.stop()

c1, c2 = st.columns([5, 1])
with c1:
    st.caption(f"{format_number(result.count)} envío{'s' if result.count != 1 else ''}")
with c2:
    if st.button("Exportar Excel", use_container_width=True):
        export = {k: v for k, v in params.items() if k not in ("page", "page_size")}
        try:
            st.session_state["hf_export"] = client.export_historial(**export)
        except ApiError as exc:
            st.error(f"No fue posible exportar: {exc}")
    if st.session_state.get("hf_export"):
        st.download_button("Descargar", st.session_state["hf_export"],
                           file_name=f"historial_{date.today().isoformat()}.xlsx",
                           mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                           use_container_width=True)

rows = result.results
for r in rows:
    r["estado"] = estado_envio(r)
    t = r.get("tiempo_envio")
    r["tiempo"] = f"{float(t):.1f} s" if isinstance(t, (int, float)) else ""
df = records_to_frame(rows, ["created_at", "usuario", "proyecto", "red_social", "estado",
                             "tiempo", "mensaje"])
if df.empty:
    st.info("No hay envíos para los filtros seleccionados.")
    st.stop()

st.dataframe(
    df.style.map(lambda v: f"color:{color_for('envio', v)}", subset=["estado"]),
    hide_index=True, use_container_width=True,
    column_config={
        "created_at": "Fecha", "usuario": "Usuario", "proyecto": "Proyecto",
        "red_social": "Red social", "estado": "Estado", "tiempo": "Tiempo de envío",
        "mensaje": st.column_config.TextColumn("Mensaje", width="large"),
    },
)

pages = page_count(result.count, PAGE_SIZE)
c1, c2, c3 = st.columns([1, 2, 1])
with c1:
    if st.button("← Anterior", disabled=not result.previous, use_container_width=True):
        st.session_state["hf_page"] = page - 1
        st.rerun()
with c2:
    st.markdown(f"<div style='text-align:center'>Página {page} de {pages}</div>", unsafe_allow_html=True)
with c3:
    if st.button("Siguiente →", disabled=not result.next, use_container_width=True):
        st.session_state["hf_page"] = page + 1
        st.rerun()
