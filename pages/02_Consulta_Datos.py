# pages/02_Consulta_Datos.py: consulta de datos, medios & redes (filters persisted in URL)
import streamlit as st

from api_client import ApiError
from colors_tokens import color_for
from common_header import (filter_date, filter_select, filter_text, filters_header,
                           get_client, get_settings, top_nav)
from data_io import (CONSULTA_RENAMES, build_api_params, estado_envio, filters_changed,
                     page_count, records_to_frame)
from highlight import date_range_params, format_number, highlight_keywords, parse_date
from router import StreamlitLocation
from url_filters import drop_store, use_url_filters

mounted = top_nav("Consulta")
st.title("Consulta de datos")
st.caption("Revisa las alertas ingresadas, edítalas y envíalas al grupo de WhatsApp del proyecto.")

client = get_client()
PAGE_SIZE = get_settings().page_size

COMMON = {
    "proyecto_nombre": "",
    "autor": "",
    "url_coincide": "",
    "usuario_nombre": "",
    "estado_enviado": "",
    "estado_revisado": "",
    "created_at_desde": "",
    "created_at_hasta": "",
}
DEFAULTS = {
    "medios": {**COMMON, "fuente": ""},
    "redes": {**COMMON, "red_social_nombre": ""},
}
BOOL_OPTS = {"": "Todos", "true": "Sí", "false": "No"}
DATE_KEYS = ("created_at_desde", "created_at_hasta")

# ---- Tab (medios / redes): one mounted store at a time ----
tab = st.radio("Tipo", ["medios", "redes"], horizontal=True, key="cd_tab",
               format_func=lambda t: "📰 Medios" if t == "medios" else "💬 Redes")
prev_tab = None if mounted else st.session_state.get("cd_tab_mounted")
if prev_tab is not None and prev_tab != tab:
    # the previous tab's filters are still in the address bar
    drop_store(f"consulta_{prev_tab}")
    StreamlitLocation().replace({})
st.session_state["cd_tab_mounted"] = tab

filters = use_url_filters(f"consulta_{tab}", DEFAULTS[tab], allowed_keys=DEFAULTS[tab])
P = f"cd{tab[0]}"

# ---- Filters ----
with st.container(border=True):
    filters_header(filters, P)
    c1, c2, c3, c4 = st.columns(4, gap="small")
    with c1:
        filter_text(filters, P, "proyecto_nombre", "Proyecto", placeholder="Nombre o id")
    with c2:
        filter_text(filters, P, "autor", "Autor")
    with c3:
        if tab == "medios":
            filter_text(filters, P, "fuente", "Fuente")
        else:
            filter_text(filters, P, "red_social_nombre", "Red social", placeholder="Facebook, X…")
    with c4:
        filter_text(filters, P, "url_coincide", "URL contiene")
    c5, c6, c7, c8, c9 = st.columns(5, gap="small")
    with c5:
        filter_text(filters, P, "usuario_nombre", "Usuario")
    with c6:
        filter_select(filters, P, "estado_enviado", "Enviado", BOOL_OPTS)
    with c7:
        filter_select(filters, P, "estado_revisado", "Revisado", BOOL_OPTS)
    with c8:
        filter_date(filters, P, "created_at_desde", "Desde")
    with c9:
        filter_date(filters, P, "created_at_hasta", "Hasta")

page_key = f"{P}_page"
if filters_changed(st.session_state, f"{P}_seen", filters.filters):
    st.session_state[page_key] = 1
page = st.session_state.setdefault(page_key, 1)

params = build_api_params(
    {k: v for k, v in filters.filters.items() if k not in DATE_KEYS},
    page=page, page_size=PAGE_SIZE, renames=CONSULTA_RENAMES,
)
try:
    params.update(date_range_params(parse_date(filters.filters.get("created_at_desde")),
                                    parse_date(filters.filters.get("created_at_hasta"))))
except ValueError as exc:
    st.warning(str(exc))

try:
    with st.spinner(f"Cargando {tab}…"):
        result = client.list_medios(**params) if tab == "medios" else client.list_redes(**params)
except ApiError as exc:
    st.error(f"Error al cargar {tab}: {exc}")
    st.stop()

# ---- Table ----
rows = result.results
COLS = (["titulo", "fuente"] if tab == "medios" else ["red_social_nombre"]) + [
    "autor", "proyecto_nombre", "fecha_publicacion", "reach", "estado", "estado_revisado", "url"]
for r in rows:
    r["estado"] = estado_envio(r)
    r["estado_revisado"] = r.get("estado_revisado") or "Sin revisar"
df = records_to_frame(rows, COLS)
df["reach"] = df["reach"].map(lambda v: format_number(v) if v != "" else "")

st.caption(f"{format_number(result.count)} registro{'s' if result.count != 1 else ''}")
if df.empty:
    st.info("No hay resultados para los filtros seleccionados.")
    st.stop()

styled = (df.style
          .map(lambda v: f"color:{color_for('envio', v)}", subset=["estado"])
          .map(lambda v: f"color:{color_for('revision', v)}", subset=["estado_revisado"]))
event = st.dataframe(
    styled, hide_index=True, use_container_width=True,
    on_select="rerun", selection_mode="multi-row", key=f"table_{P}_{page}",
    column_config={"url": st.column_config.LinkColumn("URL")},
)
picked = [rows[i] for i in event.selection.rows]

# ---- Pagination ----
pages = page_count(result.count, PAGE_SIZE)
c1, c2, c3 = st.columns([1, 2, 1])
with c1:
    if st.button("← Anterior", disabled=not result.previous, use_container_width=True):
        st.session_state[page_key] = page - 1
        st.rerun()
with c2:
    st.markdown(f"<div style='text-align:center'>Página {page} de {pages}</div>", unsafe_allow_html=True)
with c3:
    if st.button("Siguiente →", disabled=not result.next, use_container_width=True):
        st.session_state[page_key] = page + 1
        st.rerun()

if not picked:
    st.caption("Selecciona filas para previsualizar, editar o enviar alertas.")
    st.stop()

# ---- Preview (keywords highlighted) ----
st.subheader(f"Seleccionadas: {len(picked)}")
for item in picked[:5]:
    with st.container(border=True):
        kw = item.get("proyecto_keywords") or []
        if item.get("titulo"):
            st.markdown(f"**{highlight_keywords(item['titulo'], kw)}**", unsafe_allow_html=True)
        st.markdown(highlight_keywords(item.get("contenido"), kw) or "_Sin contenido_",
                    unsafe_allow_html=True)
        st.caption(f"{item.get('autor') or 'Sin autor'} · {item.get('url', '')}")
if len(picked) > 5:
    st.caption(f"… y {len(picked) - 5} más")

# ---- Edit one ----
if len(picked) == 1:
    item = picked[0]
    with st.expander("✏️ Editar alerta"):
        with st.form(f"{P}_edit_{item['id']}"):
            titulo = st.text_input("Título", item.get("titulo") or "") if tab == "medios" else None
            contenido = st.text_area("Contenido", item.get("contenido") or "", height=180)
            autor = st.text_input("Autor", item.get("autor") or "")
            ok = st.form_submit_button("Guardar cambios")
        if ok:
            data = {"contenido": contenido, "autor": autor}
            if titulo is not None:
                data["titulo"] = titulo
            try:
                if tab == "medios":
                    client.update_medio(item["id"], data)
                else:
                    client.update_red(item["id"], data)
            except ApiError as exc:
                st.error(f"Error al actualizar la alerta: {exc}")
            else:
                st.toast("Alerta actualizada")
                st.rerun()

# ---- Send ----
proyectos = sorted({(r.get("proyecto"), r.get("proyecto_nombre") or r.get("proyecto")) for r in picked
                    if r.get("proyecto")}, key=lambda t: str(t[1]))
if len(proyectos) != 1:
    st.warning("Para enviar, selecciona alertas de un único proyecto.")
    st.stop()

proyecto_id, proyecto_nombre = proyectos[0]
if st.button(f"📤 Enviar {len(picked)} alerta{'s' if len(picked) != 1 else ''} a «{proyecto_nombre}»",
             type="primary"):
    alertas = [{
        "id": r["id"],
        "url": r.get("url", ""),
        "contenido": r.get("contenido") or "",
        "fecha": r.get("fecha_publicacion") or r.get("created_at") or "",
        "titulo": r.get("titulo") or "",
        "autor": r.get("autor") or "",
        "reach": r.get("reach"),
        "engagement": r.get("engagement"),
        **({"red_social": r.get("red_social_nombre") or r.get("red_social") or ""} if tab == "redes" else {}),
    } for r in picked]
    try:
        with st.spinner("Enviando alertas…"):
            resp = client.enviar_alertas(tab, proyecto_id, alertas)
    except ApiError as exc:
        st.error(f"Error al enviar: {exc}")
    else:
        resp = resp if isinstance(resp, dict) else {}
        st.success(resp.get("message") or resp.get("mensaje") or "Alertas enviadas correctamente")
