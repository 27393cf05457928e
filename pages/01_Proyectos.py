# pages/01_Proyectos.py: projects, list, filter by name, create / edit / delete
import html

import streamlit as st

from api_client import ApiError
from colors_tokens import badge
from common_header import filter_text, filters_header, get_client, top_nav
from data_io import build_api_params, filters_changed, page_count, plantilla_campos
from highlight import split_keywords
from url_filters import use_url_filters

top_nav("Proyectos")
st.title("Proyectos")

client = get_client()
PAGE_SIZE = 10

ESTADOS = ["activo", "inactivo", "completado"]
TIPOS_ENVIO = ["automatico", "manual"]
TIPOS_ALERTA = ["medios", "redes"]
FORMATOS = ["uno a uno", "agrupado"]

filters = use_url_filters("proyectos", {"nombre": ""})

# ---- Filters ----
with st.container(border=True):
    filters_header(filters, "pf")
    filter_text(filters, "pf", "nombre", "Nombre", placeholder="Buscar por nombre")

if filters_changed(st.session_state, "pf_seen", filters.filters):
    st.session_state["pf_page"] = 1
page = st.session_state.setdefault("pf_page", 1)

try:
    with st.spinner("Cargando proyectos…"):
        result = client.list_proyectos(**build_api_params(filters.filters, page=page, page_size=PAGE_SIZE))
except ApiError as exc:
    st.error(f"Error al cargar los proyectos: {exc}")
    st.stop()


def _form(prefix: str, p: dict | None = None) -> dict | None:
    p = p or {}
    with st.form(f"{prefix}_form", clear_on_submit=p == {}):
        c1, c2 = st.columns(2)
        with c1:
            nombre = st.text_input("Nombre", p.get("nombre", ""))
            proveedor = st.text_input("Proveedor", p.get("proveedor", ""))
            codigo = st.text_input("Código de acceso", p.get("codigo_acceso", ""))
            estado = st.selectbox("Estado", ESTADOS, index=ESTADOS.index(p.get("estado", "activo"))
                                  if p.get("estado", "activo") in ESTADOS else 0)
        with c2:
            tipo_envio = st.selectbox("Tipo de envío", TIPOS_ENVIO,
                                      index=TIPOS_ENVIO.index(p["tipo_envio"]) if p.get("tipo_envio") in TIPOS_ENVIO else 0)
            tipo_alerta = st.selectbox("Tipo de alerta", TIPOS_ALERTA,
                                       index=TIPOS_ALERTA.index(p["tipo_alerta"]) if p.get("tipo_alerta") in TIPOS_ALERTA else 0)
            formato = st.selectbox("Formato de mensaje", FORMATOS,
                                   index=FORMATOS.index(p["formato_mensaje"]) if p.get("formato_mensaje") in FORMATOS else 0)
            keywords = st.text_input("Keywords (separadas por coma)", p.get("keywords", ""))
        ok = st.form_submit_button("Guardar")
    if not ok:
        return None
    if not nombre.strip():
        st.warning("El nombre es obligatorio.")
        return None
    return {
        "nombre": nombre.strip(),
        "proveedor": proveedor.strip(),
        "codigo_acceso": codigo.strip(),
        "estado": estado,
        "tipo_envio": tipo_envio,
        "tipo_alerta": tipo_alerta,
        "formato_mensaje": formato,
        "keywords": ", ".join(split_keywords(keywords)),
    }


# ---- Create ----
with st.expander("➕ Nuevo proyecto"):
    data = _form("new")
    if data:
        try:
            client.create_proyecto(data)
        except ApiError as exc:
            st.error(f"Error al crear el proyecto: {exc}")
        else:
            st.toast(f"Proyecto «{data['nombre']}» creado.")
            st.rerun()

# ---- List ----
st.caption(f"{result.count} proyecto{'s' if result.count != 1 else ''}")
if not result.results:
    st.info("No hay proyectos para los filtros seleccionados.")

for p in result.results:
    with st.container(border=True):
        c1, c2, c3 = st.columns([4, 1.2, 1.2], gap="small")
        with c1:
            st.markdown(
                f"**{html.escape(p.get('nombre') or 'Sin nombre')}** {badge('proyecto', p.get('estado', ''))}",
                unsafe_allow_html=True,
            )
            kw = split_keywords(p.get("keywords"))
            st.caption(
                f"{p.get('tipo_alerta', '')} · envío {p.get('tipo_envio', '')} · "
                f"{p.get('formato_mensaje', '')}" + (f" · keywords: {', '.join(kw)}" if kw else "")
            )
        with c2:
            editing = st.toggle("Editar", key=f"edit_{p['id']}")
        with c3:
            if st.button("Eliminar", key=f"del_{p['id']}", use_container_width=True):
                st.session_state["pf_confirm_delete"] = p["id"]

        if st.session_state.get("pf_confirm_delete") == p["id"]:
            st.warning(f"¿Eliminar «{p.get('nombre')}»? Esta acción no se puede deshacer.")
            d1, d2, _ = st.columns([1, 1, 4])
            if d1.button("Sí, eliminar", key=f"del_ok_{p['id']}"):
                try:
                    client.delete_proyecto(p["id"])
                except ApiError as exc:
                    st.error(f"Error al eliminar el proyecto: {exc}")
                else:
                    st.session_state.pop("pf_confirm_delete", None)
                    st.rerun()
            if d2.button("Cancelar", key=f"del_no_{p['id']}"):
                st.session_state.pop("pf_confirm_delete", None)
                st.rerun()

        if editing:
            data = _form(f"edit_{p['id']}", p)
            if data:
                try:
                    client.update_proyecto(p["id"], data)
                except ApiError as exc:
                    st.error(f"Error al actualizar el proyecto: {exc}")
                else:
                    st.rerun()

            # message templates configured for this project
            try:
                plantillas = client.list_plantillas(p["id"])
            except ApiError as exc:
                st.error(f"Error al cargar las plantillas: {exc}")
                plantillas = []
            st.markdown("**Formato de mensaje**")
            if not plantillas:
                st.caption("Sin plantillas configuradas.")
            for t in plantillas:
                campos = plantilla_campos(t)
                st.caption(f"{t.get('nombre') or 'Plantilla'}: " + (" → ".join(campos) if campos else "sin campos"))

# ---- Pagination ----
pages = page_count(result.count, PAGE_SIZE)
if pages > 1:
    c1, c2, c3 = st.columns([1, 2, 1])
    with c1:
        if st.button("← Anterior", disabled=not result.previous, use_container_width=True):
            st.session_state["pf_page"] = page - 1
            st.rerun()
    with c2:
        st.markdown(f"<div style='text-align:center'>Página {page} de {pages}</div>", unsafe_allow_html=True)
    with c3:
        if st.button("Siguiente →", disabled=not result.next, use_container_width=True):
            st.session_state["pf_page"] = page + 1
            st.rerun()
