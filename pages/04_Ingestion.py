# pages/04_Ingestion.py: send .xlsx/.csv files or single URLs to a project, review the result
import streamlit as st

from api_client import INGESTION_EXTENSIONS, ApiError
from common_header import get_client, top_nav
from data_io import ingestion_summary, records_to_frame
from highlight import format_number

top_nav("Ingestion")
st.title("Ingestión")
st.caption("Selecciona un proyecto y carga un archivo .xlsx o .csv (o una URL) para iniciar la ingestión.")

client = get_client()


@st.cache_data(ttl=60, show_spinner=False)
def _proyectos(token: str) -> list[dict]:
    # token in the signature keeps the cache per session
    return client.list_proyectos(page=1, page_size=100).results


c1, c2 = st.columns([5, 1], gap="small")
with c2:
    if st.button("Actualizar lista", use_container_width=True):
        _proyectos.clear()
try:
    proyectos = _proyectos(client.token or "")
except ApiError as exc:
    st.error(f"No fue posible obtener la lista de proyectos disponibles: {exc}")
    st.stop()

if not proyectos:
    st.warning("No se encontraron proyectos disponibles.")
    st.stop()

nombres = {p["id"]: p.get("nombre") or p["id"] for p in proyectos}
with c1:
    proyecto_id = st.selectbox("Proyecto", list(nombres), index=None, key="ing_proyecto",
                               format_func=lambda pid: nombres[pid], placeholder="Selecciona un proyecto")

tab_file, tab_url = st.tabs(["📄 Archivo", "🔗 URL"])
with tab_file:
    with st.form("ing_file", clear_on_submit=True):
        upload = st.file_uploader("Documento", type=[e.lstrip(".") for e in INGESTION_EXTENSIONS],
                                  help="Formatos soportados: archivos .xlsx o .csv.")
        send_file = st.form_submit_button("Iniciar ingestión", type="primary")
with tab_url:
    with st.form("ing_url"):
        url = st.text_input("URL", placeholder="https://…")
        tipo = st.radio("Tipo", ["articulo", "red"], horizontal=True,
                        format_func=lambda t: "Artículo" if t == "articulo" else "Red social")
        send_url = st.form_submit_button("Iniciar ingestión", type="primary")

if send_file or send_url:
    try:
        with st.spinner("Enviando…"):
            if send_file:
                archivo = (upload.name, upload.getvalue()) if upload is not None else None
                st.session_state["ing_result"] = client.ingestar(proyecto_id, archivo=archivo)
            else:
                st.session_state["ing_result"] = client.ingestar(proyecto_id, url=url, tipo=tipo)
    except ValueError as exc:
        st.warning(str(exc))
    except ApiError as exc:
        st.error(f"Error al enviar el archivo: {exc}")

result = st.session_state.get("ing_result")
if not result:
    st.stop()

# ---- Result ----
st.divider()
counts = ingestion_summary(result)
msg = result.get("mensaje") or "Ingestión finalizada"
(st.success if counts["creados"] else st.warning)(msg)
st.caption(" · ".join(x for x in (result.get("proyecto_nombre"), result.get("proveedor")) if x))

m1, m2, m3, m4 = st.columns(4)
m1.metric("Creados", format_number(counts["creados"]))
m2.metric("Duplicados", format_number(counts["duplicados"]))
m3.metric("Descartados", format_number(counts["descartados"]))
m4.metric("Errores", format_number(counts["errores"]))

if result.get("errores"):
    with st.expander("Filas con error"):
        st.dataframe(records_to_frame(result["errores"], ["fila", "error"]),
                     hide_index=True, use_container_width=True)

if result.get("listado"):
    df = records_to_frame(result["listado"], ["tipo", "titulo", "autor", "red_social", "fecha",
                                              "reach", "engagement", "url"])
    st.dataframe(df, hide_index=True, use_container_width=True,
                 column_config={"url": st.column_config.LinkColumn("URL")})
    st.page_link("pages/02_Consulta_Datos.py", label="Revisar y enviar en Consulta de datos →")
