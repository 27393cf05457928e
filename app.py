# app.py: entry point, login + landing
import streamlit as st

from api_client import ApiError
from common_header import PAGES, get_client, get_metrics, is_authenticated, remember_login

st.set_page_config(page_title="Alertas", page_icon="🦉", layout="centered",
                   initial_sidebar_state="collapsed")
st.markdown("<style>[data-testid='stSidebar']{display:none;}</style>", unsafe_allow_html=True)

st.title("Alertas")

if is_authenticated():
    user = st.session_state.get("auth_user") or {}
    st.caption(f"Sesión iniciada como {user.get('email') or 'usuario'}")
    for label, path, _ in PAGES:
        st.page_link(path, label=label)
    st.stop()

st.caption("Ingresa con tu cuenta para gestionar proyectos, alertas e historial de envíos.")

with st.form("login"):
    email = st.text_input("Correo", placeholder="usuario@buho.media")
    password = st.text_input("Contraseña", type="password")
    submitted = st.form_submit_button("Ingresar", use_container_width=True)

if submitted:
    if not email.strip() or not password:
        st.warning("Ingresa correo y contraseña.")
        st.stop()
    client = get_client()
    try:
        data = client.login(email.strip(), password)
    except ApiError as exc:
        st.error(f"No fue posible iniciar sesión: {exc}")
        st.stop()
    user = data.get("user") if isinstance(data.get("user"), dict) else {"email": email.strip()}
    remember_login(client, user)
    get_metrics().initialize("/", user_email=user.get("email"))
    st.switch_page(PAGES[0][1])
