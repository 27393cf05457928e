# common_header.py
import logging

import streamlit as st

from api_client import ApiClient
from config import configure_logging, load_settings
from highlight import parse_date
from toc_metrics import TocMetrics
from url_filters import mount_page

logger = logging.getLogger(__name__)

PAGES = [
    ("📁 Proyectos",      "pages/01_Proyectos.py",     "Proyectos"),
    ("🔎 Consulta datos", "pages/02_Consulta_Datos.py", "Consulta"),
    ("🕘 Historial",      "pages/03_Historial.py",      "Historial"),
    ("📥 Ingestión",      "pages/04_Ingestion.py",      "Ingestion"),
]

TOKEN_KEY = "auth_token"
REFRESH_KEY = "auth_refresh"
USER_KEY = "auth_user"


@st.cache_resource(show_spinner=False)
def get_settings():
    s = load_settings()
    configure_logging(s.log_level)
    return s


def get_client() -> ApiClient:
    s = get_settings()
    client = st.session_state.get("api_client")
    if client is None:
        client = ApiClient(s.api_base_url, timeout=s.request_timeout)
        st.session_state["api_client"] = client
    client.token = st.session_state.get(TOKEN_KEY) or client.token
    client.refresh_token = st.session_state.get(REFRESH_KEY) or client.refresh_token
    return client


def remember_login(client: ApiClient, user: dict | None) -> None:
    st.session_state[TOKEN_KEY] = client.token
    st.session_state[REFRESH_KEY] = client.refresh_token
    st.session_state[USER_KEY] = user or {}


def is_authenticated() -> bool:
    return bool(st.session_state.get(TOKEN_KEY))


def get_metrics() -> TocMetrics:
    m = st.session_state.get("toc_metrics")
    if m is None:
        m = TocMetrics(get_settings())
        st.session_state["toc_metrics"] = m
    return m


def logout() -> None:
    client = get_client()
    client.logout()
    get_metrics().shutdown(flush=True)
    logger.info("session closed for %s", (st.session_state.get(USER_KEY) or {}).get("email"))
    for k in (TOKEN_KEY, REFRESH_KEY, USER_KEY):
        st.session_state.pop(k, None)


def _track(active: str) -> None:
    m = get_metrics()
    user = st.session_state.get(USER_KEY) or {}
    path = f"/{active.lower()}"
    if not m.initialized:
        m.initialize(path, user_email=user.get("email"))
    else:
        m.track_page_navigation(path)
        m.maybe_ping()


def top_nav(active: str, title_size="1.6rem"):
    st.set_page_config(page_title="Alertas", page_icon="🦉", layout="wide",
                       initial_sidebar_state="collapsed")
    st.markdown("<style>[data-testid='stSidebar']{display:none;}</style>", unsafe_allow_html=True)

    if not is_authenticated():
        st.switch_page("app.py")

    mounted = mount_page(active)
    _track(active)

    st.markdown(f"""
    <style>
      .block-container {{ max-width:1300px; padding: 1.9rem .8rem 1rem; }}
      .stApp h1, h1 {{ font-size:{title_size} !important; font-weight:800 !important; }}
      .stSelectbox, .stTextInput, .stRadio, .stDateInput {{ margin-bottom:.25rem; }}
      [data-testid="stHorizontalBlock"] {{ gap:.6rem !important; }}
    </style>
    """, unsafe_allow_html=True)

    cols = st.columns([1.2, 1.4, 1.2, 1.2, 3.0, 1.0], gap="small")
    for col, (label, path, name) in zip(cols, PAGES):
        with col:
            st.page_link(path, label=label, disabled=(active == name))
    with cols[-1]:
        if st.button("Salir", key="nav_logout", use_container_width=True):
            logout()
            st.switch_page("app.py")
    return mounted


# ---- filter widgets bound to a FilterStore ----
def _wkey(prefix: str, name: str) -> str:
    return f"{prefix}_{name}"


def _push_text(store, prefix: str, name: str) -> None:
    store.update_filters({name: st.session_state[_wkey(prefix, name)]})


def _push_date(store, prefix: str, name: str) -> None:
    v = st.session_state[_wkey(prefix, name)]
    store.update_filters({name: v.isoformat() if v else ""})


def filter_text(store, prefix: str, name: str, label: str, placeholder: str = ""):
    k = _wkey(prefix, name)
    if k not in st.session_state:
        st.session_state[k] = store.filters.get(name) or ""
    return st.text_input(label, key=k, placeholder=placeholder,
                         on_change=_push_text, args=(store, prefix, name))


def filter_select(store, prefix: str, name: str, label: str, options: dict[str, str]):
    """options: value -> label; "" is the "no filter" option."""
    k = _wkey(prefix, name)
    values = list(options)
    if k not in st.session_state:
        cur = store.filters.get(name) or ""
        st.session_state[k] = cur if cur in options else ""
    return st.selectbox(label, values, key=k, format_func=lambda v: options[v],
                        on_change=_push_text, args=(store, prefix, name))


def filter_date(store, prefix: str, name: str, label: str):
    k = _wkey(prefix, name)
    if k not in st.session_state:
        st.session_state[k] = parse_date(store.filters.get(name))
    return st.date_input(label, key=k, format="YYYY-MM-DD",
                         on_change=_push_date, args=(store, prefix, name))


def _clear(store, prefix: str) -> None:
    store.clear_filters()
    for k in [k for k in st.session_state.keys() if str(k).startswith(f"{prefix}_")]:
        del st.session_state[k]


def filters_header(store, prefix: str, title: str = "Filtros") -> None:
    n = store.active_filter_count()
    c1, c2 = st.columns([5, 1], gap="small")
    with c1:
        st.markdown(f"**{title}**" + (f" · {n} activo{'s' if n != 1 else ''}" if n else ""))
    with c2:
        if store.has_active_filters():
            st.button("Limpiar", key=f"clear__{prefix}", on_click=_clear, args=(store, prefix),
                      use_container_width=True)
