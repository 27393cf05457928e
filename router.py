# router.py: query-string codec + address-bar controllers
from __future__ import annotations
from typing import Mapping, Optional
from urllib.parse import parse_qsl, urlencode

import streamlit as st


def _blank(v) -> bool:
    return v is None or str(v).strip() == ""


def encode_query(mapping: Mapping[str, Optional[str]]) -> str:
    """Serialize a filter mapping, skipping None / blank values (no `key=` ever)."""
    pairs = [(k, str(v)) for k, v in mapping.items() if not _blank(v)]
    return urlencode(pairs)


def decode_query(query: str) -> dict[str, str]:
    """Lossless read: blank values are kept, last duplicate wins."""
    q = (query or "").lstrip("?")
    out: dict[str, str] = {}
    for k, v in parse_qsl(q, keep_blank_values=True):
        out[k] = v
    return out


class StreamlitLocation:
    """Address bar of the current Streamlit page (st.query_params)."""

    def read(self) -> dict[str, str]:
        out = {}
        for k in st.query_params.keys():
            vals = st.query_params.get_all(k)
            out[k] = vals[-1] if vals else ""
        return out

    def replace(self, mapping: Mapping[str, Optional[str]]) -> None:
        clean = decode_query(encode_query(mapping))
        st.query_params.clear()
        if clean:
            st.query_params.update(clean)


class MemoryLocation:
    """In-memory address bar; every replace() is recorded in `history`."""

    def __init__(self, initial: str = ""):
        self.query = (initial or "").lstrip("?")
        self.history: list[str] = []

    def read(self) -> dict[str, str]:
        return decode_query(self.query)

    def replace(self, mapping: Mapping[str, Optional[str]]) -> None:
        self.query = encode_query(mapping)
        self.history.append(self.query)

    def navigate(self, query: str) -> None:
        # external change (back/forward, pasted link); not a store write
        self.query = (query or "").lstrip("?")
