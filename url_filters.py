# url_filters.py: filter state mirrored into the URL query string
"""Per-screen filter store.

A store is created once per screen mount, seeded from the current URL
(URL values win over the defaults) and writes the cleaned mapping back to
the address bar on every mutation. `filters` is replaced, never mutated,
so screens can detect changes with an identity check.
"""
from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

import streamlit as st

from router import StreamlitLocation, encode_query

logger = logging.getLogger(__name__)

FilterMapping = dict[str, Optional[str]]


class UnknownFilterError(KeyError):
    """Raised by a store with a closed key set for an undeclared filter key."""


def is_active(value) -> bool:
    return value is not None and str(value).strip() != ""


def count_active(mapping: Mapping[str, Optional[str]]) -> int:
    return sum(1 for v in mapping.values() if is_active(v))


def _clean(mapping: Mapping[str, Optional[str]]) -> FilterMapping:
    return {k: v for k, v in mapping.items() if is_active(v)}


class FilterStore:
    def __init__(
        self,
        defaults: Mapping[str, Optional[str]],
        location,
        *,
        allowed_keys: Optional[Iterable[str]] = None,
        sync_on_external_navigation: bool = False,
    ):
        self._defaults: FilterMapping = dict(defaults)
        self._location = location
        self._allowed = frozenset(allowed_keys) if allowed_keys is not None else None
        self.sync_on_external_navigation = sync_on_external_navigation
        from_url = self._from_url()
        # last URL state this store has seen or written (cleaned)
        self._url_state: FilterMapping = _clean(from_url)
        self._filters: FilterMapping = {**self._defaults, **from_url}

    def _from_url(self) -> FilterMapping:
        decoded = self._location.read()
        if self._allowed is not None:
            decoded = {k: v for k, v in decoded.items() if k in self._allowed}
        return decoded

    @property
    def filters(self) -> FilterMapping:
        return self._filters

    @property
    def defaults(self) -> FilterMapping:
        return dict(self._defaults)

    def update_filters(self, partial: Optional[Mapping[str, Optional[str]]] = None, **changes) -> None:
        """Merge `changes` into the live filters, drop blank keys, write the URL once."""
        changes = {**(partial or {}), **changes}
        if self._allowed is not None:
            unknown = sorted(set(changes) - self._allowed)
            if unknown:
                raise UnknownFilterError(", ".join(unknown))

        clean = _clean({**self._filters, **changes})
        self._filters = clean
        self._url_state = clean
        self._location.replace(clean)
        logger.debug("filters updated: %s", encode_query(clean))

    def clear_filters(self) -> None:
        """Back to the defaults; the query string is emptied."""
        self._filters = dict(self._defaults)
        self._url_state = {}
        self._location.replace({})
        logger.debug("filters cleared")

    def has_active_filters(self) -> bool:
        return any(is_active(v) for v in self._filters.values())

    def active_filter_count(self) -> int:
        return count_active(self._filters)

    def query_string(self) -> str:
        return encode_query(self._filters)

    def refresh(self) -> bool:
        """Follow URL changes made outside the store (only when enabled).

        Compares the address bar with the last state the store saw or wrote,
        so an empty URL over non-empty defaults stays settled.
        """
        if not self.sync_on_external_navigation:
            return False
        from_url = self._from_url()
        if _clean(from_url) == self._url_state:
            return False
        self._url_state = _clean(from_url)
        self._filters = {**self._defaults, **from_url}
        logger.debug("filters re-read from URL: %s", encode_query(self._filters))
        return True


_SLOT_PREFIX = "url_filters:"
_PAGE_SLOT = "url_filters_page"


def mount_page(page: str) -> bool:
    """Drop the stores of the previous page when the user switches pages.

    Returns True on the first run of `page` (a fresh mount).
    """
    if st.session_state.get(_PAGE_SLOT) == page:
        return False
    for k in [k for k in st.session_state.keys() if str(k).startswith(_SLOT_PREFIX)]:
        del st.session_state[k]
    st.session_state[_PAGE_SLOT] = page
    return True


def drop_store(key: str) -> None:
    st.session_state.pop(f"{_SLOT_PREFIX}{key}", None)


def use_url_filters(key: str, defaults: Mapping[str, Optional[str]], **options) -> FilterStore:
    """Return the page's store, creating it on the first run after mount."""
    slot = f"{_SLOT_PREFIX}{key}"
    store = st.session_state.get(slot)
    if store is None:
        store = FilterStore(defaults, StreamlitLocation(), **options)
        st.session_state[slot] = store
    else:
        store.refresh()
    return store
