import os
import sys
from types import SimpleNamespace

import pytest

# Project modules live at the repo root (flat layout)
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


class FakeQueryParams(dict):
    """Stand-in for st.query_params (single-valued, like the proxy's getters)."""

    def get_all(self, key):
        return [self[key]] if key in self else []


@pytest.fixture
def fake_st(monkeypatch):
    import router
    import url_filters

    st = SimpleNamespace(query_params=FakeQueryParams(), session_state={})
    monkeypatch.setattr(router, "st", st)
    monkeypatch.setattr(url_filters, "st", st)
    return st
