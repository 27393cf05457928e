import pytest

from router import MemoryLocation, StreamlitLocation, decode_query, encode_query


class TestEncode:
    def test_skips_empty_and_whitespace_values(self):
        q = encode_query({"proyecto": "abc", "nombre": "", "tipo": "   ", "autor": None})
        assert q == "proyecto=abc"

    def test_never_emits_bare_key(self):
        assert "nombre=" not in encode_query({"nombre": " ", "url": "x"})

    def test_keeps_declaration_order(self):
        assert encode_query({"b": "2", "a": "1"}) == "b=2&a=1"

    def test_percent_encodes_reserved_characters(self):
        q = encode_query({"url": "https://x.co/a?b=c&d=e"})
        assert "&d=" not in q
        assert decode_query(q)["url"] == "https://x.co/a?b=c&d=e"

    @pytest.mark.parametrize("value", ["ElTiempo", "El Tiempo", "  padded  ", "ñandú", "a+b"])
    def test_round_trip_for_non_empty_values(self, value):
        m = {"proyecto": "", "nombre": "x"}
        assert decode_query(encode_query({**m, "nombre": value}))["nombre"] == value

    def test_empty_mapping(self):
        assert encode_query({}) == ""


class TestDecode:
    def test_keeps_blank_values(self):
        assert decode_query("?a=&b=1") == {"a": "", "b": "1"}

    def test_last_duplicate_wins(self):
        assert decode_query("a=1&a=2") == {"a": "2"}

    def test_tolerates_malformed_percent_sequences(self):
        assert decode_query("a=%zz&b=%E2%82")["a"] == "%zz"

    def test_empty_string(self):
        assert decode_query("") == {}
        assert decode_query(None) == {}


class TestMemoryLocation:
    def test_read_and_replace(self):
        loc = MemoryLocation("?nombre=ElTiempo")
        assert loc.read() == {"nombre": "ElTiempo"}
        loc.replace({"nombre": "", "proyecto": "abc"})
        assert loc.query == "proyecto=abc"
        assert loc.history == ["proyecto=abc"]

    def test_navigate_is_not_recorded(self):
        loc = MemoryLocation()
        loc.navigate("?a=1")
        assert loc.read() == {"a": "1"}
        assert loc.history == []


class TestStreamlitLocation:
    def test_read_flattens_query_params(self, fake_st):
        fake_st.query_params.update({"nombre": "ElTiempo", "tipo": ""})
        assert StreamlitLocation().read() == {"nombre": "ElTiempo", "tipo": ""}

    def test_replace_drops_blank_values_and_old_keys(self, fake_st):
        fake_st.query_params.update({"old": "1"})
        StreamlitLocation().replace({"proyecto": "abc", "nombre": "  "})
        assert dict(fake_st.query_params) == {"proyecto": "abc"}

    def test_replace_with_empty_mapping_clears(self, fake_st):
        fake_st.query_params.update({"a": "1"})
        StreamlitLocation().replace({})
        assert dict(fake_st.query_params) == {}
