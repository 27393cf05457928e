import json
from unittest.mock import Mock

import pytest
import requests

from api_client import ApiClient, ApiError, Page, clean_params, unwrap


def _resp(status=200, body=None, content=None):
    r = requests.Response()
    r.status_code = status
    r.reason = "OK" if status < 400 else "Error"
    if content is not None:
        r._content = content
    else:
        r._content = b"" if body is None else json.dumps(body).encode()
    return r


def _client(*responses, **kw):
    session = Mock()
    session.request.side_effect = list(responses)
    return ApiClient("https://api.example.test/", session=session, **kw), session


class TestEnvelope:
    def test_page_from_paginated_payload(self):
        p = Page.from_payload({"count": 3, "next": "n", "previous": None, "results": [{"id": 1}]})
        assert (p.count, p.next, p.previous, p.results) == (3, "n", None, [{"id": 1}])

    def test_page_from_wrapped_payload(self):
        p = Page.from_payload({"success": True, "data": {"count": 1, "results": [{"id": 1}]}})
        assert p.count == 1 and p.results == [{"id": 1}]

    def test_page_from_bare_list(self):
        p = Page.from_payload([{"id": 1}, {"id": 2}])
        assert p.count == 2 and p.next is None

    def test_page_from_garbage(self):
        assert Page.from_payload(None) == Page()

    def test_unwrap(self):
        assert unwrap({"data": {"results": [1]}}) == [1]
        assert unwrap({"results": [2]}) == [2]
        assert unwrap([3]) == [3]


def test_clean_params_drops_none_and_blank():
    assert clean_params({"a": None, "b": "", "c": "  ", "d": "x", "e": False, "f": 0}) == {
        "d": "x", "e": False, "f": 0}


class TestRequests:
    def test_list_medios_sends_params_and_token(self):
        client, session = _client(_resp(body={"count": 0, "results": []}), token="tok")
        page = client.list_medios(page=1, page_size=20, autor="x", proyecto="")
        assert page.count == 0
        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        assert (method, url) == ("GET", "https://api.example.test/api/medios/")
        assert kwargs["params"] == {"page": 1, "page_size": 20, "autor": "x"}
        assert kwargs["headers"]["Authorization"] == "Bearer tok"

    def test_no_authorization_header_without_token(self):
        client, session = _client(_resp(body=[]))
        client.list_redes()
        assert "Authorization" not in session.request.call_args.kwargs["headers"]

    def test_http_error_raises_api_error_with_detail(self):
        client, _ = _client(_resp(400, {"detail": "Proyecto inválido"}))
        with pytest.raises(ApiError) as exc:
            client.list_proyectos()
        assert exc.value.status_code == 400
        assert "Proyecto inválido" in str(exc.value)

    def test_connection_error_is_wrapped(self):
        session = Mock()
        session.request.side_effect = requests.ConnectionError("boom")
        client = ApiClient("https://api.example.test", session=session)
        with pytest.raises(ApiError):
            client.list_historial()

    def test_non_json_body_raises(self):
        client, _ = _client(_resp(content=b"<html>"))
        with pytest.raises(ApiError):
            client.list_medios()

    def test_empty_body_returns_none(self):
        client, _ = _client(_resp(204))
        assert client.delete_proyecto("p1") is None


class TestTokenRefresh:
    def test_retries_once_after_refresh(self):
        client, session = _client(
            _resp(401, {"detail": "expired"}),
            _resp(200, {"access": "new"}),
            _resp(200, {"count": 1, "results": [{"id": 1}]}),
            token="old", refresh_token="r",
        )
        page = client.list_proyectos()
        assert page.count == 1
        assert client.token == "new"
        assert session.request.call_count == 3
        assert session.request.call_args.kwargs["headers"]["Authorization"] == "Bearer new"

    def test_failed_refresh_surfaces_first_401(self):
        client, session = _client(
            _resp(401, {"detail": "expired"}),
            _resp(401, {"detail": "bad refresh"}),
            token="old", refresh_token="r",
        )
        with pytest.raises(ApiError) as exc:
            client.list_proyectos()
        assert exc.value.status_code == 401
        assert session.request.call_count == 2

    def test_no_refresh_without_refresh_token(self):
        client, session = _client(_resp(401, {"detail": "expired"}), token="old")
        with pytest.raises(ApiError):
            client.list_proyectos()
        assert session.request.call_count == 1


class TestAuth:
    def test_login_stores_tokens(self):
        client, _ = _client(_resp(body={"access": "a", "refresh": "r", "user": {"email": "u@x.co"}}))
        data = client.login("u@x.co", "pw")
        assert client.token == "a" and client.refresh_token == "r"
        assert data["user"]["email"] == "u@x.co"

    def test_login_without_token_is_invalid(self):
        client, _ = _client(_resp(body={"success": False}))
        with pytest.raises(ApiError):
            client.login("u@x.co", "pw")

    def test_logout_clears_tokens_even_on_error(self):
        client, _ = _client(_resp(500, {"detail": "down"}), token="a", refresh_token="r")
        client.logout()
        assert client.token is None and client.refresh_token is None


class TestWrites:
    def test_create_proyecto_unwraps_data(self):
        client, session = _client(_resp(201, {"data": {"id": "p1", "nombre": "X"}}))
        assert client.create_proyecto({"nombre": "X"}) == {"id": "p1", "nombre": "X"}
        assert session.request.call_args.args == ("POST", "https://api.example.test/api/proyectos/crear/")

    def test_update_proyecto_patches(self):
        client, session = _client(_resp(200, {"id": "p1", "nombre": "Y"}))
        assert client.update_proyecto("p1", {"nombre": "Y"})["nombre"] == "Y"
        assert session.request.call_args.args == ("PATCH", "https://api.example.test/api/proyectos/p1/")

    def test_enviar_alertas_targets_tipo_endpoint(self):
        client, session = _client(_resp(200, {"success": True}))
        client.enviar_alertas("redes", "p1", [{"id": 1}])
        assert session.request.call_args.args[1].endswith("/api/whatsapp/captura_alerta_redes/")
        assert session.request.call_args.kwargs["json"]["proyecto_id"] == "p1"

    def test_enviar_alertas_rejects_unknown_tipo(self):
        client, _ = _client()
        with pytest.raises(ValueError):
            client.enviar_alertas("email", "p1", [])

    def test_export_historial_returns_bytes(self):
        client, _ = _client(_resp(content=b"PK\x03\x04"))
        assert client.export_historial(usuario_nombre="ana") == b"PK\x03\x04"

    def test_list_plantillas_filters_by_proyecto(self):
        client, session = _client(_resp(body=[{"id": "t1", "nombre": "Base"}]))
        assert client.list_plantillas("p1") == [{"id": "t1", "nombre": "Base"}]
        assert session.request.call_args.kwargs["params"] == {"proyecto_id": "p1"}

    def test_error_body_is_kept_on_api_error(self):
        client, _ = _client(_resp(400, {"detail": "x", "campo": ["requerido"]}))
        with pytest.raises(ApiError) as exc:
            client.update_medio("m1", {"autor": ""})
        assert exc.value.payload == {"detail": "x", "campo": ["requerido"]}


SUMMARY = {"mensaje": "2 registros creados", "listado": [{"id": 1}, {"id": 2}], "errores": [],
           "duplicados": 0, "descartados": 0}


class TestIngestion:
    def test_file_is_sent_as_multipart(self):
        client, session = _client(_resp(201, SUMMARY), token="tok")
        assert client.ingestar("p1", archivo=("alertas.XLSX", b"PK")) == SUMMARY
        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        assert (method, url) == ("POST", "https://api.example.test/api/ingestion/")
        assert kwargs["data"] == {"proyecto_id": "p1"}
        assert kwargs["files"] == {"archivo": ("alertas.XLSX", b"PK")}
        assert "json" not in kwargs
        assert "Content-Type" not in kwargs["headers"]

    def test_url_is_sent_as_json(self):
        client, session = _client(_resp(201, SUMMARY))
        client.ingestar("p1", url=" https://x.co/nota ", tipo="red")
        assert session.request.call_args.kwargs["json"] == {
            "proyecto_id": "p1", "url": "https://x.co/nota", "tipo": "red"}

    def test_no_accepted_rows_returns_summary(self):
        empty = {**SUMMARY, "mensaje": "0 registros cumplen con los criterios", "listado": []}
        client, _ = _client(_resp(405, empty))
        assert client.ingestar("p1", url="https://x.co")["listado"] == []

    def test_other_errors_raise(self):
        client, _ = _client(_resp(400, {"detail": "Formato de archivo no soportado."}))
        with pytest.raises(ApiError) as exc:
            client.ingestar("p1", archivo=("a.csv", b"x"))
        assert "no soportado" in str(exc.value)

    @pytest.mark.parametrize("kwargs", [
        {"archivo": ("notas.pdf", b"%PDF")},
        {},
        {"url": "   "},
        {"archivo": ("a.csv", b"x"), "url": "https://x.co"},
        {"url": "https://x.co", "tipo": "video"},
    ])
    def test_invalid_input_is_rejected_before_sending(self, kwargs):
        client, session = _client()
        with pytest.raises(ValueError):
            client.ingestar("p1", **kwargs)
        session.request.assert_not_called()

    def test_project_is_required(self):
        client, _ = _client()
        with pytest.raises(ValueError):
            client.ingestar("", url="https://x.co")
