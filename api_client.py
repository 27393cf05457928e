"""HTTP client for the Alertas REST API.

Wraps ``requests`` with the Bearer token, a single retry after refreshing
the token when the API answers 401, and unwrapping of the paginated
envelope (``count``/``next``/``previous``/``results``).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

TIPOS_ALERTA = ("medios", "redes")
INGESTION_EXTENSIONS = (".xlsx", ".csv")


class ApiError(Exception):
    """Any failure talking to the API."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


@dataclass
class Page:
    count: int = 0
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "Page":
        if isinstance(payload, dict) and isinstance(payload.get("data"), (dict, list)):
            payload = payload["data"]
        if isinstance(payload, list):
            return cls(count=len(payload), results=payload)
        if not isinstance(payload, dict):
            return cls()
        results = payload.get("results")
        if not isinstance(results, list):
            results = []
        return cls(
            count=int(payload.get("count", len(results)) or 0),
            next=payload.get("next"),
            previous=payload.get("previous"),
            results=results,
        )


def unwrap(payload: Any) -> Any:
    """Take ``data`` and then ``results`` when the payload carries them."""
    if isinstance(payload, dict) and "data" in payload:
        payload = payload["data"]
    if isinstance(payload, dict) and "results" in payload:
        payload = payload["results"]
    return payload


def clean_params(params: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in params.items():
        if v is None:
            continue
        if isinstance(v, str) and not v.strip():
            continue
        out[k] = v
    return out


def _json_or_none(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(response: requests.Response) -> str:
    body = _json_or_none(response)
    if isinstance(body, dict):
        for key in ("detail", "error", "message", "mensaje"):
            if body.get(key):
                return str(body[key])
    return f"Error {response.status_code}: {response.reason}"


class ApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.refresh_token = refresh_token
        self.timeout = timeout
        self.session = session or requests.Session()

    # ------------------------------------------------------------------ http
    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(
                method, self._url(path), headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as exc:
            logger.error("Connection error %s %s: %s", method, path, exc)
            raise ApiError(f"No fue posible conectar con la API: {exc}") from exc

    def request(self, method: str, path: str, *, params=None, json=None, data=None, files=None) -> Any:
        kwargs: Dict[str, Any] = {}
        if params:
            kwargs["params"] = clean_params(params)
        if json is not None:
            kwargs["json"] = json
        if data is not None:
            kwargs["data"] = data
        if files is not None:
            kwargs["files"] = files

        response = self._send(method, path, **kwargs)
        if response.status_code == 401 and self.refresh_token:
            if self._refresh():
                response = self._send(method, path, **kwargs)

        if not response.ok:
            message = _error_message(response)
            logger.error("%s %s -> %s: %s", method, path, response.status_code, message)
            raise ApiError(message, status_code=response.status_code, payload=_json_or_none(response))

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.exception("Non-JSON response for %s %s", method, path)
            raise ApiError("Respuesta inválida del servidor", status_code=response.status_code) from exc

    def _refresh(self) -> bool:
        response = self._send("POST", "/api/token/refresh/", json={"refresh": self.refresh_token})
        if not response.ok:
            logger.warning("Token refresh failed (%s)", response.status_code)
            return False
        try:
            access = response.json().get("access")
        except ValueError:
            return False
        if not access:
            return False
        self.token = access
        logger.info("Access token refreshed")
        return True

    def get(self, path: str, **params) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, data: Any = None) -> Any:
        return self.request("POST", path, json=data)

    def patch(self, path: str, data: Any = None) -> Any:
        return self.request("PATCH", path, json=data)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    # ------------------------------------------------------------------ auth
    def _store_tokens(self, payload: Any) -> Dict[str, Any]:
        data = unwrap(payload) if isinstance(payload, dict) else {}
        if not isinstance(data, dict):
            data = {}
        tokens = data.get("tokens") if isinstance(data.get("tokens"), dict) else data
        access = tokens.get("access") or tokens.get("token")
        if not access:
            raise ApiError("Respuesta inválida del servidor", payload=payload)
        self.token = access
        self.refresh_token = tokens.get("refresh")
        return data

    def login(self, email: str, password: str) -> Dict[str, Any]:
        payload = self.post("/api/token/", {"email": email, "password": password})
        return self._store_tokens(payload)

    def logout(self) -> None:
        try:
            self.post("/api/auth/logout/")
        except ApiError as exc:
            logger.warning("Logout failed: %s", exc)
        finally:
            self.token = None
            self.refresh_token = None

    # ------------------------------------------------------------- proyectos
    def list_proyectos(self, **params) -> Page:
        return Page.from_payload(self.get("/api/proyectos/", **params))

    def create_proyecto(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        payload = self.post("/api/proyectos/crear/", dict(data))
        return (payload.get("data") or payload) if isinstance(payload, dict) else payload

    def update_proyecto(self, proyecto_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        payload = self.patch(f"/api/proyectos/{proyecto_id}/", dict(data))
        return (payload.get("data") or payload) if isinstance(payload, dict) else payload

    def delete_proyecto(self, proyecto_id: str) -> None:
        self.delete(f"/api/proyectos/{proyecto_id}/")

    # ------------------------------------------------------- medios / redes
    def list_medios(self, **params) -> Page:
        return Page.from_payload(self.get("/api/medios/", **params))

    def list_redes(self, **params) -> Page:
        return Page.from_payload(self.get("/api/redes/", **params))

    def update_medio(self, medio_id: str, data: Mapping[str, Any]) -> Any:
        return self.patch(f"/api/medios/{medio_id}/", dict(data))

    def update_red(self, red_id: str, data: Mapping[str, Any]) -> Any:
        return self.patch(f"/api/redes/{red_id}/", dict(data))

    # ------------------------------------------------------------- historial
    def list_historial(self, **params) -> Page:
        return Page.from_payload(self.get("/api/historial-envios/", **params))

    def export_historial(self, **params) -> bytes:
        """Excel export of the send history (same filters as the list)."""
        response = self._send("GET", "/api/exportar-historial/", params=clean_params(params))
        if not response.ok:
            message = _error_message(response)
            logger.error("GET /api/exportar-historial/ -> %s: %s", response.status_code, message)
            raise ApiError(message, status_code=response.status_code)
        return response.content

    def list_plantillas(self, proyecto_id: str) -> List[Dict[str, Any]]:
        """Message templates of one project (the API returns none without `proyecto_id`)."""
        data = unwrap(self.get("/api/plantillas/", proyecto_id=proyecto_id))
        return data if isinstance(data, list) else []

    # ------------------------------------------------------------- ingestion
    def ingestar(
        self,
        proyecto_id: str,
        *,
        archivo: Optional[Tuple[str, bytes]] = None,
        url: Optional[str] = None,
        tipo: str = "articulo",
    ) -> Dict[str, Any]:
        """Send a .xlsx/.csv file or a single URL to the ingestion endpoint.

        `archivo` is ``(filename, content)``. The file is parsed server side.
        When no row passes the project criteria the API answers 405 with the
        usual summary body; that summary is returned instead of raised.
        """
        if not proyecto_id:
            raise ValueError("Selecciona un proyecto antes de iniciar la ingestión")
        if (archivo is None) == (not (url or "").strip()):
            raise ValueError("Indica un archivo o una URL")
        try:
            if archivo is not None:
                nombre, contenido = archivo
                if os.path.splitext(nombre)[1].lower() not in INGESTION_EXTENSIONS:
                    raise ValueError("Solo se permiten archivos en formato .xlsx o .csv")
                payload = self.request(
                    "POST", "/api/ingestion/",
                    data={"proyecto_id": proyecto_id}, files={"archivo": (nombre, contenido)},
                )
            else:
                if tipo not in ("articulo", "red"):
                    raise ValueError(f"Tipo de registro no reconocido: {tipo}")
                payload = self.post(
                    "/api/ingestion/", {"proyecto_id": proyecto_id, "url": url.strip(), "tipo": tipo}
                )
        except ApiError as exc:
            if isinstance(exc.payload, dict) and "listado" in exc.payload:
                logger.info("Ingestion finished without new records: %s", exc)
                return exc.payload
            raise
        return payload if isinstance(payload, dict) else {}

    # ------------------------------------------------------------- whatsapp
    def enviar_alertas(self, tipo_alerta: str, proyecto_id: str, alertas: List[Dict[str, Any]]) -> Any:
        if tipo_alerta not in TIPOS_ALERTA:
            raise ValueError(f"Tipo de alerta no reconocido: {tipo_alerta}")
        return self.post(
            f"/api/whatsapp/captura_alerta_{tipo_alerta}/",
            {"proyecto_id": proyecto_id, "tipo_alerta": tipo_alerta, "alertas": alertas},
        )
