"""Cliente de la API de Jamf Pro.

Responsabilidad:
- Intercambio usuario/password -> token bearer (`/api/v1/auth/token`).
- Endpoints clásicos de aplicaciones móviles (listado, subset VPP, borrado).
- Traducir respuestas HTTP a la taxonomía de errores del dominio.

No reintenta nada: el ritmo de llamadas lo decide el pipeline.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import AuthenticationError, ConfigurationError, RequestFailedError
from core.domain.models import Credential

logger = logging.getLogger(__name__)

AUTH_TOKEN_ENDPOINT = "/api/v1/auth/token"
MOBILE_DEVICE_APPLICATIONS_ENDPOINT = "/JSSResource/mobiledeviceapplications"


class JamfClient:
    """Implementación HTTP de `MdmApi`."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        missing = self._settings.missing_credentials()
        if missing:
            raise ConfigurationError(f"Missing configuration: {', '.join(missing)}")
        self._client = build_async_client(self._settings, transport=transport)
        self._credential: Credential | None = None

    async def __aenter__(self) -> "JamfClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def use_credential(self, credential: Credential) -> None:
        self._credential = credential

    async def authenticate(self) -> Credential:
        logger.debug("Requesting bearer token from %s", self._settings.base_url())
        response = await self._client.post(
            AUTH_TOKEN_ENDPOINT,
            auth=(self._settings.user or "", self._settings.password or ""),
        )
        if response.status_code != 200:
            raise AuthenticationError(
                f"Token exchange rejected by {self._settings.base_url()} (HTTP {response.status_code})"
            )
        try:
            return Credential.model_validate(response.json())
        except ValueError as exc:
            raise AuthenticationError(f"Unexpected token payload: {exc}") from exc

    async def list_applications(self) -> list[dict[str, Any]]:
        response = await self._client.get(
            MOBILE_DEVICE_APPLICATIONS_ENDPOINT,
            headers=self._auth_headers(),
        )
        payload = self._json(response)
        apps = payload.get("mobile_device_applications") if isinstance(payload, dict) else None
        if not isinstance(apps, list):
            raise RequestFailedError(
                "Response has no 'mobile_device_applications' list",
                status_code=response.status_code,
            )
        return [app for app in apps if isinstance(app, dict)]

    async def fetch_vpp(self, app_id: int) -> dict[str, Any] | None:
        response = await self._client.get(
            f"{MOBILE_DEVICE_APPLICATIONS_ENDPOINT}/id/{app_id}/subset/VPP",
            headers=self._auth_headers(),
        )
        payload = self._json(response)
        if not isinstance(payload, dict):
            raise RequestFailedError("VPP response is not an object", status_code=response.status_code)
        application = payload.get("mobile_device_application")
        if not isinstance(application, dict):
            return None
        vpp = application.get("vpp")
        logger.debug("VPP data for [%s]: %s", app_id, vpp)
        return vpp if isinstance(vpp, dict) else None

    async def delete_application(self, app_id: int) -> bool:
        response = await self._client.delete(
            f"{MOBILE_DEVICE_APPLICATIONS_ENDPOINT}/id/{app_id}",
            headers=self._auth_headers(),
        )
        self._raise_for_status(response)
        return response.status_code == 200

    def _auth_headers(self) -> dict[str, str]:
        if self._credential is None:
            raise AuthenticationError("No bearer token bound to the client")
        return {"Authorization": f"Bearer {self._credential.token}"}

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code == 401:
            raise AuthenticationError(f"{response.request.method} {response.request.url.path} unauthorized")
        if not response.is_success:
            raise RequestFailedError(
                f"{response.request.method} {response.request.url.path} failed (HTTP {response.status_code})",
                status_code=response.status_code,
            )

    def _json(self, response: httpx.Response) -> Any:
        self._raise_for_status(response)
        try:
            return response.json()
        except ValueError as exc:
            raise RequestFailedError(
                f"Invalid JSON from {response.request.url.path}",
                status_code=response.status_code,
            ) from exc
