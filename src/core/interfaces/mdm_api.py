"""Contratos de la API MDM y del almacenamiento de estado.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Permite sustituir el cliente Jamf real por fakes en tests sin acoplar el
  Core a `httpx`.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.domain.models import Credential


@runtime_checkable
class MdmApi(Protocol):
    """Operaciones remotas que consume el pipeline.

    Reglas de diseño:
    - Todo es asíncrono porque es I/O (HTTP).
    - Un fallo aislado de un request se señala con `RequestFailedError`;
      un rechazo de credenciales con `AuthenticationError`.
    """

    async def authenticate(self) -> Credential:
        """Intercambia usuario/password por un token bearer."""

        ...

    def use_credential(self, credential: Credential) -> None:
        """Fija el token que se envía en los requests siguientes."""

        ...

    async def list_applications(self) -> list[dict[str, Any]]:
        ...

    async def fetch_vpp(self, app_id: int) -> dict[str, Any] | None:
        """Devuelve el subconjunto VPP, o None si la respuesta no lo trae."""

        ...

    async def delete_application(self, app_id: int) -> bool:
        """True solo si el servidor confirma el borrado."""

        ...


@runtime_checkable
class BlobStore(Protocol):
    """Almacenamiento clave -> bytes, best-effort en escritura."""

    def load(self, key: str) -> bytes | None:
        ...

    def save(self, key: str, data: bytes) -> None:
        ...
