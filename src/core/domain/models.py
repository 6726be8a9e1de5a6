"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Conserva los campos desconocidos que devuelve Jamf (`extra="allow"`), así el
  inventario persistido no pierde información entre ejecuciones.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
- `Classification` guarda las *mismas* instancias que el inventario: marcar un
  registro como borrado (tombstone) es visible desde ambos lados.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Iterator

from pydantic import BaseModel, Field, SerializerFunctionWrapHandler, field_validator, model_serializer
from pydantic.config import ConfigDict


class Credential(BaseModel):
    """Token bearer emitido por `/api/v1/auth/token`.

    Nunca se modifica: cuando expira se reemplaza completo.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    token: str = Field(
        ...,
        min_length=1,
        description="Token bearer opaco.",
    )
    expires: datetime | None = Field(
        default=None,
        description="Momento de expiración (UTC). Sin expiración el token no es utilizable.",
    )

    @field_validator("expires")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def is_valid(self, now: datetime) -> bool:
        """Un token es utilizable sii `expires > now`."""

        return self.expires is not None and self.expires > now


class VppData(BaseModel):
    """Subconjunto VPP de una aplicación (licencias compradas vs asignadas).

    Los contadores se guardan tal como llegan: un valor que no es entero no se
    rechaza, el clasificador lo manda a `other`. Al serializar solo se escriben
    las claves que Jamf envió, así "ausente" y `null` siguen siendo distintos
    después de recargar.
    """

    model_config = ConfigDict(extra="allow")

    total_vpp_licenses: Any = Field(
        default=None,
        description="Licencias compradas. Ausente = aplicación sin licencia VPP.",
    )
    used_vpp_licenses: Any = Field(
        default=None,
        description="Licencias asignadas (solo tiene sentido con total presente).",
    )

    @model_serializer(mode="wrap")
    def _sent_fields_only(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        unset = set(type(self).model_fields) - self.model_fields_set
        return {key: value for key, value in data.items() if key not in unset}


class ApplicationRecord(BaseModel):
    """Aplicación móvil conocida por el servidor MDM.

    `id=None` marca el registro como borrado (tombstone) hasta la compactación.
    """

    model_config = ConfigDict(extra="allow")

    id: int | None = Field(
        default=None,
        description="Identificador estable en Jamf; None si el registro fue borrado.",
    )
    name: str = Field(
        default="",
        description="Nombre visible de la aplicación.",
    )
    vpp: VppData | None = Field(
        default=None,
        description="Datos VPP; None mientras la aplicación no fue enriquecida.",
    )

    @property
    def is_tombstoned(self) -> bool:
        return self.id is None

    @property
    def is_enriched(self) -> bool:
        return self.vpp is not None


class Category(str, Enum):
    """Las cinco categorías mutuamente excluyentes del clasificador."""

    LICENSED_PURCHASED_IN_USE = "licensedPurchasedInUse"
    LICENSED_PURCHASED_NOT_IN_USE = "licensedPurchasedNotInUse"
    LICENSED_UNPURCHASED = "licensedUnpurchased"
    UNLICENSED = "unlicensed"
    OTHER = "other"

    def label(self) -> str:
        """Título usado en el reporte de texto."""

        return _TITLES[self]


_TITLES: dict[Category, str] = {
    Category.LICENSED_PURCHASED_IN_USE: "Licensed Purchased In Use",
    Category.LICENSED_PURCHASED_NOT_IN_USE: "Licensed Purchased Not In Use",
    Category.LICENSED_UNPURCHASED: "Licensed Unpurchased",
    Category.UNLICENSED: "Unlicensed",
    Category.OTHER: "Other",
}


class Classification(BaseModel):
    """Partición de las aplicaciones enriquecidas en cinco listas.

    Los alias camelCase son el formato histórico de `sortedApplications.json`.
    """

    model_config = ConfigDict(populate_by_name=True)

    licensed_purchased_in_use: list[ApplicationRecord] = Field(
        default_factory=list, alias="licensedPurchasedInUse"
    )
    licensed_purchased_not_in_use: list[ApplicationRecord] = Field(
        default_factory=list, alias="licensedPurchasedNotInUse"
    )
    licensed_unpurchased: list[ApplicationRecord] = Field(
        default_factory=list, alias="licensedUnpurchased"
    )
    unlicensed: list[ApplicationRecord] = Field(default_factory=list, alias="unlicensed")
    other: list[ApplicationRecord] = Field(default_factory=list, alias="other")

    def members(self, category: Category) -> list[ApplicationRecord]:
        """Lista viva (no copia) de la categoría."""

        return getattr(self, _FIELDS[category])

    def iter_lists(self) -> Iterator[tuple[Category, list[ApplicationRecord]]]:
        for category in Category:
            yield category, self.members(category)

    def counts(self) -> dict[Category, int]:
        return {category: len(records) for category, records in self.iter_lists()}

    def relink(self, inventory: Iterable[ApplicationRecord]) -> None:
        """Reemplaza copias por las instancias del inventario con el mismo id.

        Tras cargar de disco inventario y clasificación son objetos distintos;
        esto restablece las referencias compartidas.
        """

        by_id = {record.id: record for record in inventory if record.id is not None}
        for _, records in self.iter_lists():
            records[:] = [
                by_id.get(record.id, record) if record.id is not None else record
                for record in records
            ]


_FIELDS: dict[Category, str] = {
    Category.LICENSED_PURCHASED_IN_USE: "licensed_purchased_in_use",
    Category.LICENSED_PURCHASED_NOT_IN_USE: "licensed_purchased_not_in_use",
    Category.LICENSED_UNPURCHASED: "licensed_unpurchased",
    Category.UNLICENSED: "unlicensed",
    Category.OTHER: "other",
}
