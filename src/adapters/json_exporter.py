"""Exportación JSON del estado persistido.

Por qué JSON:
- Interoperabilidad: los archivos son legibles y editables a mano.
- El formato (`mobileApplications.json`, `sortedApplications.json`,
  `token.json`) se mantiene estable entre versiones.

Las funciones `decode_*` lanzan `ValueError` ante datos corruptos; decidir qué
hacer con eso es cosa del llamador.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import TypeAdapter

from core.domain.models import ApplicationRecord, Classification, Credential

_RECORDS = TypeAdapter(list[ApplicationRecord])


def _dumps(payload: Any) -> bytes:
    return (json.dumps(payload, ensure_ascii=False, indent=2) + "\n").encode("utf-8")


def encode_inventory(records: list[ApplicationRecord]) -> bytes:
    return _dumps(_RECORDS.dump_python(records, mode="json"))


def decode_inventory(data: bytes) -> list[ApplicationRecord]:
    return _RECORDS.validate_json(data)


def encode_classification(classification: Classification) -> bytes:
    return _dumps(classification.model_dump(mode="json", by_alias=True))


def decode_classification(data: bytes) -> Classification:
    return Classification.model_validate_json(data)


def encode_credential(credential: Credential) -> bytes:
    return _dumps(credential.model_dump(mode="json"))


def decode_credential(data: bytes) -> Credential:
    return Credential.model_validate_json(data)
