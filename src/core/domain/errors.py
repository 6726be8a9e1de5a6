"""Errores del dominio.

Taxonomía:
- `AuthenticationError`: fatal, aborta la ejecución.
- `RequestFailedError`: fallo aislado de un request; los pipelines lo registran
  y siguen con el siguiente registro.
- `ConfigurationError`: faltan URL o credenciales.
"""

from __future__ import annotations


class MdmError(Exception):
    """Base de los errores del cliente MDM."""


class ConfigurationError(MdmError):
    pass


class AuthenticationError(MdmError):
    pass


class RequestFailedError(MdmError):
    """El servidor respondió con un estado no exitoso o un payload inutilizable."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
