"""Despachador serial con pausa fija.

Por qué una clase y no un `sleep` dentro de cada bucle:
- La política (un request en vuelo, pausa entre llamadas consecutivas) queda
  en un solo lugar y se testea sin red.
- El `sleep` es inyectable: los tests cuentan pausas sin esperar.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class SerialDispatcher:
    """Ejecuta llamadas de a una, con `delay_seconds` entre llamadas consecutivas.

    La pausa se hace con el slot tomado, así ningún otro lote puede colarse
    durante la espera. No hay pausa después de la última llamada del lote.
    """

    def __init__(
        self,
        delay_seconds: float,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._delay = max(0.0, delay_seconds)
        self._sleep = sleep
        self._slot = asyncio.Semaphore(1)

    async def run(
        self,
        items: Sequence[T],
        call: Callable[[T], Awaitable[R]],
    ) -> list[R]:
        """Aplica `call` a cada item en orden y devuelve los resultados.

        Una excepción de `call` corta el lote y se propaga tal cual.
        """

        results: list[R] = []
        last = len(items) - 1
        for index, item in enumerate(items):
            async with self._slot:
                results.append(await call(item))
                if index < last and self._delay > 0:
                    await self._sleep(self._delay)
        return results
