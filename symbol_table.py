"""Constantes predefinidas y tabla de variables de la sesión."""

from __future__ import annotations

import math

from mpmath import mp

from calculator_errors import CapacityExceededError

MAX_VARIABLES = 100
MAX_IDENTIFIER_LEN = 32

ANS = "ans"

# Las constantes matemáticas salen de mpmath redondeadas a doble precisión.
CONSTANTS = {
    "pi": float(mp.pi),
    "e": float(mp.e),
    "phi": float(mp.phi),
    "gamma": float(mp.euler),
    "c": 299792458.0,
    "h": 6.62607015e-34,
    "G": 6.67430e-11,
    "Na": 6.02214076e23,
    "k": 1.380649e-23,
    "inf": math.inf,
}


class SymbolTable:
    """Variables de usuario, ``ans`` y el registro de memoria.

    ``ans`` existe siempre y ocupa una de las ``MAX_VARIABLES`` entradas.
    Las variables se crean en la primera asignación, se sobrescriben en las
    siguientes y nunca se eliminan.
    """

    def __init__(self, capacity: int = MAX_VARIABLES):
        self._capacity = capacity
        self._values: dict[str, float] = {ANS: 0.0}
        self.memory = 0.0

    # ── Consulta ─────────────────────────────────────────────────

    def lookup(self, name: str) -> float | None:
        return self._values.get(name)

    def has(self, name: str) -> bool:
        return name in self._values

    def resolve_constant(self, name: str) -> float | None:
        """Valor de una constante con nombre; ``ans`` se lee en cada llamada."""
        if name == ANS:
            return self._values[ANS]
        return CONSTANTS.get(name)

    # ── Modificación ─────────────────────────────────────────────

    def set(self, name: str, value: float):
        """Crea o actualiza una variable.

        Raises:
            ValueError: nombre vacío.
            CapacityExceededError: tabla llena y la variable no existía.
        """
        if not name:
            raise ValueError("Nombre de variable vacío")
        if name not in self._values and len(self._values) >= self._capacity:
            raise CapacityExceededError(
                f"Se alcanzó el máximo de variables ({self._capacity})"
            )
        self._values[name] = value

    # ── Listado ──────────────────────────────────────────────────

    def items(self) -> list[tuple[str, float]]:
        """Pares (nombre, valor) con ``ans`` en primer lugar."""
        rest = [(name, value) for name, value in self._values.items() if name != ANS]
        return [(ANS, self._values[ANS])] + rest

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name: str) -> bool:
        return self.has(name)
