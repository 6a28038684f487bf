"""Pila de capacidad fija usada por el conversor y el evaluador."""

from __future__ import annotations

from calculator_errors import CalculatorError


class BoundedStack:
    """Pila con límite de elementos.

    Al superar la capacidad lanza ``overflow_error`` con ``overflow_message``
    en lugar de crecer, de modo que todo cálculo termina en un número acotado
    de pasos.
    """

    def __init__(
        self,
        capacity: int,
        overflow_error: type[CalculatorError],
        overflow_message: str,
    ):
        self._items: list = []
        self._capacity = capacity
        self._overflow_error = overflow_error
        self._overflow_message = overflow_message

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, item):
        if len(self._items) >= self._capacity:
            raise self._overflow_error(self._overflow_message)
        self._items.append(item)

    def pop(self):
        return self._items.pop()

    def peek(self):
        return self._items[-1]

    def to_list(self) -> list:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self):
        return iter(self._items)
