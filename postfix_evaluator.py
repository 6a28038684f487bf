"""Evaluación de expresiones en notación postfija con soporte de porcentajes."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from bounded_stack import BoundedStack
from calculator_errors import (
    DivisionByZeroError,
    DomainError,
    InsufficientOperandsError,
    InternalError,
    MalformedExpressionError,
    ModuloByZeroError,
    StackOverflowError,
)
from tokenizer import (
    MAX_TOKENS,
    Function,
    FunctionToken,
    NumberToken,
    Operator,
    OperatorToken,
    Token,
)

logger = logging.getLogger("nmri.evaluator")


@dataclass
class StackValue:
    number: float
    is_percent: bool = False

    def plain(self) -> float:
        """Valor numérico con el porcentaje ya convertido (20% → 0.2)."""
        return self.number / 100.0 if self.is_percent else self.number


# ── Funciones auxiliares con semántica de libm ───────────────────


def _is_odd_integer(x: float) -> bool:
    return math.isfinite(x) and x.is_integer() and x % 2 == 1


def _power(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        return -math.inf if a < 0 and _is_odd_integer(b) else math.inf
    except ValueError:
        if a == 0.0:
            # 0 elevado a un exponente negativo: polo
            negative = math.copysign(1.0, a) < 0 and _is_odd_integer(b)
            return -math.inf if negative else math.inf
        raise DomainError(
            "La potencia de base negativa con exponente no entero no es real"
        ) from None


def _exp(x: float) -> float:
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


def _floor(x: float) -> float:
    return float(math.floor(x)) if math.isfinite(x) else x


def _ceil(x: float) -> float:
    return float(math.ceil(x)) if math.isfinite(x) else x


def _round(x: float) -> float:
    """Redondeo al entero más cercano, mitades lejos de cero."""
    if not math.isfinite(x):
        return x
    magnitude = abs(x)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return math.copysign(float(whole), x)


def _in_unit_interval(x: float) -> bool:
    return -1.0 <= x <= 1.0


class PythonMathProvider:
    """Tabla de funciones de un argumento con su dominio y el modo angular."""

    def __init__(self, angle_mode: str = "rad"):
        self.angle_mode = angle_mode

    @property
    def angle_mode(self) -> str:
        return self._angle_mode

    @angle_mode.setter
    def angle_mode(self, mode: str):
        if mode not in ("rad", "deg"):
            raise ValueError("El modo debe ser 'rad' o 'deg'")
        self._angle_mode = mode
        self._table = self.build_table()

    def build_table(self) -> dict:
        """Función → (implementación, comprobación de dominio, mensaje)."""
        mode = self._angle_mode

        def _trig(fn):
            def w(x):
                return fn(math.radians(x) if mode == "deg" else x)

            return w

        def _inv_trig(fn):
            def w(x):
                r = fn(x)
                return math.degrees(r) if mode == "deg" else r

            return w

        return {
            Function.SIN: (_trig(math.sin), None, None),
            Function.COS: (_trig(math.cos), None, None),
            Function.TAN: (_trig(math.tan), None, None),
            Function.ASIN: (
                _inv_trig(math.asin),
                _in_unit_interval,
                "El argumento de asin debe estar en [-1, 1]",
            ),
            Function.ACOS: (
                _inv_trig(math.acos),
                _in_unit_interval,
                "El argumento de acos debe estar en [-1, 1]",
            ),
            Function.ATAN: (_inv_trig(math.atan), None, None),
            Function.LOG: (
                math.log,
                lambda x: x > 0.0,
                "El logaritmo requiere un argumento positivo",
            ),
            Function.SQRT: (
                math.sqrt,
                lambda x: x >= 0.0,
                "La raíz cuadrada requiere un argumento no negativo",
            ),
            Function.EXP: (_exp, None, None),
            Function.ABS: (math.fabs, None, None),
            Function.FLOOR: (_floor, None, None),
            Function.CEIL: (_ceil, None, None),
            Function.ROUND: (_round, None, None),
        }

    def apply(self, function: Function, x: float) -> float:
        """Aplica ``function`` a ``x``.

        Raises:
            DomainError: argumento fuera del dominio de la función.
        """
        impl, in_domain, message = self._table[function]
        if in_domain is not None and not in_domain(x):
            raise DomainError(message)
        try:
            return impl(x)
        except ValueError as exc:
            raise DomainError(f"{function.value}({x}) no está definido") from exc


# ── Operadores binarios ──────────────────────────────────────────


def _warn_percent_ignored(a: StackValue, b: StackValue, operation: str):
    if a.is_percent or b.is_percent:
        logger.warning("Porcentaje ignorado en la operación de %s", operation)


def apply_operator(operator: Operator, a: StackValue, b: StackValue) -> float:
    """Aplica un operador binario con la semántica de porcentajes.

    ``a + b%`` y ``a - b%`` toman el porcentaje sobre ``a``; ``*`` y ``/``
    convierten cada operando porcentual a fracción; ``^`` y ``%`` ignoran
    la marca.
    """
    if operator is Operator.ADD:
        if b.is_percent:
            return a.number + (b.number / 100.0 * a.number)
        return a.number + b.number
    if operator is Operator.SUB:
        if b.is_percent:
            return a.number - (b.number / 100.0 * a.number)
        return a.number - b.number
    if operator is Operator.MUL:
        return a.plain() * b.plain()
    if operator is Operator.DIV:
        divisor = b.plain()
        if divisor == 0.0:
            raise DivisionByZeroError("División por cero")
        return a.plain() / divisor
    if operator is Operator.POW:
        _warn_percent_ignored(a, b, "potencia")
        return _power(a.number, b.number)
    if operator is Operator.MOD:
        _warn_percent_ignored(a, b, "módulo")
        if b.number == 0.0:
            raise ModuloByZeroError("Módulo por cero")
        try:
            return math.fmod(a.number, b.number)
        except ValueError as exc:
            raise DomainError("El módulo de infinito no está definido") from exc
    raise InternalError(f"Operador desconocido: {operator!r}")


def evaluate_postfix(
    postfix: Sequence[Token],
    provider: PythonMathProvider | None = None,
    capacity: int = MAX_TOKENS,
) -> float:
    """Evalúa una secuencia postfija sobre una pila explícita de operandos.

    Raises:
        EvaluationError: operandos insuficientes, división o módulo por cero,
            error de dominio, pila desbordada o expresión mal formada.
    """
    provider = provider or PythonMathProvider()
    stack = BoundedStack(capacity, StackOverflowError, "Desbordamiento de la pila de evaluación")

    for token in postfix:
        if isinstance(token, NumberToken):
            stack.push(StackValue(token.value, token.is_percent))
        elif isinstance(token, OperatorToken):
            if len(stack) < 2:
                raise InsufficientOperandsError(
                    f"Faltan operandos para el operador '{token.operator.symbol}'"
                )
            b = stack.pop()
            a = stack.pop()
            stack.push(StackValue(apply_operator(token.operator, a, b)))
        elif isinstance(token, FunctionToken):
            if not stack:
                raise InsufficientOperandsError(
                    f"Falta el argumento de la función '{token.function.value}'"
                )
            arg = stack.pop()
            stack.push(StackValue(provider.apply(token.function, arg.plain())))
        else:
            raise InternalError(f"Token inesperado en el evaluador: {token!r}")

    if len(stack) != 1:
        raise MalformedExpressionError(
            f"Estructura de expresión no válida ({len(stack)} valores en la pila, se esperaba 1)"
        )
    return stack.pop().plain()
