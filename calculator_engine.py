"""
Motor de cálculo de la calculadora de línea de comandos.

Este módulo provee la clase CalculatorEngine, el contexto de evaluación de
una sesión: encadena tokenizador, conversor postfijo y evaluador, y guarda
el estado persistente (variables, ``ans``, último resultado, memoria).

Contrato de interfaz:
    - evaluate_expression(expression: str) -> float   (NaN si falla)
    - handle_assignment(name: str, expression: str) -> float   (NaN si falla)
    - angle_mode: propiedad 'rad' | 'deg'
"""

from __future__ import annotations

import logging
import math

from mpmath import mp

from calculator_errors import (
    CalculatorError,
    EmptyExpressionError,
    EvaluationError,
    LexicalError,
    NotANumberError,
    ParseError,
)
from postfix_evaluator import PythonMathProvider, evaluate_postfix
from session_log import SessionLog
from shunting_yard import to_postfix
from symbol_table import ANS, SymbolTable
from tokenizer import Tokenizer

logger = logging.getLogger("nmri.engine")

DISPLAY_DIGITS = 15
NEAR_ZERO = 1e-10


class CalculatorEngine:
    """Evalúa expresiones y asignaciones sobre una tabla de símbolos propia."""

    def __init__(
        self,
        symbols: SymbolTable | None = None,
        session_log: SessionLog | None = None,
        angle_mode: str = "rad",
    ):
        self.symbols = symbols if symbols is not None else SymbolTable()
        self.session_log = session_log
        self._provider = PythonMathProvider(angle_mode)
        self._last_result = self.symbols.lookup(ANS) or 0.0

    # ── Propiedades ──────────────────────────────────────────────

    @property
    def angle_mode(self) -> str:
        return self._provider.angle_mode

    @angle_mode.setter
    def angle_mode(self, mode: str):
        self._provider.angle_mode = mode

    @property
    def last_result(self) -> float:
        return self._last_result

    def set_last_result(self, value: float):
        """Actualiza el último resultado y ``ans`` a la vez."""
        self._last_result = value
        self.symbols.set(ANS, value)

    # ── Evaluación principal ─────────────────────────────────────

    def evaluate_expression(self, expression: str) -> float:
        """Evalúa ``expression``; devuelve NaN si cualquier etapa falla."""
        try:
            result = self._compute(expression)
        except CalculatorError as exc:
            self._report(exc)
            self._log(f"Evaluation Error: {self._stage(exc)} failed for '{expression}'")
            return math.nan

        self.set_last_result(result)
        self._log(f"Result: {expression} = {format_result(result)}")
        return result

    def handle_assignment(self, name: str, expression: str) -> float:
        """Evalúa ``expression`` y guarda el resultado en ``name``.

        Si la evaluación o el guardado fallan no se modifica ni la variable
        ni ``ans``.
        """
        try:
            result = self._compute(expression)
            self.symbols.set(name, result)
        except EmptyExpressionError:
            self._report(EmptyExpressionError(
                f"Falta la expresión después de '=' en la asignación a '{name}'"
            ))
            self._log(f"Assignment Error: Missing expression for '{name}'")
            return math.nan
        except CalculatorError as exc:
            self._report(exc)
            self._log(
                f"Assignment Error: {self._stage(exc)} failed for '{name} = {expression}'"
            )
            return math.nan

        self.set_last_result(result)
        self._log(
            f"Assignment: {name} = {format_result(result)} (Expression: '{expression}')"
        )
        return result

    def _compute(self, expression: str) -> float:
        tokens = Tokenizer(self.symbols).tokenize(expression)
        if not tokens:
            raise EmptyExpressionError("Expresión vacía")
        postfix = to_postfix(tokens)
        result = evaluate_postfix(postfix, self._provider)
        if math.isnan(result):
            raise NotANumberError("El resultado no es un número (NaN)")
        return result

    # ── Diagnóstico ──────────────────────────────────────────────

    @staticmethod
    def _stage(exc: CalculatorError) -> str:
        if isinstance(exc, LexicalError):
            return "Tokenization"
        if isinstance(exc, ParseError):
            return "Shunting-yard"
        if isinstance(exc, EvaluationError):
            return "Postfix evaluation"
        return "Evaluation"

    @staticmethod
    def _report(exc: CalculatorError):
        if exc.internal:
            logger.critical("Error interno: %s", exc)
        else:
            logger.error("%s", exc)

    def _log(self, text: str):
        if self.session_log is not None:
            self.session_log.message(text)


# ── Formato del resultado ────────────────────────────────────────


def format_result(value: float, digits: int = DISPLAY_DIGITS) -> str:
    if math.isnan(value):
        return "NaN"
    if value == math.inf:
        return "∞"
    if value == -math.inf:
        return "-∞"
    if abs(value) < NEAR_ZERO:
        return "0"
    if value == int(value) and abs(value) < 1e15:
        return str(int(value))
    return mp.nstr(mp.mpf(value), n=digits)
