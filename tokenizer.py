"""Análisis léxico: texto de la expresión → secuencia de tokens."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Union

from calculator_errors import (
    IdentifierTooLongError,
    InvalidCharacterError,
    TooManyTokensError,
    UnknownIdentifierError,
)
from symbol_table import MAX_IDENTIFIER_LEN, SymbolTable

MAX_TOKENS = 100

_DIGITS = "0123456789"


class Operator(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    POW = "^"
    MOD = "%"

    @property
    def symbol(self) -> str:
        return self.value


class Function(Enum):
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    ASIN = "asin"
    ACOS = "acos"
    ATAN = "atan"
    LOG = "log"
    SQRT = "sqrt"
    EXP = "exp"
    ABS = "abs"
    FLOOR = "floor"
    CEIL = "ceil"
    ROUND = "round"


FUNCTION_NAMES = {function.value: function for function in Function}
FUNCTION_NAMES["ln"] = Function.LOG


@dataclass(frozen=True)
class NumberToken:
    value: float
    is_percent: bool = False


@dataclass(frozen=True)
class OperatorToken:
    operator: Operator


@dataclass(frozen=True)
class FunctionToken:
    function: Function


@dataclass(frozen=True)
class LeftParenToken:
    pass


@dataclass(frozen=True)
class RightParenToken:
    pass


@dataclass(frozen=True)
class AssignmentToken:
    name: str


Token = Union[
    NumberToken,
    OperatorToken,
    FunctionToken,
    LeftParenToken,
    RightParenToken,
    AssignmentToken,
]


class Tokenizer:
    """Convierte una expresión en tokens resolviendo identificadores.

    El signo unario se linealiza: un ``+``/``-`` donde se espera un operando
    se emite como ``0`` seguido del operador binario.
    """

    _NUMBER = re.compile(r"(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+\-]?[0-9]+)?")
    _IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
    _OPERATORS = {op.symbol: op for op in Operator}

    def __init__(self, symbols: SymbolTable, max_tokens: int = MAX_TOKENS):
        self._symbols = symbols
        self._max_tokens = max_tokens

    def tokenize(self, text: str) -> List[Token]:
        tokens: List[Token] = []
        emit = self._emitter(tokens)
        expecting_operand = True
        index = 0
        n = len(text)

        while index < n:
            ch = text[index]
            if ch.isspace():
                index += 1
                continue

            if ch.isalpha() and ch.isascii() or ch == "_":
                index, expecting_operand = self._scan_identifier(text, index, emit)
                continue

            if ch in _DIGITS or (
                ch == "." and index + 1 < n and text[index + 1] in _DIGITS
            ):
                index = self._scan_number(text, index, emit)
                expecting_operand = False
                continue

            if ch in self._OPERATORS:
                operator = self._OPERATORS[ch]
                if expecting_operand and operator in (Operator.ADD, Operator.SUB):
                    emit(NumberToken(0.0))
                emit(OperatorToken(operator))
                index += 1
                expecting_operand = True
                continue

            if ch == "(":
                emit(LeftParenToken())
                index += 1
                expecting_operand = True
                continue

            if ch == ")":
                emit(RightParenToken())
                index += 1
                expecting_operand = False
                continue

            raise InvalidCharacterError(f"Carácter no válido '{ch}' en la expresión")

        return tokens

    def _emitter(self, tokens: List[Token]):
        limit = self._max_tokens

        def emit(token: Token):
            if len(tokens) >= limit:
                raise TooManyTokensError(
                    f"Expresión demasiado compleja (más de {limit} tokens)"
                )
            tokens.append(token)

        return emit

    # ── Identificadores ──────────────────────────────────────────

    def _scan_identifier(self, text: str, index: int, emit) -> tuple[int, bool]:
        """Emite el token del identificador y devuelve (posición, espera_operando)."""
        match = self._IDENTIFIER.match(text, index)
        name = match.group()
        end = match.end()

        if len(name) >= MAX_IDENTIFIER_LEN:
            raise IdentifierTooLongError(
                f"Identificador '{name[:MAX_IDENTIFIER_LEN // 2]}...' demasiado largo "
                f"(máximo {MAX_IDENTIFIER_LEN - 1} caracteres)"
            )

        lookahead = end
        while lookahead < len(text) and text[lookahead].isspace():
            lookahead += 1
        if lookahead < len(text) and text[lookahead] == "=":
            emit(AssignmentToken(name))
            return lookahead + 1, True

        constant = self._symbols.resolve_constant(name)
        if constant is not None:
            emit(NumberToken(constant))
            return end, False

        function = FUNCTION_NAMES.get(name)
        if function is not None:
            emit(FunctionToken(function))
            return end, True

        value = self._symbols.lookup(name)
        if value is None:
            raise UnknownIdentifierError(f"Identificador desconocido '{name}'")
        emit(NumberToken(value))
        return end, False

    # ── Números ──────────────────────────────────────────────────

    def _scan_number(self, text: str, index: int, emit) -> int:
        match = self._NUMBER.match(text, index)
        end = match.end()
        value = float(match.group())
        is_percent = end < len(text) and text[end] == "%"
        if is_percent:
            end += 1
        emit(NumberToken(value, is_percent))
        return end


def tokenize(text: str, symbols: SymbolTable) -> List[Token]:
    """Atajo funcional sobre :class:`Tokenizer`."""
    return Tokenizer(symbols).tokenize(text)
