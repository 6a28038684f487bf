"""Jerarquía de errores del motor de expresiones.

Cada etapa del pipeline (tokenizador, conversor, evaluador) lanza una
subclase de ``CalculatorError``. El orquestador las captura, las reporta
por el canal de diagnóstico y devuelve NaN.
"""


class CalculatorError(ValueError):
    """Error base de la calculadora."""

    kind = "error"
    internal = False


# ── Léxicos ──────────────────────────────────────────────────────


class LexicalError(CalculatorError):
    """Fallo al convertir el texto en tokens."""


class InvalidCharacterError(LexicalError):
    kind = "InvalidCharacter"


class IdentifierTooLongError(LexicalError):
    kind = "IdentifierTooLong"


class UnknownIdentifierError(LexicalError):
    kind = "UnknownIdentifier"


class TooManyTokensError(LexicalError):
    kind = "TooManyTokens"


# ── Sintácticos ──────────────────────────────────────────────────


class ParseError(CalculatorError):
    """Fallo al reordenar los tokens a notación postfija."""


class MismatchedParenError(ParseError):
    kind = "MismatchedParen"


class OperatorStackOverflowError(ParseError):
    kind = "OperatorStackOverflow"


class OutputOverflowError(ParseError):
    kind = "OutputOverflow"


# ── Evaluación ───────────────────────────────────────────────────


class EvaluationError(CalculatorError):
    """Fallo al evaluar la expresión postfija."""


class InsufficientOperandsError(EvaluationError):
    kind = "InsufficientOperands"


class DivisionByZeroError(EvaluationError, ZeroDivisionError):
    kind = "DivisionByZero"


class ModuloByZeroError(EvaluationError, ZeroDivisionError):
    kind = "ModuloByZero"


class DomainError(EvaluationError):
    kind = "DomainError"


class MalformedExpressionError(EvaluationError):
    kind = "MalformedExpression"


class StackOverflowError(EvaluationError):
    kind = "StackOverflow"


class NotANumberError(EvaluationError):
    kind = "NotANumber"


# ── Otros ────────────────────────────────────────────────────────


class EmptyExpressionError(CalculatorError):
    kind = "EmptyExpression"


class CapacityExceededError(CalculatorError):
    """La tabla de símbolos no admite más variables."""

    kind = "CapacityExceeded"


class InternalError(CalculatorError):
    """Invariante interno roto: nunca debería ocurrir con entrada de usuario."""

    kind = "Internal"
    internal = True
