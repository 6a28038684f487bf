"""Conversión de notación infija a postfija (algoritmo shunting-yard)."""

from __future__ import annotations

from typing import List, Sequence

from bounded_stack import BoundedStack
from calculator_errors import (
    InternalError,
    MismatchedParenError,
    OperatorStackOverflowError,
    OutputOverflowError,
)
from tokenizer import (
    MAX_TOKENS,
    AssignmentToken,
    FunctionToken,
    LeftParenToken,
    NumberToken,
    Operator,
    OperatorToken,
    RightParenToken,
    Token,
)

# (precedencia, asociativo por la izquierda)
OPERATOR_TABLE = {
    Operator.ADD: (1, True),
    Operator.SUB: (1, True),
    Operator.MUL: (2, True),
    Operator.DIV: (2, True),
    Operator.MOD: (2, True),
    Operator.POW: (3, False),
}


def precedence(operator: Operator) -> int:
    return OPERATOR_TABLE[operator][0]


def is_left_associative(operator: Operator) -> bool:
    return OPERATOR_TABLE[operator][1]


def _should_pop(top: Token, incoming: Operator) -> bool:
    if not isinstance(top, OperatorToken):
        return False
    top_prec = precedence(top.operator)
    incoming_prec = precedence(incoming)
    if is_left_associative(incoming):
        return incoming_prec <= top_prec
    return incoming_prec < top_prec


def to_postfix(tokens: Sequence[Token], capacity: int = MAX_TOKENS) -> List[Token]:
    """Reordena los tokens según precedencia, asociatividad y paréntesis.

    Raises:
        MismatchedParenError: paréntesis sin pareja.
        OperatorStackOverflowError / OutputOverflowError: límite superado.
        InternalError: llegó un token de asignación.
    """
    stack = BoundedStack(
        capacity, OperatorStackOverflowError, "Desbordamiento de la pila de operadores"
    )
    output = BoundedStack(
        capacity, OutputOverflowError, "Desbordamiento de la cola de salida"
    )

    for token in tokens:
        if isinstance(token, NumberToken):
            output.push(token)
        elif isinstance(token, FunctionToken):
            stack.push(token)
        elif isinstance(token, OperatorToken):
            while stack and _should_pop(stack.peek(), token.operator):
                output.push(stack.pop())
            stack.push(token)
        elif isinstance(token, LeftParenToken):
            stack.push(token)
        elif isinstance(token, RightParenToken):
            while stack and not isinstance(stack.peek(), LeftParenToken):
                output.push(stack.pop())
            if not stack:
                raise MismatchedParenError(
                    "Paréntesis desbalanceados (¿sobra un paréntesis de cierre?)"
                )
            stack.pop()
            if stack and isinstance(stack.peek(), FunctionToken):
                output.push(stack.pop())
        elif isinstance(token, AssignmentToken):
            raise InternalError(
                f"Token de asignación '{token.name}' en el conversor postfijo"
            )
        else:
            raise InternalError(f"Token inesperado en el conversor: {token!r}")

    while stack:
        top = stack.pop()
        if isinstance(top, LeftParenToken):
            raise MismatchedParenError(
                "Paréntesis desbalanceados (¿sobra un paréntesis de apertura?)"
            )
        output.push(top)

    return output.to_list()
