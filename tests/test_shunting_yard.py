import pytest

from calculator_errors import (
    InternalError,
    MismatchedParenError,
    OperatorStackOverflowError,
    OutputOverflowError,
)
from shunting_yard import is_left_associative, precedence, to_postfix
from tokenizer import (
    AssignmentToken,
    FunctionToken,
    NumberToken,
    Operator,
    OperatorToken,
    tokenize,
)


def _render(postfix):
    parts = []
    for token in postfix:
        if isinstance(token, NumberToken):
            value = f"{token.value:g}"
            parts.append(value + "%" if token.is_percent else value)
        elif isinstance(token, OperatorToken):
            parts.append(token.operator.symbol)
        elif isinstance(token, FunctionToken):
            parts.append(token.function.value)
    return " ".join(parts)


def _postfix(text, symbols):
    return _render(to_postfix(tokenize(text, symbols)))


def test_precedence_table():
    assert precedence(Operator.ADD) == precedence(Operator.SUB) == 1
    assert precedence(Operator.MUL) == precedence(Operator.DIV) == precedence(Operator.MOD) == 2
    assert precedence(Operator.POW) == 3
    assert not is_left_associative(Operator.POW)
    assert is_left_associative(Operator.SUB)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2 + 3 * 4", "2 3 4 * +"),
        ("(2 + 3) * 4", "2 3 + 4 *"),
        ("8 - 3 - 2", "8 3 - 2 -"),
        ("2 ^ 3 ^ 2", "2 3 2 ^ ^"),
        ("2 * 3 ^ 2", "2 3 2 ^ *"),
        ("7 % 4 * 2", "7 4 % 2 *"),
        ("100 + 20%", "100 20% +"),
    ],
)
def test_operator_ordering(symbols, text, expected):
    assert _postfix(text, symbols) == expected


def test_function_emitted_after_its_argument(symbols):
    assert _postfix("sqrt(16) + 1", symbols) == "16 sqrt 1 +"


def test_nested_functions(symbols):
    assert _postfix("sqrt(abs(2 - 18))", symbols) == "2 18 - abs sqrt"


def test_extra_right_paren(symbols):
    with pytest.raises(MismatchedParenError):
        to_postfix(tokenize("2 + 3)", symbols))


def test_extra_left_paren(symbols):
    with pytest.raises(MismatchedParenError):
        to_postfix(tokenize("(2 + 3", symbols))


def test_assignment_token_is_internal_error():
    with pytest.raises(InternalError):
        to_postfix([AssignmentToken("x"), NumberToken(1.0)])


def test_output_capacity(symbols):
    with pytest.raises(OutputOverflowError):
        to_postfix(tokenize("1 + 2", symbols), capacity=2)


def test_operator_stack_capacity(symbols):
    with pytest.raises(OperatorStackOverflowError):
        to_postfix(tokenize("(((1)))", symbols), capacity=2)
