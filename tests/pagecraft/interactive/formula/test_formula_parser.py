"""
Tests for the shunting-yard formula parser.
"""

import pytest

from pagecraft.interactive.formula import (
    ExpressionLimits,
    LimitExceededError,
    ParseError,
    parse,
    to_postfix,
    tokenize,
)
from pagecraft.interactive.formula.tokenizer import TokenType


def postfix(source: str) -> list[str]:
    """Helper returning postfix token values."""
    return [token.value for token in parse(source)]


class TestPrecedence:
    """Tests for operator precedence."""

    def test_multiplication_binds_tighter_than_addition(self):
        assert postfix("2 + 3 * 4") == ["2", "3", "4", "*", "+"]

    def test_parentheses_override_precedence(self):
        assert postfix("(2+3)*4") == ["2", "3", "+", "4", "*"]

    def test_modulo_shares_multiplicative_precedence(self):
        assert postfix("7 % 4 * 2") == ["7", "4", "%", "2", "*"]

    def test_power_binds_tighter_than_multiplication(self):
        assert postfix("2 * 3 ^ 2") == ["2", "3", "2", "^", "*"]


class TestAssociativity:
    """Tests for operator associativity."""

    def test_subtraction_is_left_associative(self):
        assert postfix("10 - 4 - 3") == ["10", "4", "-", "3", "-"]

    def test_division_is_left_associative(self):
        assert postfix("8 / 4 / 2") == ["8", "4", "/", "2", "/"]

    def test_power_is_right_associative(self):
        assert postfix("2^3^2") == ["2", "3", "2", "^", "^"]


class TestUnaryAndFunctions:
    """Tests for prefix signs and function calls."""

    def test_negation_applies_after_power(self):
        tokens = parse("-2^2")
        assert [t.value for t in tokens] == ["2", "2", "^", "-"]
        assert tokens[-1].type == TokenType.NEGATE

    def test_unary_plus_is_dropped(self):
        assert postfix("+5") == ["5"]

    def test_negative_exponent(self):
        tokens = parse("2^-1")
        assert [t.type for t in tokens] == [
            TokenType.NUMBER,
            TokenType.NUMBER,
            TokenType.NEGATE,
            TokenType.CARET,
        ]

    def test_function_emitted_after_argument(self):
        tokens = parse("sqrt(16) + 1")
        assert [t.value for t in tokens] == ["16", "sqrt", "1", "+"]
        assert tokens[1].type == TokenType.FUNCTION

    def test_nested_function_calls(self):
        assert postfix("ln(exp(1))") == ["1", "exp", "ln"]

    def test_to_postfix_accepts_tokens(self):
        tokens = tokenize("a * b")
        assert [t.value for t in to_postfix(tokens, "a * b")] == ["a", "b", "*"]


class TestErrors:
    """Tests for malformed formulas."""

    @pytest.mark.parametrize("source", ["", "   "])
    def test_empty_formula(self, source):
        with pytest.raises(ParseError, match="Empty formula"):
            parse(source)

    def test_trailing_operator(self):
        with pytest.raises(ParseError, match="Unexpected end of formula"):
            parse("2 +")

    def test_unmatched_open_paren(self):
        with pytest.raises(ParseError, match="Unmatched '\\('"):
            parse("(2 + 3")

    def test_unmatched_close_paren(self):
        with pytest.raises(ParseError, match="Unmatched '\\)'"):
            parse("2 + 3)")

    def test_empty_parentheses(self):
        with pytest.raises(ParseError):
            parse("()")

    def test_adjacent_operands(self):
        with pytest.raises(ParseError):
            parse("2 3")

    def test_leading_binary_operator(self):
        with pytest.raises(ParseError):
            parse("* 2")

    def test_reports_position(self):
        with pytest.raises(ParseError) as exc_info:
            parse("1 + * 2")
        assert exc_info.value.position == 4

    def test_nesting_limit(self):
        limits = ExpressionLimits(max_nesting_depth=2)
        with pytest.raises(LimitExceededError):
            parse("(((1)))", limits)

    def test_nesting_within_limit(self):
        limits = ExpressionLimits(max_nesting_depth=3)
        assert [t.value for t in parse("(((1)))", limits)] == ["1"]
