"""
Tests for the formula tokenizer.
"""

import pytest

from pagecraft.interactive.formula import (
    ExpressionLimits,
    LimitExceededError,
    TokenizerError,
    tokenize,
)
from pagecraft.interactive.formula.tokenizer import TokenType, is_number_literal


class TestNumbers:
    """Tests for numeric literal tokenization."""

    def test_tokenizes_integer(self):
        tokens = tokenize("42")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == "42"
        assert tokens[0].position == 0

    def test_tokenizes_decimal(self):
        tokens = tokenize("3.14")
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == "3.14"

    def test_tokenizes_leading_dot_decimal(self):
        assert tokenize(".5")[0].type == TokenType.NUMBER

    def test_tokenizes_exponent(self):
        assert tokenize("1e3")[0].type == TokenType.NUMBER

    @pytest.mark.parametrize("text", ["1e-5", "2.5E+3", ".5e-2"])
    def test_tokenizes_signed_exponent(self, text):
        tokens = tokenize(text)
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == text

    def test_minus_after_identifier_stays_operator(self):
        tokens = tokenize("rate-5")
        assert [t.type for t in tokens] == [
            TokenType.IDENTIFIER,
            TokenType.MINUS,
            TokenType.NUMBER,
        ]

    def test_exponent_marker_without_digits_keeps_operator(self):
        tokens = tokenize("1e-x")
        assert [t.value for t in tokens] == ["1e", "-", "x"]

    @pytest.mark.parametrize("text", ["1.2.3", "12abc", "inf", "nan", "1_000"])
    def test_non_literals_become_identifiers(self, text):
        tokens = tokenize(text)
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == text

    def test_is_number_literal(self):
        assert is_number_literal("10")
        assert is_number_literal("0.25")
        assert not is_number_literal("x1")
        assert not is_number_literal("")


class TestOperators:
    """Tests for operator tokenization."""

    def test_tokenizes_all_operators(self):
        tokens = tokenize("+-*/^%()")
        assert [t.type for t in tokens] == [
            TokenType.PLUS,
            TokenType.MINUS,
            TokenType.STAR,
            TokenType.SLASH,
            TokenType.CARET,
            TokenType.PERCENT,
            TokenType.LPAREN,
            TokenType.RPAREN,
        ]

    def test_operators_split_runs_without_whitespace(self):
        tokens = tokenize("monthly_spend*12")
        assert [(t.type, t.value) for t in tokens] == [
            (TokenType.IDENTIFIER, "monthly_spend"),
            (TokenType.STAR, "*"),
            (TokenType.NUMBER, "12"),
        ]

    def test_tracks_positions(self):
        tokens = tokenize("2 + 3")
        assert [t.position for t in tokens] == [0, 2, 4]

    def test_function_call_is_identifier_then_parens(self):
        tokens = tokenize("round(x)")
        assert [t.type for t in tokens] == [
            TokenType.IDENTIFIER,
            TokenType.LPAREN,
            TokenType.IDENTIFIER,
            TokenType.RPAREN,
        ]
        assert tokens[0].value == "round"


class TestWhitespace:
    """Tests for whitespace handling."""

    def test_empty_source_has_no_tokens(self):
        assert tokenize("") == []

    def test_whitespace_only_has_no_tokens(self):
        assert tokenize("  \t\n ") == []

    def test_ignores_surrounding_whitespace(self):
        tokens = tokenize("   x   ")
        assert len(tokens) == 1
        assert tokens[0].position == 3


class TestErrors:
    """Tests for tokenizer errors."""

    def test_rejects_comma(self):
        with pytest.raises(TokenizerError) as exc_info:
            tokenize("min(a, b)")
        assert exc_info.value.position == 5
        assert "single argument" in exc_info.value.message

    def test_rejects_long_formula(self):
        limits = ExpressionLimits(max_expression_length=5)
        with pytest.raises(LimitExceededError):
            tokenize("1+2+3+4", limits)

    def test_rejects_too_many_tokens(self):
        limits = ExpressionLimits(max_tokens=3)
        with pytest.raises(LimitExceededError):
            tokenize("1+2+3", limits)

    def test_limit_errors_carry_details(self):
        limits = ExpressionLimits(max_tokens=3)
        with pytest.raises(LimitExceededError) as exc_info:
            tokenize("1+2+3", limits)
        assert "max_tokens" in exc_info.value.message
