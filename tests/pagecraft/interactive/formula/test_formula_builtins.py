"""
Tests for formula built-in functions.
"""

import math

import pytest

from pagecraft.interactive.formula import (
    BUILTIN_FUNCTIONS,
    BuiltinContext,
    BuiltinError,
    EvaluationError,
    call_builtin,
    evaluate,
    is_builtin_function,
    round_half_up,
)


class TestBuiltins:
    """Tests for each built-in function."""

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("abs(-3)", 3),
            ("floor(2.7)", 2),
            ("ceil(2.1)", 3),
            ("sqrt(16)", 4),
            ("log(1000)", 3),
            ("ln(exp(1))", 1),
            ("exp(0)", 1),
            ("round(2.4)", 2),
            ("round(2.5)", 3),
            ("round(-2.5)", -2),
            ("min(5)", 5),
            ("max(7)", 7),
        ],
    )
    def test_evaluates(self, expression, expected):
        assert evaluate(expression) == pytest.approx(expected)

    def test_names_are_case_insensitive(self):
        assert evaluate("SQRT(9) + Abs(-1)") == 4

    def test_argument_is_full_expression(self):
        assert evaluate("round(x / 3)", {"x": 10}) == 3

    def test_registry_contents(self):
        assert set(BUILTIN_FUNCTIONS) == {
            "abs",
            "round",
            "floor",
            "ceil",
            "sqrt",
            "log",
            "ln",
            "exp",
            "min",
            "max",
        }


class TestDomainErrors:
    """Tests for arguments outside a function's domain."""

    @pytest.mark.parametrize("expression", ["sqrt(-1)", "log(0)", "ln(-2)", "exp(1000)"])
    def test_raises_builtin_error(self, expression):
        with pytest.raises(BuiltinError):
            evaluate(expression)

    def test_builtin_error_is_evaluation_error(self):
        with pytest.raises(EvaluationError):
            evaluate("sqrt(-4)")


class TestHelpers:
    """Tests for module helpers."""

    def test_round_half_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(1.5) == 2
        assert round_half_up(-0.5) == 0
        assert round_half_up(-1.6) == -2

    def test_call_builtin(self):
        context = BuiltinContext(position=0, source="floor(x)")
        assert call_builtin("FLOOR", 3.9, context) == 3

    def test_call_unknown_builtin(self):
        context = BuiltinContext(position=0, source="nope(1)")
        with pytest.raises(EvaluationError):
            call_builtin("nope", 1, context)

    def test_is_builtin_function(self):
        assert is_builtin_function("sqrt")
        assert is_builtin_function("SQRT")
        assert not is_builtin_function("pow")

    def test_results_are_finite(self):
        assert math.isfinite(evaluate("exp(700)"))
