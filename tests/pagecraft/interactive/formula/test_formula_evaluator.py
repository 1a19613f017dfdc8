"""
Tests for the formula evaluator.
"""

import pytest

from pagecraft.interactive.formula import (
    EvaluationError,
    ExpressionError,
    FormulaEvaluator,
    UnknownIdentifierError,
    evaluate,
    evaluate_postfix,
    parse,
    try_evaluate,
)


class TestArithmetic:
    """Tests for arithmetic evaluation."""

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("2 + 3 * 4", 14),
            ("(2+3)*4", 20),
            ("2^3", 8),
            ("2^3^2", 512),
            ("10 - 4 - 3", 3),
            ("8 / 4 / 2", 1),
            ("10 % 3", 1),
            ("-2^2", -4),
            ("(-2)^2", 4),
            ("2 - -3", 5),
            ("-7 % 3", -1),
            ("1.5 * 4", 6),
            ("2e-3 * 1000", 2),
            ("1.5E+2 - 50", 100),
        ],
    )
    def test_evaluates(self, expression, expected):
        assert evaluate(expression, {}) == pytest.approx(expected)

    def test_division_returns_float(self):
        assert evaluate("7 / 2") == 3.5

    def test_fractional_power(self):
        assert evaluate("2^0.5") == pytest.approx(1.41421356)


class TestVariables:
    """Tests for variable lookup."""

    def test_resolves_variable(self):
        assert evaluate("x*2", {"x": 5}) == 10

    def test_unknown_variable_fails(self):
        with pytest.raises(UnknownIdentifierError, match="Unknown variable or function: y"):
            evaluate("y*2", {"x": 5})

    def test_unknown_variable_reports_position(self):
        with pytest.raises(EvaluationError) as exc_info:
            evaluate("x + y", {"x": 1})
        assert exc_info.value.position == 4

    def test_does_not_mutate_variables(self):
        variables = {"a": 1, "b": 2}
        evaluate("a + b * 3", variables)
        assert variables == {"a": 1, "b": 2}

    def test_rejects_non_numeric_variable(self):
        with pytest.raises(EvaluationError, match="not a number"):
            evaluate("name + 1", {"name": "Ada"})

    def test_rejects_boolean_variable(self):
        with pytest.raises(EvaluationError):
            evaluate("flag * 2", {"flag": True})

    def test_evaluator_reuses_environment(self):
        evaluator = FormulaEvaluator({"price": 10, "qty": 3})
        assert evaluator.evaluate("price * qty") == 30
        assert evaluator.evaluate("price + qty") == 13

    def test_evaluate_postfix(self):
        evaluator = FormulaEvaluator({"x": 4})
        assert evaluator.evaluate_postfix(parse("sqrt(x) + 1")) == 3


class TestFailures:
    """Tests for evaluation failures."""

    def test_division_by_zero(self):
        with pytest.raises(EvaluationError, match="Division by zero"):
            evaluate("10/0", {})

    def test_division_by_zero_variable(self):
        with pytest.raises(EvaluationError, match="Division by zero"):
            evaluate("10 / (x - x)", {"x": 3})

    def test_modulo_by_zero(self):
        with pytest.raises(EvaluationError, match="Modulo by zero"):
            evaluate("5 % 0")

    def test_overflowing_power(self):
        with pytest.raises(EvaluationError):
            evaluate("10^400")

    def test_complex_power(self):
        with pytest.raises(EvaluationError):
            evaluate("(-8)^0.5")

    def test_errors_share_base_class(self):
        with pytest.raises(ExpressionError):
            evaluate("(1 + 2")

    def test_unknown_function(self):
        with pytest.raises(UnknownIdentifierError, match="Unknown variable or function: foo"):
            evaluate("foo(2)")

    def test_format_with_context(self):
        with pytest.raises(EvaluationError) as exc_info:
            evaluate("x + y", {"x": 1})
        assert exc_info.value.format_with_context().endswith("\n  x + y\n      ^")


class TestTryEvaluate:
    """Tests for the non-raising entry point."""

    def test_success(self):
        result = try_evaluate("a * 2", {"a": 21})
        assert result.success is True
        assert result.value == 42
        assert result.error is None

    def test_failure(self):
        result = try_evaluate("1 / 0")
        assert result.success is False
        assert result.value is None
        assert result.error == "Division by zero"


class TestInjectedFunctions:
    """Tests for custom function registries."""

    def test_custom_registry(self):
        functions = {"double": lambda x, ctx: x * 2}
        assert evaluate("double(4) + 1", functions=functions) == 9

    def test_custom_registry_replaces_builtins(self):
        functions = {"double": lambda x, ctx: x * 2}
        with pytest.raises(EvaluationError):
            evaluate("sqrt(4)", functions=functions)


class TestEvaluatePostfix:
    """Tests for evaluating pre-parsed formulas."""

    def test_reuses_parsed_formula(self):
        postfix = parse("price * qty")
        assert evaluate_postfix(postfix, {"price": 2, "qty": 3}) == 6
        assert evaluate_postfix(postfix, {"price": 5, "qty": 1}) == 5
