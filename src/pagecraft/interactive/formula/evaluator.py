"""
Formula evaluator.

Evaluates a postfix token list against a set of numeric variable bindings
with a single operand stack. The evaluator never calls eval() or compile();
the reachable operations are the six arithmetic operators, unary minus and
the functions in the registry.
"""

import math
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .builtins import BUILTIN_FUNCTIONS, BuiltinContext, FunctionRegistry, call_builtin
from .errors import EvaluationError, UnknownIdentifierError
from .limits import DEFAULT_EXPRESSION_LIMITS, ExpressionLimits
from .parser import parse
from .tokenizer import Token, TokenType


@dataclass
class EvaluationResult:
    """Result of a non-raising formula evaluation."""

    value: Optional[float]
    """The evaluated value."""

    success: bool
    """Whether evaluation succeeded."""

    error: Optional[str] = None
    """Error message if evaluation failed."""


class FormulaEvaluator:
    """Evaluates formulas against a fixed variable environment."""

    def __init__(
        self,
        variables: Mapping[str, float],
        limits: Optional[ExpressionLimits] = None,
        functions: Optional[FunctionRegistry] = None,
    ):
        self._variables = variables
        self._limits = limits or DEFAULT_EXPRESSION_LIMITS
        self._functions = functions or BUILTIN_FUNCTIONS

    def evaluate(self, expression: str) -> float:
        """Parses and evaluates a formula string."""
        postfix = parse(expression, self._limits)
        return self.evaluate_postfix(postfix, expression)

    def evaluate_postfix(self, postfix: List[Token], source: str = "") -> float:
        """Evaluates a postfix token list produced by the parser."""
        stack: List[float] = []

        for token in postfix:
            token_type = token.type

            if token_type == TokenType.NUMBER:
                stack.append(float(token.value))
            elif token_type == TokenType.IDENTIFIER:
                stack.append(self._lookup(token, source))
            elif token_type == TokenType.NEGATE:
                operand = self._pop(stack, token, source)
                stack.append(-operand)
            elif token_type == TokenType.FUNCTION:
                operand = self._pop(stack, token, source)
                context = BuiltinContext(position=token.position, source=source)
                stack.append(call_builtin(token.value, operand, context, self._functions))
            else:
                right = self._pop(stack, token, source)
                left = self._pop(stack, token, source)
                stack.append(self._apply_operator(token, left, right, source))

        if len(stack) != 1:
            raise EvaluationError("Malformed formula", 0, source)

        result = stack[0]
        if math.isnan(result) or math.isinf(result):
            raise EvaluationError("Formula result is not a finite number", 0, source)
        return result

    def _lookup(self, token: Token, source: str) -> float:
        name = token.value
        if name not in self._variables:
            raise UnknownIdentifierError(
                f"Unknown variable or function: {name}", token.position, source
            )
        value = self._variables[name]
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise EvaluationError(
                f"Variable '{name}' is not a number", token.position, source
            )
        return float(value)

    def _pop(self, stack: List[float], token: Token, source: str) -> float:
        if not stack:
            raise EvaluationError(
                f"Missing operand for '{token.value}'", token.position, source
            )
        return stack.pop()

    def _apply_operator(
        self, token: Token, left: float, right: float, source: str
    ) -> float:
        token_type = token.type

        if token_type == TokenType.PLUS:
            return left + right

        if token_type == TokenType.MINUS:
            return left - right

        if token_type == TokenType.STAR:
            return left * right

        if token_type == TokenType.SLASH:
            if right == 0:
                raise EvaluationError("Division by zero", token.position, source)
            return left / right

        if token_type == TokenType.PERCENT:
            if right == 0:
                raise EvaluationError("Modulo by zero", token.position, source)
            # Remainder keeps the sign of the dividend.
            return math.fmod(left, right)

        if token_type == TokenType.CARET:
            try:
                return math.pow(left, right)
            except (OverflowError, ValueError):
                raise EvaluationError(
                    f"Cannot raise {left} to the power {right}", token.position, source
                )

        raise EvaluationError(
            f"Unknown operator: {token.value}", token.position, source
        )


def evaluate(
    expression: str,
    variables: Optional[Mapping[str, float]] = None,
    limits: Optional[ExpressionLimits] = None,
    functions: Optional[FunctionRegistry] = None,
) -> float:
    """
    Evaluates a formula against variable bindings.

    Args:
        expression: The formula, e.g. ``"monthly_spend * 12 * 0.15"``
        variables: Numeric variable bindings
        limits: Optional formula limits
        functions: Optional function registry

    Returns:
        The numeric result

    Raises:
        EvaluationError: On unknown variables/functions, division by zero
            or a malformed formula
    """
    evaluator = FormulaEvaluator(variables or {}, limits, functions)
    return evaluator.evaluate(expression)


def try_evaluate(
    expression: str,
    variables: Optional[Mapping[str, float]] = None,
    limits: Optional[ExpressionLimits] = None,
    functions: Optional[FunctionRegistry] = None,
) -> EvaluationResult:
    """
    Evaluates a formula and reports failures in the result instead of raising.
    """
    try:
        value = evaluate(expression, variables, limits, functions)
        return EvaluationResult(value=value, success=True)
    except EvaluationError as error:
        return EvaluationResult(value=None, success=False, error=error.message)


def evaluate_postfix(
    postfix: List[Token],
    variables: Optional[Mapping[str, float]] = None,
    source: str = "",
) -> float:
    """Evaluates an already parsed postfix token list."""
    return FormulaEvaluator(variables or {}).evaluate_postfix(postfix, source)
