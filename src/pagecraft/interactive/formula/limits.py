"""
Resource limits for formula evaluation.

Formulas are authored by website editors, so these limits keep a single
calculator output from consuming unbounded time or recursion depth.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import LimitExceededError


@dataclass(frozen=True)
class ExpressionLimits:
    """Formula limits configuration."""

    # Maximum formula string length in characters
    max_expression_length: int = 4096

    # Maximum number of tokens in a single formula
    max_tokens: int = 512

    # Maximum nesting of parentheses and function calls
    max_nesting_depth: int = 32


# Default formula limits.
DEFAULT_EXPRESSION_LIMITS = ExpressionLimits()


def check_expression_length(
    expression: str, limits: Optional[ExpressionLimits] = None
) -> None:
    """Validates that formula length is within limits."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if len(expression) > limits.max_expression_length:
        raise LimitExceededError(
            "max_expression_length", limits.max_expression_length, len(expression)
        )


def check_token_count(count: int, limits: Optional[ExpressionLimits] = None) -> None:
    """Validates the token count produced by the tokenizer."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if count > limits.max_tokens:
        raise LimitExceededError("max_tokens", limits.max_tokens, count)


def check_nesting_depth(depth: int, limits: Optional[ExpressionLimits] = None) -> None:
    """Validates parenthesis / function call nesting depth."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if depth > limits.max_nesting_depth:
        raise LimitExceededError("max_nesting_depth", limits.max_nesting_depth, depth)
