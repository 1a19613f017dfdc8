"""
Formula error hierarchy.

Tokenizer, parser, limit and built-in failures all derive from
EvaluationError; a calculator only ever needs to catch that one type.
"""

from typing import Optional


class ExpressionError(Exception):
    """A formula failure, optionally pinned to a column of the formula."""

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.position = position
        self.expression = expression

    def format_with_context(self) -> str:
        """
        Renders the message followed by the formula and a caret under the
        failing column. Without a position only the message is returned.
        """
        if self.position is None or self.expression is None:
            return self.message

        caret = f"{' ' * self.position}^"
        return "\n".join((self.message, f"  {self.expression}", f"  {caret}"))


class EvaluationError(ExpressionError):
    """Raised when a formula cannot produce a number."""


class TokenizerError(EvaluationError):
    """Raised for characters or literals the formula language does not know."""


class ParseError(EvaluationError):
    """Raised for malformed formulas: unbalanced parentheses, dangling operators."""


class UnknownIdentifierError(EvaluationError):
    """Raised for a name that is neither a bound variable nor a known function."""


class LimitExceededError(EvaluationError):
    """Raised when a formula is too long, has too many tokens or nests too deep."""

    def __init__(self, limit_name: str, limit: int, actual: int):
        super().__init__(
            f"Formula exceeds {limit_name}: {actual} (allowed {limit})"
        )
        self.limit_name = limit_name
        self.limit = limit
        self.actual = actual


class BuiltinError(EvaluationError):
    """Raised when a function argument is outside the function's domain."""

    def __init__(
        self,
        function_name: str,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(f"{function_name}(): {message}", position, expression)
        self.function_name = function_name
