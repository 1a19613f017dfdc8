"""
Sandboxed arithmetic formula engine.

Formulas are tokenized, converted to postfix with the shunting-yard
algorithm and evaluated on a numeric stack against named variables.
"""

from .builtins import (
    BUILTIN_FUNCTIONS,
    BuiltinContext,
    BuiltinFunction,
    FunctionRegistry,
    call_builtin,
    is_builtin_function,
    round_half_up,
)
from .errors import (
    BuiltinError,
    EvaluationError,
    ExpressionError,
    LimitExceededError,
    ParseError,
    TokenizerError,
    UnknownIdentifierError,
)
from .evaluator import (
    EvaluationResult,
    FormulaEvaluator,
    evaluate,
    evaluate_postfix,
    try_evaluate,
)
from .limits import (
    DEFAULT_EXPRESSION_LIMITS,
    ExpressionLimits,
    check_expression_length,
    check_nesting_depth,
    check_token_count,
)
from .parser import (
    Parser,
    parse,
    to_postfix,
)
from .tokenizer import (
    Token,
    Tokenizer,
    TokenType,
    tokenize,
)

__all__ = [
    # Errors
    "ExpressionError",
    "EvaluationError",
    "TokenizerError",
    "ParseError",
    "LimitExceededError",
    "BuiltinError",
    "UnknownIdentifierError",
    # Limits
    "ExpressionLimits",
    "DEFAULT_EXPRESSION_LIMITS",
    "check_expression_length",
    "check_token_count",
    "check_nesting_depth",
    # Tokenizer
    "Token",
    "TokenType",
    "Tokenizer",
    "tokenize",
    # Parser
    "Parser",
    "parse",
    "to_postfix",
    # Evaluator
    "EvaluationResult",
    "FormulaEvaluator",
    "evaluate",
    "evaluate_postfix",
    "try_evaluate",
    # Builtins
    "BuiltinFunction",
    "BuiltinContext",
    "FunctionRegistry",
    "BUILTIN_FUNCTIONS",
    "call_builtin",
    "is_builtin_function",
    "round_half_up",
]
