"""
Built-in functions for the formula language.

All built-in functions are pure, deterministic and take exactly one
numeric argument. Names are matched case-insensitively.
"""

import math
from typing import Callable, Dict, Optional

from .errors import BuiltinError, UnknownIdentifierError


class BuiltinContext:
    """Context passed to built-in functions."""

    def __init__(self, position: int, source: str):
        self.position = position
        self.source = source


# Signature of a built-in function.
BuiltinFunction = Callable[[float, BuiltinContext], float]

# Function registry for built-in and injected functions.
FunctionRegistry = Dict[str, BuiltinFunction]


def round_half_up(value: float) -> float:
    """
    Rounds to the nearest integer with halves rounded towards +infinity.

    Python's round() uses banker's rounding; scores and formulas round
    2.5 -> 3 and -2.5 -> -2.
    """
    return float(math.floor(value + 0.5))


def _error(name: str, message: str, ctx: BuiltinContext) -> BuiltinError:
    return BuiltinError(name, message, ctx.position, ctx.source)


def _abs(x: float, ctx: BuiltinContext) -> float:
    """abs(x) -> |x|"""
    return abs(x)


def _round(x: float, ctx: BuiltinContext) -> float:
    """round(x) -> nearest integer, halves up"""
    return round_half_up(x)


def _floor(x: float, ctx: BuiltinContext) -> float:
    return float(math.floor(x))


def _ceil(x: float, ctx: BuiltinContext) -> float:
    return float(math.ceil(x))


def _sqrt(x: float, ctx: BuiltinContext) -> float:
    """sqrt(x) -> square root, x must be non-negative"""
    if x < 0:
        raise _error("sqrt", f"argument must be non-negative, got {x}", ctx)
    return math.sqrt(x)


def _log(x: float, ctx: BuiltinContext) -> float:
    """log(x) -> base-10 logarithm, x must be positive"""
    if x <= 0:
        raise _error("log", f"argument must be positive, got {x}", ctx)
    return math.log10(x)


def _ln(x: float, ctx: BuiltinContext) -> float:
    """ln(x) -> natural logarithm, x must be positive"""
    if x <= 0:
        raise _error("ln", f"argument must be positive, got {x}", ctx)
    return math.log(x)


def _exp(x: float, ctx: BuiltinContext) -> float:
    try:
        return math.exp(x)
    except OverflowError:
        raise _error("exp", f"result overflows for argument {x}", ctx)


def _identity(x: float, ctx: BuiltinContext) -> float:
    """
    min(x) / max(x) -> x

    Single-argument forms only; the formula language has no argument lists.
    """
    return x


# Registry of all built-in functions.
BUILTIN_FUNCTIONS: FunctionRegistry = {
    "abs": _abs,
    "round": _round,
    "floor": _floor,
    "ceil": _ceil,
    "sqrt": _sqrt,
    "log": _log,
    "ln": _ln,
    "exp": _exp,
    "min": _identity,
    "max": _identity,
}


def call_builtin(
    name: str,
    arg: float,
    context: BuiltinContext,
    functions: Optional[FunctionRegistry] = None,
) -> float:
    """
    Calls a built-in function by name.

    Args:
        name: The function name (case-insensitive)
        arg: The evaluated argument
        context: Position information for error reporting
        functions: Optional function registry (defaults to BUILTIN_FUNCTIONS)

    Returns:
        The function result

    Raises:
        UnknownIdentifierError: If the function doesn't exist
        BuiltinError: If the function rejects its argument
    """
    functions = functions or BUILTIN_FUNCTIONS
    fn = functions.get(name.lower())
    if fn is None:
        raise UnknownIdentifierError(
            f"Unknown variable or function: {name}", context.position, context.source
        )
    return fn(arg, context)


def is_builtin_function(name: str, functions: Optional[FunctionRegistry] = None) -> bool:
    """Checks if a name is a built-in function."""
    functions = functions or BUILTIN_FUNCTIONS
    return name.lower() in functions
