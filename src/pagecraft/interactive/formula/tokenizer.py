"""
Tokenizer (lexer) for the formula language.

Scans a formula left to right. Runs of characters that are neither
whitespace nor operators become NUMBER or IDENTIFIER tokens; the operators
``+ - * / ^ % ( )`` are single-character tokens, except that a sign right
after the exponent marker of a number (``1e-5``) belongs to the number.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .errors import TokenizerError
from .limits import ExpressionLimits, check_expression_length, check_token_count


class TokenType(Enum):
    """Token types produced by the tokenizer."""

    # Operands
    NUMBER = "NUMBER"
    IDENTIFIER = "IDENTIFIER"

    # Operators
    PLUS = "PLUS"
    MINUS = "MINUS"
    STAR = "STAR"
    SLASH = "SLASH"
    PERCENT = "PERCENT"
    CARET = "CARET"

    # Delimiters
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"

    # Synthesized by the parser
    FUNCTION = "FUNCTION"
    NEGATE = "NEGATE"


@dataclass(frozen=True)
class Token:
    """A token produced by the tokenizer."""

    type: TokenType
    value: str
    position: int


OPERATOR_TOKENS: Dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "^": TokenType.CARET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
}

# Plain decimal literals with an optional signed exponent; "inf", "nan" and
# "1_000" are not numbers here.
_NUMBER_PATTERN = re.compile(r"^(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_MANTISSA_PATTERN = re.compile(r"^(?:\d+\.?\d*|\.\d+)[eE]$")


def _is_whitespace(ch: str) -> bool:
    """Checks if a character is whitespace."""
    return ch.isspace()


def is_number_literal(text: str) -> bool:
    """Checks if a run of characters is a numeric literal."""
    return bool(_NUMBER_PATTERN.match(text))


class Tokenizer:
    """Tokenizer for formula strings."""

    def __init__(self, source: str, limits: Optional[ExpressionLimits] = None):
        self._source = source
        self._limits = limits
        self._position = 0
        self._tokens: List[Token] = []

    def tokenize(self) -> List[Token]:
        """Tokenizes the source formula and returns all tokens."""
        check_expression_length(self._source, self._limits)

        while not self._is_at_end():
            self._scan_token()

        check_token_count(len(self._tokens), self._limits)
        return self._tokens

    def _is_at_end(self) -> bool:
        return self._position >= len(self._source)

    def _peek(self) -> str:
        if self._is_at_end():
            return "\0"
        return self._source[self._position]

    def _peek_next(self) -> str:
        if self._position + 1 >= len(self._source):
            return "\0"
        return self._source[self._position + 1]

    def _starts_exponent(self, run: str) -> bool:
        # "1e-5" is one literal; "1e - x" and "1e-x" keep the minus as an operator.
        return bool(_MANTISSA_PATTERN.match(run)) and self._peek_next() in "0123456789"

    def _advance(self) -> str:
        ch = self._source[self._position]
        self._position += 1
        return ch

    def _scan_token(self) -> None:
        start_position = self._position
        ch = self._advance()

        if _is_whitespace(ch):
            return

        if ch in OPERATOR_TOKENS:
            self._tokens.append(Token(OPERATOR_TOKENS[ch], ch, start_position))
            return

        if ch == ",":
            raise TokenizerError(
                "Unexpected ','. Functions accept a single argument",
                start_position,
                self._source,
            )

        self._scan_run(ch, start_position)

    def _scan_run(self, first: str, start_position: int) -> None:
        value = first
        while not self._is_at_end():
            ch = self._peek()
            if ch in "+-" and self._starts_exponent(value):
                value += self._advance()
                continue
            if _is_whitespace(ch) or ch in OPERATOR_TOKENS or ch == ",":
                break
            value += self._advance()

        if is_number_literal(value):
            self._tokens.append(Token(TokenType.NUMBER, value, start_position))
        else:
            self._tokens.append(Token(TokenType.IDENTIFIER, value, start_position))


def tokenize(source: str, limits: Optional[ExpressionLimits] = None) -> List[Token]:
    """
    Tokenizes a formula string into tokens.

    Args:
        source: The formula string to tokenize
        limits: Optional formula limits

    Returns:
        List of tokens

    Raises:
        TokenizerError: If the formula contains invalid characters
        LimitExceededError: If the formula is too long or has too many tokens
    """
    tokenizer = Tokenizer(source, limits)
    return tokenizer.tokenize()
