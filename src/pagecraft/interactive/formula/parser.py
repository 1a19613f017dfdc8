"""
Parser for the formula language.

Converts the infix token stream into postfix (Reverse Polish) order using
the shunting-yard algorithm.

Precedence (lowest to highest):
1. Additive: +, -            (left-associative)
2. Multiplicative: *, /, %   (left-associative)
3. Unary: -, +               (prefix)
4. Power: ^                  (right-associative)
5. Primary: numbers, variables, function calls, parentheses
"""

from typing import Dict, List, Optional

from .errors import ParseError
from .limits import DEFAULT_EXPRESSION_LIMITS, ExpressionLimits, check_nesting_depth
from .tokenizer import Token, TokenType, tokenize

PRECEDENCE: Dict[TokenType, int] = {
    TokenType.PLUS: 1,
    TokenType.MINUS: 1,
    TokenType.STAR: 2,
    TokenType.SLASH: 2,
    TokenType.PERCENT: 2,
    TokenType.NEGATE: 3,
    TokenType.CARET: 4,
}

RIGHT_ASSOCIATIVE = frozenset({TokenType.CARET})

BINARY_OPERATORS = frozenset(
    {
        TokenType.PLUS,
        TokenType.MINUS,
        TokenType.STAR,
        TokenType.SLASH,
        TokenType.PERCENT,
        TokenType.CARET,
    }
)


class Parser:
    """Shunting-yard parser producing postfix token lists."""

    def __init__(
        self,
        tokens: List[Token],
        source: str,
        limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS,
    ):
        self._tokens = tokens
        self._source = source
        self._limits = limits
        self._output: List[Token] = []
        self._operators: List[Token] = []
        self._depth = 0
        # True while the next token must start an operand
        self._expect_operand = True

    def parse(self) -> List[Token]:
        """Parses the token stream into postfix order."""
        if not self._tokens:
            raise ParseError("Empty formula", 0, self._source)

        for index, token in enumerate(self._tokens):
            self._consume(index, token)

        if self._expect_operand:
            raise ParseError(
                "Unexpected end of formula", len(self._source), self._source
            )

        while self._operators:
            operator = self._operators.pop()
            if operator.type == TokenType.LPAREN:
                raise ParseError("Unmatched '('", operator.position, self._source)
            self._output.append(operator)

        return self._output

    def _next_type(self, index: int) -> Optional[TokenType]:
        if index + 1 < len(self._tokens):
            return self._tokens[index + 1].type
        return None

    def _consume(self, index: int, token: Token) -> None:
        token_type = token.type

        if token_type == TokenType.NUMBER:
            self._require_operand(token)
            self._output.append(token)
            self._expect_operand = False
            return

        if token_type == TokenType.IDENTIFIER:
            self._require_operand(token)
            if self._next_type(index) == TokenType.LPAREN:
                # The opening parenthesis is consumed on the next step.
                self._operators.append(
                    Token(TokenType.FUNCTION, token.value, token.position)
                )
                return
            self._output.append(token)
            self._expect_operand = False
            return

        if token_type == TokenType.LPAREN:
            self._require_operand(token)
            self._depth += 1
            check_nesting_depth(self._depth, self._limits)
            self._operators.append(token)
            return

        if token_type == TokenType.RPAREN:
            self._close_group(token)
            return

        if self._expect_operand and token_type in (TokenType.PLUS, TokenType.MINUS):
            # Prefix sign. Unary plus is a no-op.
            if token_type == TokenType.MINUS:
                self._operators.append(Token(TokenType.NEGATE, "-", token.position))
            return

        if token_type in BINARY_OPERATORS:
            if self._expect_operand:
                raise ParseError(
                    f"Unexpected operator '{token.value}'", token.position, self._source
                )
            self._push_binary(token)
            self._expect_operand = True
            return

        raise ParseError(
            f"Unexpected token: {token.value}", token.position, self._source
        )

    def _require_operand(self, token: Token) -> None:
        if not self._expect_operand:
            raise ParseError(
                f"Unexpected '{token.value}' after operand", token.position, self._source
            )

    def _push_binary(self, token: Token) -> None:
        precedence = PRECEDENCE[token.type]
        while self._operators:
            top = self._operators[-1]
            if top.type in (TokenType.LPAREN, TokenType.FUNCTION):
                break
            top_precedence = PRECEDENCE[top.type]
            if top_precedence > precedence or (
                top_precedence == precedence and token.type not in RIGHT_ASSOCIATIVE
            ):
                self._output.append(self._operators.pop())
            else:
                break
        self._operators.append(token)

    def _close_group(self, token: Token) -> None:
        if self._expect_operand:
            raise ParseError("Expected expression before ')'", token.position, self._source)

        while self._operators and self._operators[-1].type != TokenType.LPAREN:
            self._output.append(self._operators.pop())

        if not self._operators:
            raise ParseError("Unmatched ')'", token.position, self._source)

        self._operators.pop()
        self._depth -= 1

        if self._operators and self._operators[-1].type == TokenType.FUNCTION:
            self._output.append(self._operators.pop())

        self._expect_operand = False


def to_postfix(
    tokens: List[Token], source: str = "", limits: Optional[ExpressionLimits] = None
) -> List[Token]:
    """
    Converts infix tokens to postfix order.

    Raises:
        ParseError: If the token stream is not a well-formed formula
    """
    parser = Parser(tokens, source, limits or DEFAULT_EXPRESSION_LIMITS)
    return parser.parse()


def parse(source: str, limits: Optional[ExpressionLimits] = None) -> List[Token]:
    """
    Tokenizes and parses a formula string into postfix tokens.

    Args:
        source: The formula string to parse
        limits: Optional formula limits

    Returns:
        Postfix token list ready for evaluation

    Raises:
        TokenizerError: If the formula contains invalid characters
        ParseError: If the formula is malformed
    """
    tokens = tokenize(source, limits)
    return to_postfix(tokens, source, limits)
