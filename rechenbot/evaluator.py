"""Restricted arithmetic evaluation: allow-list gate plus a recursive-descent parser."""

import logging
import math
import re

from rechenbot.models import EvalError, EvalErrorKind, EvalNumber, EvaluationResult

logger = logging.getLogger(__name__)

_DISALLOWED = re.compile(r"[^0-9+\-*/().\s]")
_TOKEN = re.compile(r"\s*(?:(\d+\.?\d*|\.\d+)|(\*\*|[+\-*/()]))")

# Parentheses, sign runs and "**" chains each add one level.
_MAX_DEPTH = 100


class _ParseError(Exception):
    """Malformed token sequence."""


def _tokenize(expression: str) -> list[str]:
    tokens: list[str] = []
    pos = 0
    end = len(expression.rstrip())
    while pos < end:
        m = _TOKEN.match(expression, pos)
        if m is None:
            raise _ParseError(f"unexpected input at offset {pos}")
        tokens.append(m.group(1) or m.group(2))
        pos = m.end()
    return tokens


def _divide(left: float, right: float) -> float:
    if right != 0:
        return left / right
    if left == 0 or math.isnan(left):
        return math.nan
    return math.copysign(math.inf, left) * math.copysign(1.0, right)


def _power(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return math.inf
    except ValueError:
        # negative base with fractional exponent, or zero to a negative power
        return math.nan


class _Parser:
    """Recursive-descent parser over the token list.

    Grammar:
        expr    := term (('+' | '-') term)*
        term    := unary (('*' | '/') unary)*
        unary   := ('+' | '-') unary | primary ('**' unary)?
        primary := NUMBER | '(' expr ')'

    A prefixed operand may not be the base of '**' ("-2**2" is rejected).
    Nesting beyond _MAX_DEPTH is rejected as a syntax error.
    """

    def __init__(self, tokens: list[str]) -> None:
        self._tokens = tokens
        self._pos = 0
        self._depth = 0

    def _peek(self) -> str | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> str:
        token = self._peek()
        if token is None:
            raise _ParseError("unexpected end of expression")
        self._pos += 1
        return token

    def parse(self) -> float:
        value = self._expr()
        if self._peek() is not None:
            raise _ParseError(f"unexpected token {self._peek()!r}")
        return value

    def _expr(self) -> float:
        value = self._term()
        while self._peek() in ("+", "-"):
            op = self._next()
            right = self._term()
            value = value + right if op == "+" else value - right
        return value

    def _term(self) -> float:
        value = self._unary()
        while self._peek() in ("*", "/"):
            op = self._next()
            right = self._unary()
            value = value * right if op == "*" else _divide(value, right)
        return value

    def _unary(self, prefixed: bool = False) -> float:
        self._depth += 1
        if self._depth > _MAX_DEPTH:
            raise _ParseError(f"expression nested deeper than {_MAX_DEPTH} levels")
        try:
            if self._peek() in ("+", "-"):
                op = self._next()
                operand = self._unary(prefixed=True)
                return operand if op == "+" else -operand
            base = self._primary()
            if self._peek() == "**":
                if prefixed:
                    raise _ParseError("unary operator before '**' base needs parentheses")
                self._next()
                return _power(base, self._unary())
            return base
        finally:
            self._depth -= 1

    def _primary(self) -> float:
        token = self._next()
        if token == "(":
            value = self._expr()
            if self._next() != ")":
                raise _ParseError("expected ')'")
            return value
        if token[0].isdigit() or token[0] == ".":
            return float(token)
        raise _ParseError(f"unexpected token {token!r}")


def evaluate(expression: str) -> EvaluationResult:
    """Evaluate an arithmetic expression from untrusted input.

    Only digits, '+ - * / ( ) .' and whitespace pass the gate; anything else
    is rejected before parsing. Never raises.

    Returns:
        EvalNumber with the finite result, or EvalError naming why not.
    """
    if _DISALLOWED.search(expression) or not expression.strip():
        return EvalError(EvalErrorKind.INVALID_CHARACTERS)

    try:
        value = _Parser(_tokenize(expression)).parse()
    except _ParseError as exc:
        logger.debug("Syntax error in %r: %s", expression, exc)
        return EvalError(EvalErrorKind.SYNTAX_ERROR)

    if not math.isfinite(value):
        return EvalError(EvalErrorKind.NON_FINITE)
    return EvalNumber(value)
