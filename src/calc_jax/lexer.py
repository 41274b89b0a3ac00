"""Tokenization for calculator expressions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import TokenizeError, TokenizeErrorCode


class TokenKind(str, Enum):
    NUMBER = "NUMBER"
    OPERATOR = "OPERATOR"
    FUNCTION = "FUNCTION"
    CONSTANT = "CONSTANT"
    IDENTIFIER = "IDENTIFIER"


class Operator(str, Enum):
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    PERCENT = "%"
    CARET = "^"
    LPAREN = "("
    RPAREN = ")"
    PIPE = "|"
    EQUALS = "="
    BANG = "!"
    COMMA = ","


class Function(str, Enum):
    """Built-in unary functions."""

    SQRT = "sqrt"
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    LOG = "log"
    ABS = "abs"


class Constant(str, Enum):
    PI = "pi"
    E = "e"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    pos: int
    end: int

    @property
    def span(self) -> tuple[int, int]:
        return (self.pos, self.end)

    @property
    def operator(self) -> Operator | None:
        return Operator(self.text) if self.kind is TokenKind.OPERATOR else None

    @property
    def function(self) -> Function | None:
        return Function(self.text) if self.kind is TokenKind.FUNCTION else None

    @property
    def constant(self) -> Constant | None:
        return Constant(self.text) if self.kind is TokenKind.CONSTANT else None

    def is_operator(self, op: Operator) -> bool:
        return self.kind is TokenKind.OPERATOR and self.text == op.value


_OPERATOR_CHARS = {op.value: op for op in Operator}
_CONSTANT_NAMES = {const.value for const in Constant}
_FUNCTION_NAMES = {fn.value for fn in Function}


def _is_number_char(ch: str) -> bool:
    return ch == "." or ("0" <= ch <= "9")


def _scan_while(source: str, start: int, predicate) -> tuple[str, int]:
    i = start
    while i < len(source) and predicate(source[i]):
        i += 1
    return source[start:i], i


def _check_number_text(text: str, pos: int, end: int) -> str:
    try:
        float(text)
    except ValueError as exc:
        raise TokenizeError(TokenizeErrorCode.INVALID_NUMBER, text, pos, end) from exc
    return text


def _classify_word(word: str) -> TokenKind:
    lowered = word.lower()
    if lowered in _CONSTANT_NAMES:
        return TokenKind.CONSTANT
    if lowered in _FUNCTION_NAMES:
        return TokenKind.FUNCTION
    return TokenKind.IDENTIFIER


def tokenize(source: str) -> tuple[Token, ...]:
    """Split ``source`` into tokens in a single left-to-right pass.

    Numbers and words are scanned greedily; a number is any run of digits and
    ``.`` that parses as a float. Words are matched case-insensitively against
    the constant names first, then the built-in functions, and are otherwise
    identifiers that keep their original spelling.
    """
    tokens: list[Token] = []
    i = 0

    while i < len(source):
        ch = source[i]

        if ch.isspace():
            i += 1
            continue

        if ch in _OPERATOR_CHARS:
            tokens.append(Token(TokenKind.OPERATOR, ch, i, i + 1))
            i += 1
            continue

        if _is_number_char(ch):
            text, end = _scan_while(source, i, _is_number_char)
            tokens.append(Token(TokenKind.NUMBER, _check_number_text(text, i, end), i, end))
            i = end
            continue

        if ch.isalpha():
            word, end = _scan_while(source, i, str.isalpha)
            kind = _classify_word(word)
            text = word if kind is TokenKind.IDENTIFIER else word.lower()
            tokens.append(Token(kind, text, i, end))
            i = end
            continue

        raise TokenizeError(TokenizeErrorCode.INVALID_CHARACTER, ch, i, i + 1)

    return tuple(tokens)
