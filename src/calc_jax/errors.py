"""Structured error families for the tokenize, parse and interpret stages."""

from __future__ import annotations

from enum import Enum


class TokenizeErrorCode(str, Enum):
    INVALID_CHARACTER = "InvalidCharacter"
    INVALID_NUMBER = "InvalidNumber"


class ParseErrorCode(str, Enum):
    UNEXPECTED_TOKEN = "UnexpectedToken"
    UNEXPECTED_EOF = "UnexpectedEOF"
    EXPECTED_CLOSING_DELIMITER = "ExpectedClosingDelimiter"
    NESTING_TOO_DEEP = "NestingTooDeep"


class InterpretErrorCode(str, Enum):
    TOO_FEW_ARGS = "TooFewArgs"
    TOO_MANY_ARGS = "TooManyArgs"
    VAR_DOES_NOT_EXIST = "VarDoesNotExist"
    VAR_IS_NOT_FUNCTION = "VarIsNotFunction"
    FUNCTION_NAME_USED_LIKE_VAR = "FunctionNameUsedLikeVar"
    DIVISION_BY_ZERO = "DivisionByZero"
    UNSUPPORTED_OPERATION = "UnsupportedOperation"
    DOMAIN_ERROR = "DomainError"
    RECURSION_LIMIT = "RecursionLimit"


class CalcError(Exception):
    """Base class for structured calc-jax errors."""


class TokenizeError(CalcError):
    """Raised when the source text contains a character or literal that cannot be lexed."""

    def __init__(self, code: TokenizeErrorCode, text: str, start: int, end: int) -> None:
        if code is TokenizeErrorCode.INVALID_CHARACTER:
            message = f"Invalid character {text!r}"
        else:
            message = f"Invalid number {text!r}"
        super().__init__(message)
        self.code = code
        self.message = message
        self.text = text
        self.start = start
        self.end = end

    @property
    def span(self) -> tuple[int, int]:
        return (self.start, self.end)

    def __str__(self) -> str:
        return f"{self.message} at span [{self.start}, {self.end})"


class ParseError(CalcError, SyntaxError):
    def __init__(
        self,
        code: ParseErrorCode,
        start: int,
        end: int,
        expected: tuple[str, ...] = (),
        found: str | None = None,
    ) -> None:
        super().__init__(code.value)
        self.code = code
        self.message = code.value
        self.start = start
        self.end = end
        self.expected = expected
        self.found = found

    @property
    def span(self) -> tuple[int, int]:
        return (self.start, self.end)

    def __str__(self) -> str:
        expected_text = ""
        if self.expected:
            expected_text = f"; expected {', '.join(self.expected)}"
        found_text = ""
        if self.found is not None:
            found_text = f"; found {self.found}"
        return f"{self.message} at span [{self.start}, {self.end}){expected_text}{found_text}"


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


class InterpretError(CalcError):
    """Evaluation failure after a successful parse.

    ``name`` is the identifier or operation involved and ``arity`` is the
    declared parameter count for the two arity codes.
    """

    def __init__(self, code: InterpretErrorCode, name: str | None = None, arity: int | None = None, detail: str | None = None) -> None:
        self.code = code
        self.name = name
        self.arity = arity
        self.detail = detail
        super().__init__(self.describe())

    def describe(self) -> str:
        code = self.code
        if code is InterpretErrorCode.TOO_FEW_ARGS:
            return f"Function {self.name!r} did not receive minimum of {self.arity} argument{_plural(self.arity or 0)}."
        if code is InterpretErrorCode.TOO_MANY_ARGS:
            return f"Function {self.name!r} received more than the maximum {self.arity} argument{_plural(self.arity or 0)}."
        if code is InterpretErrorCode.VAR_DOES_NOT_EXIST:
            return f"No variable or function {self.name!r} exists."
        if code is InterpretErrorCode.VAR_IS_NOT_FUNCTION:
            return f"The variable {self.name!r} cannot be used like a function with arguments."
        if code is InterpretErrorCode.FUNCTION_NAME_USED_LIKE_VAR:
            return f"The function {self.name!r} cannot be used without arguments."
        if code is InterpretErrorCode.RECURSION_LIMIT:
            return f"Function {self.name!r} recursed too deeply."
        if self.detail is not None:
            return self.detail
        return f"{code.value} in {self.name!r}" if self.name else code.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InterpretError):
            return NotImplemented
        return (self.code, self.name, self.arity) == (other.code, other.name, other.arity)

    def __hash__(self) -> int:
        return hash((self.code, self.name, self.arity))
