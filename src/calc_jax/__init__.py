"""calc-jax public API."""

from .bigdecimal import Decimal
from .errors import (
    CalcError,
    InterpretError,
    InterpretErrorCode,
    ParseError,
    ParseErrorCode,
    TokenizeError,
    TokenizeErrorCode,
)
from .evaluator import Environment, Interpreter, evaluate
from .lexer import Constant, Function, Operator, Token, TokenKind, tokenize
from .parser import parse
from .values import FloatNum, Num, UserFunction, Variant

__all__ = [
    "tokenize",
    "parse",
    "evaluate",
    "Interpreter",
    "Environment",
    "Num",
    "FloatNum",
    "Decimal",
    "UserFunction",
    "Variant",
    "Token",
    "TokenKind",
    "Operator",
    "Function",
    "Constant",
    "CalcError",
    "TokenizeError",
    "TokenizeErrorCode",
    "ParseError",
    "ParseErrorCode",
    "InterpretError",
    "InterpretErrorCode",
]
