"""Expression tree nodes produced by the parser."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .lexer import Constant, Function, Operator


@dataclass(frozen=True)
class Number:
    text: str


@dataclass(frozen=True)
class ConstantRef:
    constant: Constant


@dataclass(frozen=True)
class Name:
    value: str


@dataclass(frozen=True)
class Negate:
    operand: "Expr"


@dataclass(frozen=True)
class BinaryOp:
    op: Operator
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class Power:
    base: "Expr"
    exponent: "Expr"


@dataclass(frozen=True)
class Factorial:
    operand: "Expr"


@dataclass(frozen=True)
class Call:
    """Built-in (``Function``) or user-defined (``str``) call."""

    func: "Function | str"
    args: tuple["Expr", ...]


@dataclass(frozen=True)
class Assign:
    target: str
    value: "Expr"


@dataclass(frozen=True)
class FunctionDef:
    name: str
    params: tuple[str, ...]
    body: "Expr"


Expr = Union[Number, ConstantRef, Name, Negate, BinaryOp, Power, Factorial, Call, Assign, FunctionDef]
