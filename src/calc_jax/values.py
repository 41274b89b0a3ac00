"""Runtime value model: the numeric backend protocol and the jax float backend."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import total_ordering
from typing import Callable, Final, Protocol, TypeVar, Union

import jax
import jax.numpy as jnp
import jax.scipy.special as jsp

from .ast import Expr
from .lexer import Constant

_ENABLE_X64: Final[bool] = os.environ.get("CALC_JAX_ENABLE_X64", "1") != "0"
_USE_JITTED_KERNELS: Final[bool] = os.environ.get("CALC_JAX_JIT_KERNELS", "0") == "1"
_MAX_EXACT_FACTORIAL: Final[int] = 170

if _ENABLE_X64:
    jax.config.update("jax_enable_x64", True)

_FLOAT_DTYPE: Final = jnp.float64 if _ENABLE_X64 else jnp.float32

N = TypeVar("N", bound="Num")


class Num(Protocol):
    """Operations a numeric backend provides to the interpreter."""

    @classmethod
    def from_literal(cls: type[N], text: str) -> N:
        ...

    @classmethod
    def constant(cls: type[N], constant: Constant) -> N:
        ...

    def __add__(self: N, other: N) -> N:
        ...

    def __sub__(self: N, other: N) -> N:
        ...

    def __mul__(self: N, other: N) -> N:
        ...

    def __truediv__(self: N, other: N) -> N:
        ...

    def __mod__(self: N, other: N) -> N:
        ...

    def __pow__(self: N, other: N) -> N:
        ...

    def __neg__(self: N) -> N:
        ...

    def __abs__(self: N) -> N:
        ...

    def __lt__(self: N, other: N) -> bool:
        ...

    def __float__(self) -> float:
        ...

    def sqrt(self: N) -> N:
        ...

    def sin(self: N) -> N:
        ...

    def cos(self: N) -> N:
        ...

    def tan(self: N) -> N:
        ...

    def log10(self: N) -> N:
        ...

    def factorial(self: N) -> N:
        ...


@dataclass(frozen=True)
class UserFunction:
    """A function bound by ``name(params) = body``."""

    params: tuple[str, ...]
    body: Expr

    @property
    def arity(self) -> int:
        return len(self.params)

    def signature(self, name: str) -> str:
        return f"{name}({', '.join(self.params)})"


Variant = Union[Num, UserFunction]


def is_function(value: object) -> bool:
    return isinstance(value, UserFunction)


_UNARY_KERNELS: Final[dict[str, Callable[[jax.Array], jax.Array]]] = {
    "neg": jnp.negative,
    "abs": jnp.abs,
    "sqrt": jnp.sqrt,
    "sin": jnp.sin,
    "cos": jnp.cos,
    "tan": jnp.tan,
    "log10": jnp.log10,
}

# ``%`` is the truncated remainder: the result takes the sign of the dividend.
_BINARY_KERNELS: Final[dict[str, Callable[[jax.Array, jax.Array], jax.Array]]] = {
    "+": jnp.add,
    "-": jnp.subtract,
    "*": jnp.multiply,
    "/": jnp.divide,
    "%": jnp.fmod,
    "^": jnp.power,
}

_JITTED_UNARY_KERNELS: dict[str, Callable[[jax.Array], jax.Array]] = {}
_JITTED_BINARY_KERNELS: dict[str, Callable[[jax.Array, jax.Array], jax.Array]] = {}


def _unary_kernel(name: str) -> Callable[[jax.Array], jax.Array]:
    if not _USE_JITTED_KERNELS:
        return _UNARY_KERNELS[name]
    fn = _JITTED_UNARY_KERNELS.get(name)
    if fn is None:
        fn = jax.jit(_UNARY_KERNELS[name])
        _JITTED_UNARY_KERNELS[name] = fn
    return fn


def _binary_kernel(op: str) -> Callable[[jax.Array, jax.Array], jax.Array]:
    if not _USE_JITTED_KERNELS:
        return _BINARY_KERNELS[op]
    fn = _JITTED_BINARY_KERNELS.get(op)
    if fn is None:
        fn = jax.jit(_BINARY_KERNELS[op])
        _JITTED_BINARY_KERNELS[op] = fn
    return fn


def format_float(value: float) -> str:
    text = repr(value)
    if text.endswith(".0"):
        text = text[:-2]
    return text


@total_ordering
@dataclass(frozen=True, eq=False)
class FloatNum:
    """Native floating point backend holding a 0-d jax array."""

    value: jax.Array

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", jnp.asarray(self.value, dtype=_FLOAT_DTYPE))

    @classmethod
    def from_literal(cls, text: str) -> "FloatNum":
        return cls(float(text))

    @classmethod
    def constant(cls, constant: Constant) -> "FloatNum":
        if constant is Constant.PI:
            return cls(math.pi)
        return cls(math.e)

    def _binary(self, op: str, other: object) -> "FloatNum":
        if not isinstance(other, FloatNum):
            return NotImplemented
        return FloatNum(_binary_kernel(op)(self.value, other.value))

    def __add__(self, other: "FloatNum") -> "FloatNum":
        return self._binary("+", other)

    def __sub__(self, other: "FloatNum") -> "FloatNum":
        return self._binary("-", other)

    def __mul__(self, other: "FloatNum") -> "FloatNum":
        return self._binary("*", other)

    def __truediv__(self, other: "FloatNum") -> "FloatNum":
        return self._binary("/", other)

    def __mod__(self, other: "FloatNum") -> "FloatNum":
        return self._binary("%", other)

    def __pow__(self, other: "FloatNum") -> "FloatNum":
        return self._binary("^", other)

    def __neg__(self) -> "FloatNum":
        return FloatNum(_unary_kernel("neg")(self.value))

    def __abs__(self) -> "FloatNum":
        return FloatNum(_unary_kernel("abs")(self.value))

    def sqrt(self) -> "FloatNum":
        return FloatNum(_unary_kernel("sqrt")(self.value))

    def sin(self) -> "FloatNum":
        return FloatNum(_unary_kernel("sin")(self.value))

    def cos(self) -> "FloatNum":
        return FloatNum(_unary_kernel("cos")(self.value))

    def tan(self) -> "FloatNum":
        return FloatNum(_unary_kernel("tan")(self.value))

    def log10(self) -> "FloatNum":
        return FloatNum(_unary_kernel("log10")(self.value))

    def factorial(self) -> "FloatNum":
        x = float(self)
        if x >= 0 and x.is_integer():
            if x > _MAX_EXACT_FACTORIAL:
                return FloatNum(math.inf)
            return FloatNum(jnp.prod(jnp.arange(1, int(x) + 1, dtype=self.value.dtype)))
        return FloatNum(jsp.gamma(self.value + 1))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FloatNum):
            return NotImplemented
        return bool(self.value == other.value)

    def __lt__(self, other: "FloatNum") -> bool:
        if not isinstance(other, FloatNum):
            return NotImplemented
        return bool(self.value < other.value)

    def __hash__(self) -> int:
        return hash(float(self))

    def __float__(self) -> float:
        return float(self.value)

    def __str__(self) -> str:
        return format_float(float(self))

    def __repr__(self) -> str:
        return f"FloatNum({format_float(float(self))})"
