"""Tree-walking interpreter over a pluggable numeric backend."""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Callable, Final, Generic, Iterator

from .ast import Assign, BinaryOp, Call, ConstantRef, Expr, Factorial, FunctionDef, Name, Negate, Number, Power
from .errors import InterpretError, InterpretErrorCode
from .lexer import Function, Operator
from .parser import parse
from .values import FloatNum, N, UserFunction, Variant, is_function

logger = logging.getLogger(__name__)

_BUILTIN_ARITY: Final[int] = 1

_BINARY_DISPATCH: Final[dict[Operator, Callable[[object, object], object]]] = {
    Operator.PLUS: lambda l, r: l + r,
    Operator.MINUS: lambda l, r: l - r,
    Operator.STAR: lambda l, r: l * r,
    Operator.SLASH: lambda l, r: l / r,
    Operator.PERCENT: lambda l, r: l % r,
}

_BUILTIN_DISPATCH: Final[dict[Function, Callable[[object], object]]] = {
    Function.SQRT: lambda v: v.sqrt(),
    Function.SIN: lambda v: v.sin(),
    Function.COS: lambda v: v.cos(),
    Function.TAN: lambda v: v.tan(),
    Function.LOG: lambda v: v.log10(),
    Function.ABS: lambda v: abs(v),
}


class Environment(MutableMapping[str, Variant]):
    """Variable and function bindings, optionally layered over a parent.

    Lookups fall through to the parent; writes always land in this layer, so a
    child created for a function call never changes its parent's bindings.
    """

    def __init__(self, data: MutableMapping[str, Variant] | None = None, parent: "Environment | None" = None) -> None:
        self.data: dict[str, Variant] = {} if data is None else dict(data)
        self.parent = parent

    def __getitem__(self, key: str) -> Variant:
        if key in self.data:
            return self.data[key]
        if self.parent is not None:
            return self.parent[key]
        raise KeyError(key)

    def __setitem__(self, key: str, value: Variant) -> None:
        self.data[key] = value

    def __delitem__(self, key: str) -> None:
        del self.data[key]

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        current: Environment | None = self
        while current is not None:
            for key in current.data:
                if key not in seen:
                    seen.add(key)
                    yield key
            current = current.parent

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        if key in self.data:
            return True
        return self.parent is not None and key in self.parent

    def child(self, bindings: dict[str, Variant]) -> "Environment":
        return Environment(bindings, parent=self)

    def listing(self) -> list[tuple[str, Variant]]:
        """Bindings for display: values first, then functions, each by name."""
        return sorted(self.items(), key=lambda item: (is_function(item[1]), item[0]))


class Interpreter(Generic[N]):
    """Evaluates expression trees against one environment and one numeric backend."""

    def __init__(self, backend: type[N] = FloatNum, env: Environment | MutableMapping[str, Variant] | None = None) -> None:
        self.backend = backend
        if env is None:
            env = Environment()
        elif not isinstance(env, Environment):
            env = Environment(env)
        self.vars = env

    def eval(self, expr: Expr) -> N | UserFunction:
        try:
            return self._eval(expr, self.vars)
        except RecursionError:
            raise InterpretError(InterpretErrorCode.RECURSION_LIMIT, name=_outermost_call_name(expr)) from None

    def evaluate(self, source: str) -> N | UserFunction:
        return self.eval(parse(source))

    def _eval(self, expr: Expr, env: Environment):
        if isinstance(expr, Number):
            return self.backend.from_literal(expr.text)

        if isinstance(expr, ConstantRef):
            return self.backend.constant(expr.constant)

        if isinstance(expr, Name):
            return self._lookup_value(expr.value, env)

        if isinstance(expr, Negate):
            return -self._eval_value(expr.operand, env)

        if isinstance(expr, BinaryOp):
            left = self._eval_value(expr.left, env)
            right = self._eval_value(expr.right, env)
            return _BINARY_DISPATCH[expr.op](left, right)

        if isinstance(expr, Power):
            base = self._eval_value(expr.base, env)
            exponent = self._eval_value(expr.exponent, env)
            return base**exponent

        if isinstance(expr, Factorial):
            return self._eval_value(expr.operand, env).factorial()

        if isinstance(expr, Call):
            if isinstance(expr.func, Function):
                return self._call_builtin(expr.func, expr.args, env)
            return self._call_user(expr.func, expr.args, env)

        if isinstance(expr, Assign):
            value = self._eval_value(expr.value, env)
            env[expr.target] = value
            logger.debug("assigned %s = %s", expr.target, value)
            return value

        if isinstance(expr, FunctionDef):
            func = UserFunction(params=expr.params, body=expr.body)
            env[expr.name] = func
            logger.debug("defined %s", func.signature(expr.name))
            return func

        raise TypeError(f"Unsupported expression node: {type(expr)!r}")

    def _eval_value(self, expr: Expr, env: Environment):
        value = self._eval(expr, env)
        if isinstance(value, UserFunction):
            # Only a definition evaluates to a function; it cannot be an operand.
            assert isinstance(expr, FunctionDef)
            raise InterpretError(InterpretErrorCode.FUNCTION_NAME_USED_LIKE_VAR, name=expr.name)
        return value

    def _lookup_value(self, name: str, env: Environment):
        if name not in env:
            raise InterpretError(InterpretErrorCode.VAR_DOES_NOT_EXIST, name=name)
        value = env[name]
        if is_function(value):
            raise InterpretError(InterpretErrorCode.FUNCTION_NAME_USED_LIKE_VAR, name=name)
        return value

    def _call_builtin(self, func: Function, args: tuple[Expr, ...], env: Environment):
        _check_arity(func.value, _BUILTIN_ARITY, len(args))
        return _BUILTIN_DISPATCH[func](self._eval_value(args[0], env))

    def _call_user(self, name: str, args: tuple[Expr, ...], env: Environment):
        if name not in env:
            raise InterpretError(InterpretErrorCode.VAR_DOES_NOT_EXIST, name=name)
        func = env[name]
        if not isinstance(func, UserFunction):
            raise InterpretError(InterpretErrorCode.VAR_IS_NOT_FUNCTION, name=name)
        _check_arity(name, func.arity, len(args))
        bindings = {param: self._eval_value(arg, env) for param, arg in zip(func.params, args)}
        logger.debug("calling %s with %s", func.signature(name), bindings)
        return self._eval_value(func.body, env.child(bindings))


def _check_arity(name: str, expected: int, received: int) -> None:
    if received < expected:
        raise InterpretError(InterpretErrorCode.TOO_FEW_ARGS, name=name, arity=expected)
    if received > expected:
        raise InterpretError(InterpretErrorCode.TOO_MANY_ARGS, name=name, arity=expected)


def _outermost_call_name(expr: Expr) -> str | None:
    stack = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, Call) and isinstance(node.func, str):
            return node.func
        if isinstance(node, (Negate, Factorial)):
            stack.append(node.operand)
        elif isinstance(node, BinaryOp):
            stack.extend((node.right, node.left))
        elif isinstance(node, Power):
            stack.extend((node.exponent, node.base))
        elif isinstance(node, Call):
            stack.extend(reversed(node.args))
        elif isinstance(node, Assign):
            stack.append(node.value)
        elif isinstance(node, FunctionDef):
            stack.append(node.body)
    return None


def evaluate(source: str, interpreter: Interpreter | None = None):
    """Parse and evaluate ``source``, with an optional persistent interpreter."""
    if interpreter is None:
        interpreter = Interpreter()
    return interpreter.evaluate(source)
