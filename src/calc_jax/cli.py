"""Interactive expression calculator."""

from __future__ import annotations

import argparse
import importlib.util
import logging
import os
from dataclasses import dataclass

from rich.console import Console
from rich.text import Text

from .ast import FunctionDef
from .bigdecimal import Decimal
from .errors import InterpretError, ParseError, ParseErrorCode, TokenizeError
from .evaluator import Interpreter
from .lexer import tokenize
from .parser import parse
from .values import FloatNum, UserFunction

if importlib.util.find_spec("readline") is not None:
    import readline  # noqa: F401  (line editing and history for input())

logger = logging.getLogger(__name__)

PROMPT = "> "
SUCCESS_PREFIX = ":"
NOTE_PREFIX = ":"

COMMANDS: tuple[tuple[str, str], ...] = (
    ("quit|exit", "Close the calculator"),
    ("help", "Show this help information"),
    ("vars", "Display all of the active variables"),
    ("clear", "Clear prior output"),
    (":", "Write notes"),
)

EXAMPLES: tuple[str, ...] = (
    "12.3(0.7)",
    "|-9| + 3!",
    "x = abs(-5)",
    "-x^4",
    "f(a, b) = a^2 + b^2",
)

_BACKENDS = {"float": FloatNum, "decimal": Decimal}


def format_caret(span: tuple[int, int], message: str, indent: int = 0) -> str:
    start, end = span
    return f"{' ' * (indent + start)}{'^' * max(1, end - start)} {message}"


@dataclass
class Session:
    interpreter: Interpreter
    console: Console
    show_tokens: bool = False
    show_syntax: bool = False
    show_vars: bool = False

    def _print(self, message: str, style: str | None = None) -> None:
        self.console.print(Text(message, style=style or ""))

    def handle(self, line: str) -> bool:
        """Run one REPL line; returns False when the session should end."""
        command = line.strip()
        if command in {"quit", "exit"}:
            return False
        if command == "help":
            self.print_help()
        elif command == "vars":
            self.print_vars()
        elif command == "clear":
            self.console.clear()
        elif command.startswith(NOTE_PREFIX) or not command:
            pass
        else:
            self.evaluate(line, prefix=SUCCESS_PREFIX, indent=len(PROMPT))
        return True

    def print_help(self) -> None:
        self._print("Commands")
        for name, desc in COMMANDS:
            text = Text(f"{name:<10}", style="green")
            text.append(f" {desc}")
            self.console.print(text)
        self._print("\nExamples")
        for example in EXAMPLES:
            self._print(f"\t{example}")

    def print_vars(self, style: str | None = None) -> None:
        for name, variant in self.interpreter.vars.listing():
            if isinstance(variant, UserFunction):
                self._print(variant.signature(name), style)
            else:
                self._print(f"{name} = {variant}", style)

    def evaluate(self, source: str, *, prefix: str | None = None, indent: int = 0) -> bool:
        """Evaluate and print one expression; returns True on success.

        ``indent`` is the width of the prompt printed before the input line.
        """
        ok = self._evaluate(source, prefix, indent)
        if self.show_vars:
            self.print_vars(style="yellow")
        return ok

    def _evaluate(self, source: str, prefix: str | None, indent: int) -> bool:
        try:
            tokens = tokenize(source)
        except TokenizeError as err:
            self._print(format_caret(err.span, f"{err.code.value}({err.text!r})", indent), "red")
            return False
        if self.show_tokens:
            self._print(f"Tokens: {list(tokens)!r}", "yellow")

        try:
            expr = parse(tokens)
        except ParseError as err:
            span = err.span
            if err.code is ParseErrorCode.UNEXPECTED_EOF:
                span = (len(source), len(source) + 1)
            self._print(format_caret(span, err.code.value, indent), "red")
            return False
        if self.show_syntax:
            self._print(f"Expr: {expr!r}", "yellow")

        try:
            result = self.interpreter.eval(expr)
        except InterpretError as err:
            self._print(err.describe(), "red")
            return False

        if isinstance(result, UserFunction):
            assert isinstance(expr, FunctionDef)
            rendered = result.signature(expr.name)
        else:
            rendered = str(result)
        if prefix is None:
            self._print(rendered)
        else:
            text = Text(prefix, style="green")
            text.append(f" {rendered}")
            self.console.print(text)
        return True

    def repl(self) -> None:
        self._print("calc-jax interactive expression interpreter.")
        self._print('Try "help" for commands and examples.')
        while True:
            try:
                line = self.console.input(Text(PROMPT, style="blue"))
            except (EOFError, KeyboardInterrupt):
                break
            if not self.handle(line):
                break


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="calc-jax", description="A scientific calculator for the terminal.")
    parser.add_argument("expr", nargs="?", help="evaluate a single expression and exit")
    parser.add_argument("-t", "--tokens", action="store_true", help="print the tokens")
    parser.add_argument("-s", "--syntax", action="store_true", help="print the syntax tree")
    parser.add_argument("-v", "--vars", action="store_true", help="print the variable map after each evaluation")
    parser.add_argument("--no-color", action="store_true", help="prevent colored text")
    parser.add_argument(
        "--decimal",
        action="store_true",
        default=os.environ.get("CALC_JAX_BACKEND", "float").lower() == "decimal",
        help="use the arbitrary-precision decimal backend instead of floating point",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("CALC_JAX_LOG_LEVEL", "WARNING"),
        help="logging level for diagnostic output",
    )
    return parser


def main(argv: list[str] | None = None, *, console: Console | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if console is None:
        console = Console(no_color=args.no_color, highlight=False, markup=False)
    backend = _BACKENDS["decimal" if args.decimal else "float"]
    logger.debug("using %s backend", backend.__name__)

    session = Session(
        interpreter=Interpreter(backend=backend),
        console=console,
        show_tokens=args.tokens,
        show_syntax=args.syntax,
        show_vars=args.vars,
    )

    if args.expr is not None:
        return 0 if session.evaluate(args.expr) else 1

    session.repl()
    return 0
