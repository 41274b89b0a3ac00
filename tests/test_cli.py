from __future__ import annotations

import io
import unittest

from rich.console import Console

from calc_jax.bigdecimal import Decimal
from calc_jax.cli import Session, format_caret, main
from calc_jax.evaluator import Interpreter


def _console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    console = Console(file=buffer, no_color=True, highlight=False, markup=False, width=1000)
    return console, buffer


class CommandLineTests(unittest.TestCase):
    def _run(self, argv: list[str]) -> tuple[int, list[str]]:
        console, buffer = _console()
        code = main(argv, console=console)
        return code, buffer.getvalue().splitlines()

    def test_single_expression(self) -> None:
        self.assertEqual(self._run(["2+3*4"]), (0, ["14"]))

    def test_decimal_backend_flag(self) -> None:
        self.assertEqual(self._run(["--decimal", "0.1 + 0.2"]), (0, ["0.3"]))

    def test_tokenize_error_is_underlined(self) -> None:
        code, lines = self._run(["2 & 3"])
        self.assertEqual(code, 1)
        self.assertEqual(lines, ["  ^ InvalidCharacter('&')"])

    def test_parse_errors_are_underlined(self) -> None:
        self.assertEqual(self._run(["(1+2"]), (1, ["^ ExpectedClosingDelimiter"]))
        self.assertEqual(self._run(["1+ "]), (1, ["   ^ UnexpectedEOF"]))

    def test_interpret_error_is_described(self) -> None:
        self.assertEqual(self._run(["y"]), (1, ["No variable or function 'y' exists."]))

    def test_debug_flags(self) -> None:
        code, lines = self._run(["-t", "-s", "1+2"])
        self.assertEqual(code, 0)
        self.assertTrue(lines[0].startswith("Tokens: [Token("))
        self.assertTrue(lines[1].startswith("Expr: BinaryOp("))
        self.assertEqual(lines[2], "3")

    def test_caret_width_matches_span(self) -> None:
        self.assertEqual(format_caret((1, 4), "Bad"), " ^^^ Bad")
        self.assertEqual(format_caret((1, 4), "Bad", indent=2), "   ^^^ Bad")


class SessionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.console, self.buffer = _console()
        self.session = Session(interpreter=Interpreter(), console=self.console)

    def _lines(self) -> list[str]:
        lines = self.buffer.getvalue().splitlines()
        self.buffer.seek(0)
        self.buffer.truncate()
        return lines

    def test_results_are_prefixed(self) -> None:
        self.assertTrue(self.session.handle("x = 5"))
        self.assertEqual(self._lines(), [": 5"])
        self.session.handle("x + 1")
        self.assertEqual(self._lines(), [": 6"])

    def test_function_definition_echoes_signature(self) -> None:
        self.session.handle("f(a, b) = a + b")
        self.assertEqual(self._lines(), [": f(a, b)"])

    def test_vars_lists_values_then_functions(self) -> None:
        for line in ("g(x) = x", "b = 2", "a = 1.5"):
            self.session.handle(line)
        self._lines()
        self.session.handle("vars")
        self.assertEqual(self._lines(), ["a = 1.5", "b = 2", "g(x)"])

    def test_show_vars_after_each_evaluation(self) -> None:
        self.session.show_vars = True
        self.session.handle("z = 3")
        self.assertEqual(self._lines(), [": 3", "z = 3"])

    def test_notes_and_blank_lines_are_ignored(self) -> None:
        self.assertTrue(self.session.handle(": remember the milk"))
        self.assertTrue(self.session.handle("   "))
        self.assertEqual(self._lines(), [])

    def test_quit_and_exit_end_the_session(self) -> None:
        self.assertFalse(self.session.handle("quit"))
        self.assertFalse(self.session.handle("exit"))

    def test_help_lists_commands_and_examples(self) -> None:
        self.session.handle("help")
        output = "\n".join(self._lines())
        self.assertIn("Commands", output)
        self.assertIn("quit|exit", output)
        self.assertIn("12.3(0.7)", output)

    def test_repl_carets_are_offset_by_the_prompt(self) -> None:
        self.assertTrue(self.session.handle("2 & 3"))
        self.assertEqual(self._lines(), ["    ^ InvalidCharacter('&')"])

    def test_huge_decimal_results_keep_the_session_alive(self) -> None:
        session = Session(interpreter=Interpreter(backend=Decimal), console=self.console)
        session.handle("y = 7")
        self.assertTrue(session.evaluate("2000!"))
        self.assertTrue(session.handle("2^20000"))
        self._lines()
        session.handle("y")
        self.assertEqual(self._lines(), [": 7.0"])


if __name__ == "__main__":
    unittest.main()
