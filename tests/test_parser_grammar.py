from __future__ import annotations

import unittest

from calc_jax.ast import Assign, BinaryOp, Call, ConstantRef, Factorial, FunctionDef, Name, Negate, Number, Power
from calc_jax.errors import ParseError, ParseErrorCode
from calc_jax.lexer import Constant, Function, Operator, tokenize
from calc_jax.parser import parse


def _n(text: str) -> Number:
    return Number(text=text)


class ParserPrecedenceTests(unittest.TestCase):
    def test_multiplicative_binds_tighter_than_additive(self) -> None:
        self.assertEqual(
            parse("2+3*4"),
            BinaryOp(Operator.PLUS, _n("2"), BinaryOp(Operator.STAR, _n("3"), _n("4"))),
        )

    def test_parentheses_override_precedence(self) -> None:
        self.assertEqual(
            parse("(2+3)*4"),
            BinaryOp(Operator.STAR, BinaryOp(Operator.PLUS, _n("2"), _n("3")), _n("4")),
        )

    def test_binary_operators_are_left_associative(self) -> None:
        self.assertEqual(
            parse("8 - 3 - 2"),
            BinaryOp(Operator.MINUS, BinaryOp(Operator.MINUS, _n("8"), _n("3")), _n("2")),
        )
        self.assertEqual(
            parse("8 / 4 % 3"),
            BinaryOp(Operator.PERCENT, BinaryOp(Operator.SLASH, _n("8"), _n("4")), _n("3")),
        )

    def test_unary_minus_is_looser_than_power(self) -> None:
        self.assertEqual(parse("-2^2"), Negate(Power(_n("2"), _n("2"))))
        self.assertEqual(parse("--x"), Negate(Negate(Name("x"))))

    def test_power_is_right_associative(self) -> None:
        self.assertEqual(parse("2^3^2"), Power(_n("2"), Power(_n("3"), _n("2"))))

    def test_power_exponent_may_be_negated(self) -> None:
        self.assertEqual(parse("2^-1"), Power(_n("2"), Negate(_n("1"))))

    def test_factorial_binds_tighter_than_power_and_minus(self) -> None:
        self.assertEqual(parse("3!^2"), Power(Factorial(_n("3")), _n("2")))
        self.assertEqual(parse("-x!"), Negate(Factorial(Name("x"))))
        self.assertEqual(parse("3!!"), Factorial(Factorial(_n("3"))))

    def test_implicit_multiplication_after_number(self) -> None:
        self.assertEqual(
            parse("2(3+4)"),
            BinaryOp(Operator.STAR, _n("2"), BinaryOp(Operator.PLUS, _n("3"), _n("4"))),
        )
        self.assertEqual(parse("12.3(0.7)"), BinaryOp(Operator.STAR, _n("12.3"), _n("0.7")))

    def test_pipes_build_absolute_value_calls(self) -> None:
        self.assertEqual(
            parse("|-9| + 3!"),
            BinaryOp(Operator.PLUS, Call(Function.ABS, (Negate(_n("9")),)), Factorial(_n("3"))),
        )
        self.assertEqual(parse("| |x| |"), Call(Function.ABS, (Call(Function.ABS, (Name("x"),)),)))

    def test_constants_and_builtin_calls(self) -> None:
        self.assertEqual(parse("pi"), ConstantRef(Constant.PI))
        self.assertEqual(parse("sqrt(4)"), Call(Function.SQRT, (_n("4"),)))
        self.assertEqual(parse("log(1, 2)"), Call(Function.LOG, (_n("1"), _n("2"))))


class ParserAssignmentTests(unittest.TestCase):
    def test_assignment_is_lowest_and_right_associative(self) -> None:
        self.assertEqual(parse("x = 1 + 2"), Assign("x", BinaryOp(Operator.PLUS, _n("1"), _n("2"))))
        self.assertEqual(parse("x = y = 3"), Assign("x", Assign("y", _n("3"))))

    def test_assignment_inside_parentheses(self) -> None:
        self.assertEqual(parse("(x = 2) * 3"), BinaryOp(Operator.STAR, Assign("x", _n("2")), _n("3")))

    def test_function_definition(self) -> None:
        self.assertEqual(
            parse("f(a, b) = a + b"),
            FunctionDef("f", ("a", "b"), BinaryOp(Operator.PLUS, Name("a"), Name("b"))),
        )
        self.assertEqual(parse("c() = 42"), FunctionDef("c", (), _n("42")))

    def test_user_calls_take_any_number_of_arguments(self) -> None:
        self.assertEqual(parse("f()"), Call("f", ()))
        self.assertEqual(parse("f(1, x)"), Call("f", (_n("1"), Name("x"))))
        self.assertEqual(parse("f(1) + 2"), BinaryOp(Operator.PLUS, Call("f", (_n("1"),)), _n("2")))

    def test_parse_accepts_tokens_or_source(self) -> None:
        source = "x = 2(3) - |y|"
        self.assertEqual(parse(tokenize(source)), parse(source))

    def test_parsing_is_deterministic(self) -> None:
        self.assertEqual(parse("f(a) = -a^2 + 3!"), parse("f(a) = -a^2 + 3!"))


class ParserErrorTests(unittest.TestCase):
    def _error(self, source: str) -> ParseError:
        with self.assertRaises(ParseError) as ctx:
            parse(source)
        return ctx.exception

    def test_unmatched_open_paren_points_at_opener(self) -> None:
        err = self._error("(2+3")
        self.assertIs(err.code, ParseErrorCode.EXPECTED_CLOSING_DELIMITER)
        self.assertEqual(err.span, (0, 1))

    def test_unmatched_pipe_points_at_opener(self) -> None:
        err = self._error("1 + |2")
        self.assertIs(err.code, ParseErrorCode.EXPECTED_CLOSING_DELIMITER)
        self.assertEqual(err.span, (4, 5))

    def test_unclosed_call_points_at_call_paren(self) -> None:
        err = self._error("f(1, 2")
        self.assertIs(err.code, ParseErrorCode.EXPECTED_CLOSING_DELIMITER)
        self.assertEqual(err.span, (1, 2))

    def test_eof_span_is_one_past_last_token(self) -> None:
        err = self._error("2+")
        self.assertIs(err.code, ParseErrorCode.UNEXPECTED_EOF)
        self.assertEqual(err.span, (2, 3))

        err = self._error("f(x) = ")
        self.assertIs(err.code, ParseErrorCode.UNEXPECTED_EOF)
        self.assertEqual(err.span, (6, 7))

    def test_empty_input_is_unexpected_eof(self) -> None:
        err = self._error("")
        self.assertIs(err.code, ParseErrorCode.UNEXPECTED_EOF)
        self.assertEqual(err.span, (0, 1))

    def test_unexpected_tokens(self) -> None:
        cases = {
            "2 3": (2, 3),
            "2 = 3": (2, 3),
            ")": (0, 1),
            "sqrt 4": (5, 6),
            "1 + * 2": (4, 5),
            "f(a, a) = a": (5, 6),
        }
        for source, span in cases.items():
            with self.subTest(source=source):
                err = self._error(source)
                self.assertIs(err.code, ParseErrorCode.UNEXPECTED_TOKEN)
                self.assertEqual(err.span, span)

    def test_definitions_cannot_nest_inside_expressions(self) -> None:
        cases = {
            "x = f(y) = y": (ParseErrorCode.UNEXPECTED_TOKEN, (9, 10)),
            "f(a) = g(b) = b": (ParseErrorCode.UNEXPECTED_TOKEN, (12, 13)),
            "(f(y) = y) + 1": (ParseErrorCode.EXPECTED_CLOSING_DELIMITER, (0, 1)),
        }
        for source, (code, span) in cases.items():
            with self.subTest(source=source):
                err = self._error(source)
                self.assertIs(err.code, code)
                self.assertEqual(err.span, span)

    def test_deep_nesting_is_a_parse_error(self) -> None:
        cases = {
            "-" * 1200 + "1": (63, 64),
            "(" * 300 + "1" + ")" * 300: (64, 65),
            "|" * 300 + "1" + "|" * 300: (64, 65),
            "2^" * 300 + "2": (127, 128),
        }
        for source, span in cases.items():
            with self.subTest(source=source[:8]):
                err = self._error(source)
                self.assertIs(err.code, ParseErrorCode.NESTING_TOO_DEEP)
                self.assertEqual(err.span, span)

    def test_moderate_nesting_parses(self) -> None:
        self.assertEqual(parse("(" * 40 + "1" + ")" * 40), _n("1"))
        expr = parse("-" * 40 + "x")
        for _ in range(40):
            self.assertIsInstance(expr, Negate)
            expr = expr.operand
        self.assertEqual(expr, Name("x"))

    def test_parse_error_is_a_syntax_error_with_span_text(self) -> None:
        err = self._error("2 3")
        self.assertIsInstance(err, SyntaxError)
        self.assertEqual(err.found, "NUMBER(3)")
        self.assertIn("UnexpectedToken at span [2, 3)", str(err))


if __name__ == "__main__":
    unittest.main()
