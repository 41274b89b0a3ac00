"""Precedence-climbing parser for calculator expressions.

Binding, tightest first: primary terms, postfix ``!``, ``^`` (right
associative, with a unary operand so ``2^-1`` parses), unary ``-``,
``* / %``, ``+ -``, and assignment / function definition.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .ast import Assign, BinaryOp, Call, ConstantRef, Expr, Factorial, FunctionDef, Name, Negate, Number, Power
from .errors import ParseError, ParseErrorCode
from .lexer import Function, Operator, Token, TokenKind, tokenize

_ADDITIVE_OPS = (Operator.PLUS, Operator.MINUS)
_MULTIPLICATIVE_OPS = (Operator.STAR, Operator.SLASH, Operator.PERCENT)

# Open groups, assignments, exponents and unary minuses counted together.
_MAX_NESTING = 64


@dataclass
class _Parser:
    tokens: Sequence[Token]
    index: int = 0
    depth: int = 0

    def parse_expression_only(self) -> Expr:
        expr = self._parse_assignment(allow_definition=True)
        tok = self._peek()
        if tok is not None:
            self._error(tok, expected=("EOF",))
        return expr

    def _peek(self, offset: int = 0) -> Token | None:
        at = self.index + offset
        if at < len(self.tokens):
            return self.tokens[at]
        return None

    def _advance(self) -> Token:
        tok = self.tokens[self.index]
        self.index += 1
        return tok

    def _eof_span(self) -> tuple[int, int]:
        if not self.tokens:
            return (0, 1)
        end = self.tokens[-1].end
        return (end, end + 1)

    def _error(self, tok: Token | None = None, *, expected: tuple[str, ...] = ()) -> None:
        normalized_expected = tuple(dict.fromkeys(expected))
        if tok is None:
            start, end = self._eof_span()
            raise ParseError(ParseErrorCode.UNEXPECTED_EOF, start, end, expected=normalized_expected, found="EOF")
        raise ParseError(
            ParseErrorCode.UNEXPECTED_TOKEN,
            tok.pos,
            tok.end,
            expected=normalized_expected,
            found=f"{tok.kind.value}({tok.text})",
        )

    def _enter(self, tok: Token | None) -> None:
        self.depth += 1
        if self.depth > _MAX_NESTING:
            if tok is None:
                start, end = self._eof_span()
                found = "EOF"
            else:
                start, end = tok.pos, tok.end
                found = f"{tok.kind.value}({tok.text})"
            raise ParseError(ParseErrorCode.NESTING_TOO_DEEP, start, end, found=found)

    def _match(self, op: Operator) -> Token | None:
        tok = self._peek()
        if tok is not None and tok.is_operator(op):
            return self._advance()
        return None

    def _expect(self, op: Operator) -> Token:
        tok = self._peek()
        if tok is None or not tok.is_operator(op):
            self._error(tok, expected=(op.value,))
        return self._advance()

    def _expect_closing(self, op: Operator, opening: Token) -> Token:
        tok = self._peek()
        if tok is None or not tok.is_operator(op):
            found = "EOF" if tok is None else f"{tok.kind.value}({tok.text})"
            raise ParseError(
                ParseErrorCode.EXPECTED_CLOSING_DELIMITER,
                opening.pos,
                opening.end,
                expected=(op.value,),
                found=found,
            )
        return self._advance()

    def _peek_operator(self, ops: tuple[Operator, ...]) -> Operator | None:
        tok = self._peek()
        if tok is None or tok.kind is not TokenKind.OPERATOR:
            return None
        op = tok.operator
        return op if op in ops else None

    def _starts_function_definition(self) -> bool:
        # IDENT '(' [IDENT (',' IDENT)*] ')' '='
        offset = 2
        expect_name = True
        while True:
            tok = self._peek(offset)
            if tok is None:
                return False
            if tok.is_operator(Operator.RPAREN):
                following = self._peek(offset + 1)
                return following is not None and following.is_operator(Operator.EQUALS)
            if expect_name:
                if tok.kind is not TokenKind.IDENTIFIER:
                    return False
            elif not tok.is_operator(Operator.COMMA):
                return False
            expect_name = not expect_name
            offset += 1

    def _parse_assignment(self, allow_definition: bool = False) -> Expr:
        head = self._peek()
        self._enter(head)
        try:
            if head is not None and head.kind is TokenKind.IDENTIFIER:
                follow = self._peek(1)
                if follow is not None and follow.is_operator(Operator.EQUALS):
                    self._advance()
                    self._advance()
                    return Assign(target=head.text, value=self._parse_assignment())
                # Only a whole input may be a definition.
                if (
                    allow_definition
                    and follow is not None
                    and follow.is_operator(Operator.LPAREN)
                    and self._starts_function_definition()
                ):
                    return self._parse_function_definition()
            return self._parse_additive()
        finally:
            self.depth -= 1

    def _parse_function_definition(self) -> Expr:
        name_tok = self._advance()
        self._expect(Operator.LPAREN)
        params: list[str] = []
        while not self._match(Operator.RPAREN):
            if params:
                self._expect(Operator.COMMA)
            param_tok = self._advance()
            if param_tok.text in params:
                self._error(param_tok, expected=("IDENTIFIER",))
            params.append(param_tok.text)
        self._expect(Operator.EQUALS)
        body = self._parse_assignment()
        return FunctionDef(name=name_tok.text, params=tuple(params), body=body)

    def _parse_additive(self) -> Expr:
        left = self._parse_multiplicative()
        while True:
            op = self._peek_operator(_ADDITIVE_OPS)
            if op is None:
                break
            self._advance()
            right = self._parse_multiplicative()
            left = BinaryOp(op=op, left=left, right=right)
        return left

    def _parse_multiplicative(self) -> Expr:
        left = self._parse_unary()
        while True:
            op = self._peek_operator(_MULTIPLICATIVE_OPS)
            if op is None:
                break
            self._advance()
            right = self._parse_unary()
            left = BinaryOp(op=op, left=left, right=right)
        return left

    def _parse_unary(self) -> Expr:
        negations = 0
        try:
            while True:
                tok = self._peek()
                if tok is None or not tok.is_operator(Operator.MINUS):
                    break
                self._enter(tok)
                negations += 1
                self._advance()
            expr = self._parse_power()
        finally:
            self.depth -= negations
        for _ in range(negations):
            expr = Negate(operand=expr)
        return expr

    def _parse_power(self) -> Expr:
        base = self._parse_postfix()
        caret = self._match(Operator.CARET)
        if caret is None:
            return base
        self._enter(caret)
        try:
            # Right-associative: the exponent is itself a unary/power chain.
            return Power(base=base, exponent=self._parse_unary())
        finally:
            self.depth -= 1

    def _parse_postfix(self) -> Expr:
        expr = self._parse_primary()
        while self._match(Operator.BANG):
            expr = Factorial(operand=expr)
        return expr

    def _parse_args(self, opening: Token) -> tuple[Expr, ...]:
        args: list[Expr] = []
        tok = self._peek()
        if tok is not None and tok.is_operator(Operator.RPAREN):
            self._advance()
            return ()
        while True:
            args.append(self._parse_assignment())
            if self._match(Operator.COMMA):
                continue
            self._expect_closing(Operator.RPAREN, opening)
            return tuple(args)

    def _parse_primary(self) -> Expr:
        tok = self._peek()
        if tok is None:
            self._error(None, expected=("NUMBER", "CONSTANT", "IDENTIFIER", "FUNCTION", "(", "|"))
        self._advance()

        if tok.kind is TokenKind.NUMBER:
            number = Number(text=tok.text)
            opening = self._match(Operator.LPAREN)
            if opening is not None:
                # Implicit multiplication: 12.3(0.7)
                inner = self._parse_assignment()
                self._expect_closing(Operator.RPAREN, opening)
                return BinaryOp(op=Operator.STAR, left=number, right=inner)
            return number

        if tok.kind is TokenKind.CONSTANT:
            return ConstantRef(constant=tok.constant)

        if tok.kind is TokenKind.FUNCTION:
            opening = self._expect(Operator.LPAREN)
            return Call(func=tok.function, args=self._parse_args(opening))

        if tok.kind is TokenKind.IDENTIFIER:
            opening = self._match(Operator.LPAREN)
            if opening is not None:
                return Call(func=tok.text, args=self._parse_args(opening))
            return Name(value=tok.text)

        if tok.is_operator(Operator.LPAREN):
            inner = self._parse_assignment()
            self._expect_closing(Operator.RPAREN, tok)
            return inner

        if tok.is_operator(Operator.PIPE):
            inner = self._parse_assignment()
            self._expect_closing(Operator.PIPE, tok)
            return Call(func=Function.ABS, args=(inner,))

        self._error(tok, expected=("NUMBER", "CONSTANT", "IDENTIFIER", "FUNCTION", "(", "|"))
        raise AssertionError("unreachable")


def parse(source: str | Sequence[Token]) -> Expr:
    """Parse a token sequence (or source text, tokenized first) into one expression."""
    tokens = tokenize(source) if isinstance(source, str) else tuple(source)
    try:
        return _Parser(tokens=tokens).parse_expression_only()
    except RecursionError:
        end = tokens[-1].end if tokens else 0
        raise ParseError(ParseErrorCode.NESTING_TOO_DEEP, 0, max(end, 1), found="EOF") from None
