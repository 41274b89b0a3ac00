"""Arbitrary-precision fixed-point decimal backend.

A value is stored as two digit lists split at the radix point:
``integer_digits`` least-significant digit first and ``fraction_digits``
most-significant digit first. Both lists are trimmed of non-semantic zeros
after construction and after every in-place operation, so zero is two empty
lists. Addition of like-signed values is done digit by digit with carries;
the remaining operations work on scaled Python integers.
"""

from __future__ import annotations

import math
import os
from functools import total_ordering
from typing import ClassVar, Final, Iterable

from .errors import InterpretError, InterpretErrorCode
from .lexer import Constant

DEFAULT_PRECISION: Final[int] = max(1, int(os.environ.get("CALC_JAX_DECIMAL_PRECISION", "32")))

_DIGIT_MASK: Final[int] = 0b1111

# Integer <-> digit conversion works in chunks of this many digits so it never
# goes through ``str(int)``, which is length-limited on current interpreters.
_CHUNK_DIGITS: Final[int] = 18
_CHUNK: Final[int] = 10**_CHUNK_DIGITS

_PI_DIGITS: Final[str] = "3.14159265358979323846264338327950288419716939937510582097494459230781640628"
_E_DIGITS: Final[str] = "2.71828182845904523536028747135266249775724709369995957496696762772407663035"


def _int_to_digits(value: int) -> list[int]:
    """Digits of non-negative ``value``, least significant first, without leading zeros."""
    digits: list[int] = []
    while value:
        value, chunk = divmod(value, _CHUNK)
        for _ in range(_CHUNK_DIGITS):
            chunk, digit = divmod(chunk, 10)
            digits.append(digit)
    while digits and digits[-1] == 0:
        digits.pop()
    return digits


def _digits_to_int(digits: Iterable[int]) -> int:
    """Horner accumulation over most-significant-first ``digits``."""
    value = 0
    chunk = 0
    count = 0
    for digit in digits:
        chunk = chunk * 10 + digit
        count += 1
        if count == _CHUNK_DIGITS:
            value = value * _CHUNK + chunk
            chunk = 0
            count = 0
    return value * 10**count + chunk


def _unsupported(operation: str) -> InterpretError:
    return InterpretError(
        InterpretErrorCode.UNSUPPORTED_OPERATION,
        name=operation,
        detail=f"{operation} is not supported for Decimal values.",
    )


def _domain_error(operation: str, detail: str) -> InterpretError:
    return InterpretError(InterpretErrorCode.DOMAIN_ERROR, name=operation, detail=detail)


@total_ordering
class Decimal:
    precision: ClassVar[int] = DEFAULT_PRECISION

    __slots__ = ("integer_digits", "fraction_digits", "negative")

    def __init__(self, integer_digits: Iterable[int] = (), fraction_digits: Iterable[int] = (), negative: bool = False) -> None:
        self.integer_digits: list[int] = list(integer_digits)
        self.fraction_digits: list[int] = list(fraction_digits)
        self.negative = negative
        self.trim()

    # -- construction ---------------------------------------------------

    @classmethod
    def parse(cls, text: str) -> "Decimal":
        """Parse the canonical ``[-]<int>.<frac>`` form; either side may be empty."""
        negative = text.startswith("-")
        body = text[1:] if negative else text
        parts = body.split(".")
        if len(parts) != 2:
            raise ValueError(f"Decimal text must contain exactly one radix point: {text!r}")
        whole, frac = parts
        if not all(ch in "0123456789" for ch in whole + frac):
            raise ValueError(f"Decimal text contains a non-digit: {text!r}")
        return cls(
            (ord(ch) - ord("0") for ch in reversed(whole)),
            (ord(ch) - ord("0") for ch in frac),
            negative=negative,
        )

    @classmethod
    def from_literal(cls, text: str) -> "Decimal":
        return cls.parse(text if "." in text else text + ".")

    @classmethod
    def constant(cls, constant: Constant) -> "Decimal":
        digits = _PI_DIGITS if constant is Constant.PI else _E_DIGITS
        whole, frac = digits.split(".")
        return cls.parse(f"{whole}.{frac[: cls.precision]}")

    @classmethod
    def _from_scaled(cls, value: int, scale: int) -> "Decimal":
        digits = _int_to_digits(abs(value))
        if len(digits) < scale:
            digits.extend([0] * (scale - len(digits)))
        return cls(digits[scale:], reversed(digits[:scale]), negative=value < 0)

    def copy(self) -> "Decimal":
        return type(self)(self.integer_digits, self.fraction_digits, self.negative)

    # -- digit engine ---------------------------------------------------

    def trim(self) -> None:
        while self.integer_digits and self.integer_digits[-1] == 0:
            self.integer_digits.pop()
        while self.fraction_digits and self.fraction_digits[-1] == 0:
            self.fraction_digits.pop()
        if self.is_zero():
            self.negative = False

    def add_integer_part(self, other: list[int]) -> None:
        """Add little-endian ``other`` into the integer digits, carrying upward."""
        digits = self.integer_digits
        carry = 0
        i = 0
        while i < len(other) or carry:
            total = carry
            if i < len(other):
                total += other[i]
            if i < len(digits):
                total += digits[i]
            carry, digit = divmod(total, 10)
            if i < len(digits):
                digits[i] = digit & _DIGIT_MASK
            else:
                digits.append(digit & _DIGIT_MASK)
            i += 1
        self.trim()

    def add_fraction_part(self, other: list[int]) -> None:
        """Add most-significant-first ``other`` into the fraction digits.

        A carry out of the first fractional digit is added into the integer part.
        """
        digits = self.fraction_digits
        if len(other) > len(digits):
            digits.extend([0] * (len(other) - len(digits)))
        carry = 0
        for i in range(len(digits) - 1, -1, -1):
            total = digits[i] + carry
            if i < len(other):
                total += other[i]
            carry, digit = divmod(total, 10)
            digits[i] = digit & _DIGIT_MASK
        if carry:
            self.add_integer_part([carry])
        self.trim()

    def is_zero(self) -> bool:
        return not self.integer_digits and not self.fraction_digits

    def is_integer(self) -> bool:
        return not self.fraction_digits

    def _scaled(self, scale: int | None = None) -> tuple[int, int]:
        """Return ``(value, scale)`` with ``self == value / 10**scale``."""
        if scale is None:
            scale = len(self.fraction_digits)
        value = _digits_to_int(reversed(self.integer_digits))
        value = _digits_to_int(self.fraction_digits) + value * 10 ** len(self.fraction_digits)
        value *= 10 ** (scale - len(self.fraction_digits))
        return (-value if self.negative else value), scale

    def _aligned(self, other: "Decimal") -> tuple[int, int, int]:
        scale = max(len(self.fraction_digits), len(other.fraction_digits))
        left, _ = self._scaled(scale)
        right, _ = other._scaled(scale)
        return left, right, scale

    # -- arithmetic -----------------------------------------------------

    def __add__(self, other: "Decimal") -> "Decimal":
        if not isinstance(other, Decimal):
            return NotImplemented
        if self.negative == other.negative:
            result = self.copy()
            result.add_integer_part(other.integer_digits)
            result.add_fraction_part(other.fraction_digits)
            return result
        left, right, scale = self._aligned(other)
        return self._from_scaled(left + right, scale)

    def __sub__(self, other: "Decimal") -> "Decimal":
        if not isinstance(other, Decimal):
            return NotImplemented
        return self + (-other)

    def __mul__(self, other: "Decimal") -> "Decimal":
        if not isinstance(other, Decimal):
            return NotImplemented
        left, left_scale = self._scaled()
        right, right_scale = other._scaled()
        return self._from_scaled(left * right, left_scale + right_scale)

    def __truediv__(self, other: "Decimal") -> "Decimal":
        """Quotient truncated toward zero at ``precision`` fractional digits."""
        if not isinstance(other, Decimal):
            return NotImplemented
        if other.is_zero():
            raise InterpretError(InterpretErrorCode.DIVISION_BY_ZERO, name="/", detail="Division by zero.")
        left, left_scale = self._scaled()
        right, right_scale = other._scaled()
        numerator = abs(left) * 10 ** (self.precision + right_scale)
        denominator = abs(right) * 10**left_scale
        quotient = numerator // denominator
        if (left < 0) != (right < 0):
            quotient = -quotient
        return self._from_scaled(quotient, self.precision)

    def __mod__(self, other: "Decimal") -> "Decimal":
        """Truncated remainder; the result takes the sign of the dividend."""
        if not isinstance(other, Decimal):
            return NotImplemented
        if other.is_zero():
            raise InterpretError(InterpretErrorCode.DIVISION_BY_ZERO, name="%", detail="Modulo by zero.")
        left, right, scale = self._aligned(other)
        remainder = abs(left) % abs(right)
        return self._from_scaled(-remainder if left < 0 else remainder, scale)

    def __pow__(self, other: "Decimal") -> "Decimal":
        if not isinstance(other, Decimal):
            return NotImplemented
        if not other.is_integer():
            raise _unsupported("Fractional exponentiation")
        exponent, _ = other._scaled()
        base, scale = self._scaled()
        if exponent >= 0:
            return self._from_scaled(base**exponent, scale * exponent)
        if self.is_zero():
            raise InterpretError(InterpretErrorCode.DIVISION_BY_ZERO, name="^", detail="Zero raised to a negative power.")
        one = type(self)([1])
        return one / self._from_scaled(base**-exponent, scale * -exponent)

    def __neg__(self) -> "Decimal":
        result = self.copy()
        result.negative = not self.negative
        result.trim()
        return result

    def __abs__(self) -> "Decimal":
        result = self.copy()
        result.negative = False
        return result

    def sqrt(self) -> "Decimal":
        """Square root truncated at ``precision`` fractional digits."""
        if self.negative:
            raise _domain_error("sqrt", "Square root of a negative Decimal.")
        value, scale = self._scaled()
        shift = 2 * self.precision - scale
        if shift >= 0:
            radicand = value * 10**shift
        else:
            radicand = value // 10**-shift
        return self._from_scaled(math.isqrt(radicand), self.precision)

    def sin(self) -> "Decimal":
        raise _unsupported("sin")

    def cos(self) -> "Decimal":
        raise _unsupported("cos")

    def tan(self) -> "Decimal":
        raise _unsupported("tan")

    def log10(self) -> "Decimal":
        raise _unsupported("log")

    def factorial(self) -> "Decimal":
        if self.negative or not self.is_integer():
            raise _domain_error("!", "Factorial is only defined for non-negative whole Decimals.")
        value, _ = self._scaled()
        return self._from_scaled(math.factorial(value), 0)

    # -- comparison and display -----------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Decimal):
            return NotImplemented
        return (self.negative, self.integer_digits, self.fraction_digits) == (
            other.negative,
            other.integer_digits,
            other.fraction_digits,
        )

    def __lt__(self, other: "Decimal") -> bool:
        if not isinstance(other, Decimal):
            return NotImplemented
        left, right, _ = self._aligned(other)
        return left < right

    __hash__ = None  # type: ignore[assignment]

    def __float__(self) -> float:
        return float(str(self))

    def __str__(self) -> str:
        whole = "".join(str(d) for d in reversed(self.integer_digits)) or "0"
        frac = "".join(str(d) for d in self.fraction_digits) or "0"
        sign = "-" if self.negative else ""
        return f"{sign}{whole}.{frac}"

    def __repr__(self) -> str:
        return f"Decimal({str(self)!r})"
