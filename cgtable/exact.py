"""
Exact arithmetic on signed squares.

Clebsch-Gordan coefficients are in general square roots of rationals, but the
squares themselves are always rational. A coefficient `c` is therefore held as
the single rational `s = sign(c) * c**2`, and sums of coefficients are formed
directly on that encoding by `combine`, which stays exact as long as the cross
term `2 |x| |y|` is rational.
"""

from __future__ import annotations
from fractions import Fraction
from math import isqrt, sqrt
from typing import Optional, Self
from .misc import InvariantViolation

def rational_sqrt(q: Fraction) -> Optional[Fraction]:
    """
    Return the exact square root of the non-negative rational `q`, or `None` if
    it is not the square of a rational.
    """
    if q < 0:
        return None
    # Fractions are kept in lowest terms, so both parts must be squares.
    num_root = isqrt(q.numerator)
    if num_root * num_root != q.numerator:
        return None
    den_root = isqrt(q.denominator)
    if den_root * den_root != q.denominator:
        return None
    return Fraction(num_root, den_root)

class SignedSquare:
    """
    A possibly irrational real number `x` stored exactly as the rational
    `sign(x) * x**2`.
    """
    s: Fraction

    __slots__ = ("s",)

    def __init__(self, s: Fraction | int = 0):
        object.__setattr__(self, "s", Fraction(s))

    def __setattr__(self, name, value):
        raise AttributeError("SignedSquare is immutable")

    @staticmethod
    def from_rational(sign: int, magnitude_squared: Fraction | int) -> Self:
        """
        Create the encoding of `sign * sqrt(magnitude_squared)`.
        """
        magnitude_squared = Fraction(magnitude_squared)
        if magnitude_squared < 0:
            raise InvariantViolation(
                f"negative squared magnitude {magnitude_squared}")
        if sign < 0:
            return SignedSquare(-magnitude_squared)
        elif sign > 0:
            return SignedSquare(magnitude_squared)
        else:
            return SignedSquare.zero()

    @staticmethod
    def zero() -> Self:
        return SignedSquare(0)

    @staticmethod
    def one() -> Self:
        return SignedSquare(1)

    def sign(self) -> int:
        return (self.s > 0) - (self.s < 0)

    def squared(self) -> Fraction:
        """
        Return `x**2`.
        """
        return abs(self.s)

    def is_zero(self) -> bool:
        return self.s == 0

    def negate(self) -> Self:
        return SignedSquare(-self.s)

    def __neg__(self) -> Self:
        return self.negate()

    def scale_by_squared_factor(self, k2: Fraction | int) -> Self:
        """
        Multiply the underlying value by `sqrt(k2)`, where `k2 >= 0` is given
        already squared.
        """
        if k2 < 0:
            raise InvariantViolation(f"negative squared prefactor {k2}")
        return SignedSquare(self.s * k2)

    def mul(self, other: Self) -> Self:
        """
        Product of the underlying values.
        """
        return SignedSquare(self.s * other.s)

    def div(self, other: Self) -> Self:
        """
        Quotient of the underlying values.
        """
        if other.s == 0:
            raise InvariantViolation(f"division of {self} by zero")
        return SignedSquare(self.s / other.s)

    def combine(self, other: Self) -> Self:
        """
        Sum of the underlying values, computed without leaving the rationals.

        Raises `InvariantViolation` if `|x| |y|` is not the square of a rational,
        which cannot happen for mutually consistent coefficients.
        """
        # |x| > |y| iff x**2 > y**2, so the sign of the sum follows the larger.
        overall = self.s + other.s
        if overall == 0:
            return SignedSquare.zero()
        a = abs(self.s)
        b = abs(other.s)
        cross = rational_sqrt(a * b)
        if cross is None:
            raise InvariantViolation(
                f"cross term of ({self}, {other}) is not a rational square")
        total = a + b + 2 * self.sign() * other.sign() * cross
        return SignedSquare(total if overall > 0 else -total)

    def value(self) -> float:
        """
        Floating-point approximation of the underlying value. For display and
        numerical checks only.
        """
        return self.sign() * sqrt(abs(self.s))

    def __float__(self) -> float:
        return self.value()

    def __eq__(self, other) -> bool:
        if isinstance(other, SignedSquare):
            return self.s == other.s
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("SignedSquare", self.s))

    def __repr__(self) -> str:
        return f"SignedSquare({self})"

    def __str__(self) -> str:
        if self.s == 0:
            return "0"
        return str(self.s)

def combine_all(terms) -> SignedSquare:
    """
    Fold `combine` over `terms` from left to right.
    """
    acc = SignedSquare.zero()
    for t in terms:
        acc = acc.combine(t)
    return acc
