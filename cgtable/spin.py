from fractions import Fraction
from math import factorial
from typing import Generator, Self
from .exact import SignedSquare
from .halfint import format_half_integer, parse_half_integer
from .misc import InputError

class SpinProj:
    """
    A single spin-projection quantum number.

    Data is stored internally as the number of half-units of hbar.
    """
    m: int

    def __init__(self, halves: int):
        self.m = halves

    def __eq__(self, other: Self) -> bool:
        return self.m == other.m

    def __lt__(self, other: Self) -> bool:
        return self.m < other.m

    def __hash__(self) -> int:
        return hash(self.m)

    def __str__(self) -> str:
        return format_half_integer(self.m)

    def refl(self) -> Self:
        """
        Flip the sign of the projection number.
        """
        return SpinProj(-self.m)

    def halves(self) -> int:
        return self.m

class SpinTotal:
    """
    A single total-spin quantum number.

    Data is stored internally as the number of half-units of hbar.
    """
    j: int

    def __init__(self, halves: int):
        if halves < 0:
            raise InputError("j", format_half_integer(halves), "must be >= 0")
        self.j = halves

    def __eq__(self, other: Self) -> bool:
        return self.j == other.j

    def __lt__(self, other: Self) -> bool:
        return self.j < other.j

    def __hash__(self) -> int:
        return hash(self.j)

    def __str__(self) -> str:
        return format_half_integer(self.j)

    @staticmethod
    def parse(s: str) -> Self:
        return SpinTotal(parse_half_integer(s))

    def halves(self) -> int:
        return self.j

    def projections(self) -> Generator[SpinProj, None, None]:
        """
        Yield every allowed projection, starting from the most positive.
        """
        for m in range(self.j, -self.j - 1, -2):
            yield SpinProj(m)

class Spin:
    """
    A `(total, projection)` spin quantum number pair.
    """
    tot: SpinTotal
    proj: SpinProj

    def __init__(self, tot: SpinTotal, proj: SpinProj):
        """
        Raises `InputError` if the projection number exceeds the total in
        magnitude or if the two have non-equal parity.
        """
        if abs(proj.m) > tot.j or (proj.m - tot.j) % 2 != 0:
            raise InputError(
                "m", str(proj),
                f"must not exceed j={tot} in magnitude and must have equal"
                " parity"
            )
        self.tot = tot
        self.proj = proj

    def __eq__(self, other: Self) -> bool:
        return self.tot == other.tot and self.proj == other.proj

    def __hash__(self) -> int:
        return hash((self.tot.j, self.proj.m))

    def __str__(self) -> str:
        return f"|{self.tot},{self.proj}>"

    @staticmethod
    def from_halves(tot: int, proj: int) -> Self:
        return Spin(SpinTotal(tot), SpinProj(proj))

    @staticmethod
    def parse(s: str) -> Self:
        """
        Parse `"j,m"` with both numbers in the `<int>` or `<int>/2` grammar.
        """
        parts = s.split(",")
        if len(parts) != 2:
            raise InputError("state", s, "expected j,m")
        return Spin.from_halves(
            SpinTotal.parse(parts[0]).halves(), parse_half_integer(parts[1]))

    def halves(self) -> (int, int):
        """
        Return the `(total, projection)` numbers as bare numbers of halves.
        """
        return (self.tot.j, self.proj.m)

    def refl(self) -> Self:
        return Spin(self.tot, self.proj.refl())

def _triangle(j1: int, j2: int, j12: int) -> bool:
    return (
        abs(j1 - j2) <= j12 <= j1 + j2
        and (j1 + j2 + j12) % 2 == 0
    )

def cg_signed_square(jm1: Spin, jm2: Spin, jm12: Spin) -> SignedSquare:
    """
    Compute the signed square of `<jm1, jm2 | jm12>` directly from Racah's
    closed-form sum. Independent of the table recursion; used to check it.
    """
    (j1, m1) = jm1.halves()
    (j2, m2) = jm2.halves()
    (j12, m12) = jm12.halves()
    if m1 + m2 != m12 or not _triangle(j1, j2, j12):
        return SignedSquare.zero()
    kmin = max(0, -(j12 - j2 + m1) // 2, -(j12 - j1 - m2) // 2)
    kmax = min((j1 + j2 - j12) // 2, (j1 - m1) // 2, (j2 + m2) // 2)
    if kmax < kmin:
        return SignedSquare.zero()

    def summand(k: int) -> Fraction:
        return Fraction(
            (-1) ** k,
            factorial(k)
            * factorial((j1 + j2 - j12) // 2 - k)
            * factorial((j1 - m1) // 2 - k)
            * factorial((j2 + m2) // 2 - k)
            * factorial((j12 - j2 + m1) // 2 + k)
            * factorial((j12 - j1 - m2) // 2 + k)
        )

    s = sum((summand(k) for k in range(kmin, kmax + 1)), Fraction(0))
    prefactor = Fraction(
        (j12 + 1)
        * factorial((j12 + j1 - j2) // 2)
        * factorial((j12 - j1 + j2) // 2)
        * factorial((j1 + j2 - j12) // 2)
        * factorial((j12 + m12) // 2)
        * factorial((j12 - m12) // 2)
        * factorial((j1 - m1) // 2)
        * factorial((j1 + m1) // 2)
        * factorial((j2 - m2) // 2)
        * factorial((j2 + m2) // 2),
        factorial((j1 + j2 + j12) // 2 + 1),
    )
    return SignedSquare(prefactor * s * abs(s))

def cg(jm1: Spin, jm2: Spin, jm12: Spin) -> float:
    """
    Compute the Clebsch-Gordan coefficient `<jm1, jm2 | jm12>`.
    """
    return cg_signed_square(jm1, jm2, jm12).value()
