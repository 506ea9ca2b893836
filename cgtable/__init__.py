"""
Exact Clebsch-Gordan coefficients for arbitrary half-integer `j1`, `j2`.

All quantum numbers are passed around as numbers of halves (`3/2` -> `3`), and
coefficients are returned as `SignedSquare`s, i.e. `sign(c) * c**2`, which is
always rational.
"""

from .exact import SignedSquare
from .halfint import format_half_integer, parse_half_integer
from .misc import (
    CGError,
    ConstructionAborted,
    InputError,
    InvariantViolation,
)
from .multi import Decomposition, TableCache, decompose
from .spin import Spin, SpinProj, SpinTotal
from .table import Table, build_table

__version__ = "0.1.0"
