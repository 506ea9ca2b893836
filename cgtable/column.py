"""
A column of the table: every state `|j, m>` for one total `j = j1 + j2 - dj`.

A column fills its cells in two phases. The top cell (`m = j`) is fixed by
unitarity against the cells of all smaller columns at the same `m`, after which
the lowering operator `J- = J1- + J2-` carries it down one row at a time:

                   column dj

    i       ... m1-1  m1  m1+1 ...
             |   /|   /|   /|
             |  / |  / |  / |
             | /  | /  | /  |
    i+1     ... m1-1  m1  m1+1 ...

Finishing row `i + 1` releases one dependency of column `dj + i + 1`, whose top
cell needs that row as a peer.
"""

from __future__ import annotations
from fractions import Fraction
import logging
from typing import TYPE_CHECKING
from .cell import Cell
from .exact import SignedSquare, combine_all
from .latch import CountdownLatch
from .misc import InvariantViolation

if TYPE_CHECKING:
    from .table import Table

logger = logging.getLogger(__name__)

class Column:
    table: Table
    dj: int
    twoj: int
    cells: list[Cell]
    ready: CountdownLatch

    def __init__(self, table: Table, dj: int):
        twoj1 = table.canonical_twoj1
        twoj2 = table.canonical_twoj2
        self.table = table
        self.dj = dj
        self.twoj = twoj1 + twoj2 - 2 * dj
        # Rows run from m = j down to m = 0 (or 1/2); negative m follows by
        # symmetry.
        self.cells = [
            Cell.for_state(twoj1, twoj2, self.twoj - 2 * i)
            for i in range((twoj1 + twoj2) // 2 + 1 - dj)
        ]
        # The top cell needs one row from each smaller column.
        self.ready = CountdownLatch(dj)

    def twom_for_row(self, i: int) -> int:
        return self.twoj - 2 * i

    def compute(self) -> None:
        """
        Wait for the top-cell dependencies, then fill every cell.
        """
        self.ready.wait()
        logger.debug("column dj=%d (2j=%d): seeding top cell", self.dj, self.twoj)
        self.compute_top()
        for i in range(len(self.cells) - 1):
            self.lower_row(i)
            peer = self.dj + i + 1
            if peer < len(self.table.columns):
                self.table.columns[peer].ready.count_down()
        logger.debug("column dj=%d: done", self.dj)

    def compute_top(self) -> None:
        top = self.cells[0]
        if self.dj == 0:
            top.c[0] = SignedSquare.one()
            return

        peers = [self.table.cell(dj, self.dj) for dj in range(self.dj)]

        # Normalization over j at m1 = j1; positive by the Condon-Shortley
        # convention.
        c0 = Fraction(1) - sum((p.c[0].squared() for p in peers), Fraction(0))
        if c0 <= 0:
            raise InvariantViolation(
                f"non-positive squared coefficient {c0} at top of column"
                f" dj={self.dj} (2j1={self.table.canonical_twoj1},"
                f" 2j2={self.table.canonical_twoj2})"
            )
        top.c[0] = SignedSquare.from_rational(+1, c0)

        # Orthogonality between the m1 = j1 entry and the l-th entry.
        for l in range(1, self.dj + 1):
            acc = combine_all(p.c[0].mul(p.c[l]) for p in peers)
            top.c[l] = acc.div(top.c[0]).negate()

    def lower_row(self, i: int) -> None:
        """
        Fill row `i + 1` from row `i`.
        """
        twoj1 = self.table.canonical_twoj1
        twoj2 = self.table.canonical_twoj2
        twom = self.twom_for_row(i)
        current, lower = self.cells[i], self.cells[i + 1]
        # 1 / ((j + m)(j - m + 1))
        norm = Fraction(4, (self.twoj + twom) * (self.twoj + 2 - twom))
        for l in range(len(lower)):
            twom1 = lower.m1_for_index(l)
            twom2 = twom - 2 - twom1
            acc = SignedSquare.zero()
            if current.is_valid_m1(twom1 + 2):
                # (j1 + 1 + m1)(j1 - m1)
                k2 = Fraction((twoj1 + 2 + twom1) * (twoj1 - twom1), 4)
                acc = acc.combine(
                    current.get(twom1 + 2).scale_by_squared_factor(k2))
            if current.is_valid_m1(twom1):
                # (j2 + 1 + m2)(j2 - m2)
                k2 = Fraction((twoj2 + 2 + twom2) * (twoj2 - twom2), 4)
                acc = acc.combine(current.get(twom1).scale_by_squared_factor(k2))
            lower.c[l] = acc.scale_by_squared_factor(norm)
