"""
Exact Clebsch-Gordan tables for a fixed pair `(j1, j2)`.

The table is stored with the larger of the two angular momenta first; a table
requested the other way round remembers that it was exchanged and swaps the
roles back on every query. Only rows with `m >= 0` are stored. Everything else
follows from the symmetry relations

    <j1,-m1; j2,-m2 | j,-m> = (-1)^(j1+j2-j) <j1,m1; j2,m2 | j,m>
    <j1, m1; j2, m2 | j, m> = (-1)^(j1+j2-j) <j2,m2; j1,m1 | j,m>

All quantum numbers are passed as numbers of halves, and every coefficient is
returned as a `SignedSquare`.
"""

from __future__ import annotations
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass
import logging
import timeit
from typing import Optional
import numpy as np
from .cell import Cell
from .column import Column
from .exact import SignedSquare
from .halfint import format_half_integer
from .misc import ConstructionAborted, InputError
from .spin import Spin

logger = logging.getLogger(__name__)

@dataclass
class Row:
    m1: int
    m2: int
    values: list[SignedSquare]

@dataclass
class Section:
    """
    All coefficients sharing one total `m`, with one value per `j` from the
    largest down, as laid out in a printed table.
    """
    m: int
    print_heading: bool
    rows: list[Row]

class Table:
    twoj1: int
    twoj2: int
    canonical_twoj1: int
    canonical_twoj2: int
    exchanged: bool
    columns: tuple[Column, ...]

    def __init__(self, twoj1: int, twoj2: int, max_workers: Optional[int]=None):
        """
        Compute the full table for `j1 = twoj1 / 2` and `j2 = twoj2 / 2`,
        blocking until every coefficient is known.

        Raises `InputError` unless both arguments are positive integers, and
        `InvariantViolation` if the exact algebra ever contradicts itself.
        """
        for name, v in (("twoj1", twoj1), ("twoj2", twoj2)):
            if isinstance(v, bool) or not isinstance(v, (int, np.integer)):
                raise InputError(name, v, "must be an integer")
            if v <= 0:
                raise InputError(name, v, "must be positive")
        self.twoj1 = int(twoj1)
        self.twoj2 = int(twoj2)
        self.exchanged = self.twoj1 < self.twoj2
        if self.exchanged:
            self.canonical_twoj1, self.canonical_twoj2 = self.twoj2, self.twoj1
        else:
            self.canonical_twoj1, self.canonical_twoj2 = self.twoj1, self.twoj2
        self.columns = tuple(
            Column(self, dj) for dj in range(self.canonical_twoj2 + 1))
        self._build(max_workers)

    def _build(self, max_workers: Optional[int]) -> None:
        # Columns only ever wait on smaller columns, and the executor starts
        # tasks in submission order, so any pool size is deadlock free.
        workers = len(self.columns) if not max_workers else max_workers
        logger.info(
            "computing C-G table for j1=%s, j2=%s with %d worker(s)",
            format_half_integer(self.twoj1), format_half_integer(self.twoj2),
            workers,
        )
        t0 = timeit.default_timer()
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="cg-column"
        ) as pool:
            futures = [pool.submit(col.compute) for col in self.columns]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            failed = [
                f for f in futures
                if f in done and f.exception() is not None
            ]
            if failed:
                first = failed[0].exception()
                logger.error("aborting C-G table construction: %s", first)
                for col in self.columns:
                    col.ready.abort(first)
                for f in pending:
                    f.cancel()
                wait(futures)
                errors = [
                    f.exception() for f in futures
                    if not f.cancelled() and f.exception() is not None
                ]
                real = [
                    e for e in errors if not isinstance(e, ConstructionAborted)]
                raise (real[0] if real else first)
        logger.info(
            "C-G table for j1=%s, j2=%s done in %.3f s",
            format_half_integer(self.twoj1), format_half_integer(self.twoj2),
            timeit.default_timer() - t0,
        )

    def cell(self, dj: int, dm: int) -> Cell:
        """
        Return the cell of state `|j1 + j2 - dj, j1 + j2 - dm>`.
        """
        return self.columns[dj].cells[dm - dj]

    def j_values(self) -> list[int]:
        """
        Every allowed total `j`, in halves, from largest to smallest.
        """
        return [col.twoj for col in self.columns]

    def query(self, twoj: int, twom: int, twom1: int, twom2: int) \
        -> SignedSquare:
        """
        Return `<j1,m1; j2,m2 | j,m>`, with `j1` and `j2` in the order this table
        was created with. Structurally invalid combinations give zero.
        """
        return self._query(twoj, twom, twom1, twom2, False)

    def query_exchanged(self, twoj: int, twom: int, twom1: int, twom2: int) \
        -> SignedSquare:
        """
        Return `<j2,m2; j1,m1 | j,m>`, where `m1` still belongs to the `j1` this
        table was created with.
        """
        return self._query(twoj, twom, twom1, twom2, True)

    def _query(self, twoj: int, twom: int, twom1: int, twom2: int,
            exchanged_request: bool) -> SignedSquare:
        if twom != twom1 + twom2:
            return SignedSquare.zero()
        tot = self.canonical_twoj1 + self.canonical_twoj2
        if (tot - twoj) % 2 != 0:
            return SignedSquare.zero()
        dj = (tot - twoj) // 2
        if dj < 0 or dj > self.canonical_twoj2:
            return SignedSquare.zero()
        col = self.columns[dj]
        mneg = twom < 0
        if mneg:
            twom = -twom
            twom1 = -twom1
        if self.exchanged:
            twom1 = twom - twom1
        if (tot - twom) % 2 != 0:
            return SignedSquare.zero()
        row = (tot - twom) // 2 - dj
        if row < 0 or row >= len(col.cells):
            return SignedSquare.zero()
        cell = col.cells[row]
        if not cell.is_valid_m1(twom1):
            return SignedSquare.zero()
        ret = cell.get(twom1)
        if (mneg != (self.exchanged != exchanged_request)) and dj % 2 != 0:
            ret = ret.negate()
        return ret

    def cg(self, jm1: Spin, jm2: Spin, jm12: Spin) -> SignedSquare:
        """
        Return `<jm1, jm2 | jm12>` with the operands in the order given, which
        may be either order of this table's `(j1, j2)`.
        """
        (j1, m1) = jm1.halves()
        (j2, m2) = jm2.halves()
        (j, m) = jm12.halves()
        if (j1, j2) == (self.twoj1, self.twoj2):
            return self.query(j, m, m1, m2)
        elif (j1, j2) == (self.twoj2, self.twoj1):
            return self.query_exchanged(j, m, m2, m1)
        else:
            raise InputError(
                "jm1, jm2", (str(jm1), str(jm2)),
                f"table holds j1={format_half_integer(self.twoj1)},"
                f" j2={format_half_integer(self.twoj2)}"
            )

    def block(self, twom: int) -> np.ndarray:
        """
        Floating-point matrix of coefficients for one total `m`: rows run over
        `m1` from largest to smallest, columns over `j` from largest to
        smallest. The matrix is orthogonal.
        """
        m1s = range(
            min(self.twoj1, twom + self.twoj2),
            max(-self.twoj1, twom - self.twoj2) - 1,
            -2,
        )
        js = [j for j in self.j_values() if j >= abs(twom)]
        U = np.zeros((len(m1s), len(js)), dtype=np.float64)
        for a, m1 in enumerate(m1s):
            for b, j in enumerate(js):
                U[a, b] = self.query(j, twom, m1, twom - m1).value()
        return U

    def sections(self) -> list[Section]:
        """
        Lay the table out by total `m` from `j1 + j2` down to `-(j1 + j2)`, in
        the canonical `j1 >= j2` order.
        """
        col0 = self.columns[0]
        data = [self._section(i, False) for i in range(len(col0.cells))]
        rbegin = len(col0.cells) - 1
        # m = 0 is not repeated.
        if col0.twoj % 2 == 0:
            rbegin -= 1
        data.extend(self._section(i, True) for i in range(rbegin, -1, -1))
        return data

    def _section(self, i: int, mirrored: bool) -> Section:
        col0 = self.columns[0]
        twom = col0.twom_for_row(i)
        cell = col0.cells[i]
        sign = -1 if mirrored else 1
        rows = list()
        for l in range(len(cell)):
            twom1 = cell.m1_for_index(l)
            values = list()
            for dj in range(min(i + 1, len(self.columns))):
                v = self.columns[dj].cells[i - dj].c[l]
                values.append(v.negate() if mirrored and dj % 2 != 0 else v)
            rows.append(Row(sign * twom1, sign * (twom - twom1), values))
        return Section(
            m=sign * twom,
            print_heading=(
                not mirrored
                and twom >= self.canonical_twoj1 - self.canonical_twoj2
            ),
            rows=rows,
        )

def build_table(twoj1: int, twoj2: int, max_workers: Optional[int]=None) \
    -> Table:
    """
    Build the table for `j1 = twoj1 / 2`, `j2 = twoj2 / 2`.
    """
    return Table(twoj1, twoj2, max_workers)
