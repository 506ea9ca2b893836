"""Tests for table construction and queries."""

from __future__ import annotations

from fractions import Fraction
from functools import lru_cache

import numpy as np
import pytest

from cgtable.column import Column
from cgtable.exact import SignedSquare
from cgtable.misc import InputError, InvariantViolation
from cgtable.spin import Spin, cg_signed_square
from cgtable.table import Table, build_table

PAIRS = [(a, b) for a in range(1, 7) for b in range(1, a + 1)]


@lru_cache(maxsize=None)
def _table(twoj1: int, twoj2: int) -> Table:
    return build_table(twoj1, twoj2)


def _projections(twoj: int):
    return range(twoj, -twoj - 1, -2)


def test_half_half_triplet():
    """|1,0> = (|+-> + |-+>) / sqrt(2)."""
    t = _table(1, 1)
    assert t.query(2, 0, 1, -1) == SignedSquare(Fraction(1, 2))
    assert t.query(2, 0, -1, 1) == SignedSquare(Fraction(1, 2))
    assert t.query(2, 2, 1, 1) == SignedSquare.one()
    assert t.query(2, -2, -1, -1) == SignedSquare.one()


def test_half_half_singlet():
    """|0,0> = (|+-> - |-+>) / sqrt(2)."""
    t = _table(1, 1)
    assert t.query(0, 0, 1, -1) == SignedSquare(Fraction(1, 2))
    assert t.query(0, 0, -1, 1) == SignedSquare(Fraction(-1, 2))


def test_one_half_stretched_state():
    """<1,1; 1/2,1/2 | 3/2,3/2> = 1."""
    t = _table(2, 1)
    assert t.query(3, 3, 2, 1) == SignedSquare.one()


def test_one_half_known_values():
    """Textbook values for 1 (x) 1/2."""
    t = _table(2, 1)
    assert t.query(3, 1, 2, -1) == SignedSquare(Fraction(1, 3))
    assert t.query(3, 1, 0, 1) == SignedSquare(Fraction(2, 3))
    assert t.query(1, 1, 2, -1) == SignedSquare(Fraction(2, 3))
    assert t.query(1, 1, 0, 1) == SignedSquare(Fraction(-1, 3))


@pytest.mark.parametrize("twoj1, twoj2", [(0, 1), (1, 0), (-1, 2), (2, -3)])
def test_non_positive_rejected(twoj1, twoj2):
    """Both angular momenta must be positive."""
    with pytest.raises(InputError):
        build_table(twoj1, twoj2)


@pytest.mark.parametrize("bad", [1.5, "3", True, None])
def test_non_integer_rejected(bad):
    with pytest.raises(InputError):
        build_table(bad, 1)


def test_input_error_is_not_invariant_violation():
    """The two failure kinds are distinguishable."""
    assert not issubclass(InputError, InvariantViolation)
    assert not issubclass(InvariantViolation, InputError)


def test_column_layout():
    """Columns hold the non-negative m rows for each j."""
    t = _table(3, 2)
    assert t.j_values() == [5, 3, 1]
    assert [len(col.cells) for col in t.columns] == [3, 2, 1]
    assert t.columns[2].cells[0].max_m1 == 3
    assert len(t.columns[2].cells[0]) == 3


@pytest.mark.parametrize("twoj1, twoj2", PAIRS)
def test_unitarity_exact(twoj1, twoj2):
    """Squares over m1 sum to exactly one for every (j, m)."""
    t = _table(twoj1, twoj2)
    for twoj in t.j_values():
        for twom in _projections(twoj):
            total = sum(
                (
                    t.query(twoj, twom, m1, twom - m1).squared()
                    for m1 in _projections(twoj1)
                ),
                Fraction(0),
            )
            assert total == 1, (twoj, twom)


@pytest.mark.parametrize("twoj1, twoj2", PAIRS)
def test_orthogonality(twoj1, twoj2):
    """Each fixed-m block is an orthogonal matrix."""
    t = _table(twoj1, twoj2)
    for twom in _projections(twoj1 + twoj2):
        U = t.block(twom)
        assert U.shape[0] == U.shape[1]
        assert np.allclose(U.T @ U, np.eye(U.shape[1]), atol=1e-12)
        assert np.allclose(U @ U.T, np.eye(U.shape[0]), atol=1e-12)


@pytest.mark.parametrize("twoj1, twoj2", PAIRS)
def test_matches_racah_formula(twoj1, twoj2):
    """Every stored coefficient agrees exactly with the closed form."""
    t = _table(twoj1, twoj2)
    for twoj in t.j_values():
        for twom in _projections(twoj):
            for m1 in _projections(twoj1):
                m2 = twom - m1
                if abs(m2) > twoj2:
                    continue
                expected = cg_signed_square(
                    Spin.from_halves(twoj1, m1),
                    Spin.from_halves(twoj2, m2),
                    Spin.from_halves(twoj, twom),
                )
                assert t.query(twoj, twom, m1, m2) == expected


@pytest.mark.parametrize("twoj1, twoj2", [(1, 2), (2, 5), (3, 4), (1, 6)])
def test_exchanged_construction_matches_racah(twoj1, twoj2):
    """A table built with j1 < j2 answers in the caller's order."""
    t = _table(twoj1, twoj2)
    assert t.exchanged
    for twoj in t.j_values():
        for twom in _projections(twoj):
            for m1 in _projections(twoj1):
                m2 = twom - m1
                if abs(m2) > twoj2:
                    continue
                expected = cg_signed_square(
                    Spin.from_halves(twoj1, m1),
                    Spin.from_halves(twoj2, m2),
                    Spin.from_halves(twoj, twom),
                )
                assert t.query(twoj, twom, m1, m2) == expected


@pytest.mark.parametrize("twoj1, twoj2", PAIRS + [(2, 5), (1, 4)])
def test_reflection_symmetry(twoj1, twoj2):
    """<j1,-m1; j2,-m2 | j,-m> = (-1)^(j1+j2-j) <j1,m1; j2,m2 | j,m>."""
    t = _table(twoj1, twoj2)
    for twoj in t.j_values():
        phase = -1 if ((twoj1 + twoj2 - twoj) // 2) % 2 else 1
        for twom in _projections(twoj):
            for m1 in _projections(twoj1):
                m2 = twom - m1
                lhs = t.query(twoj, -twom, -m1, -m2)
                rhs = t.query(twoj, twom, m1, m2)
                assert lhs == (rhs if phase > 0 else rhs.negate())


@pytest.mark.parametrize("twoj1, twoj2", PAIRS + [(2, 5), (1, 4)])
def test_exchange_symmetry(twoj1, twoj2):
    """Exchanged queries carry the (-1)^(j1+j2-j) phase."""
    t = _table(twoj1, twoj2)
    for twoj in t.j_values():
        phase = -1 if ((twoj1 + twoj2 - twoj) // 2) % 2 else 1
        for twom in _projections(twoj):
            for m1 in _projections(twoj1):
                m2 = twom - m1
                lhs = t.query_exchanged(twoj, twom, m1, m2)
                rhs = t.query(twoj, twom, m1, m2)
                assert lhs == (rhs if phase > 0 else rhs.negate())


@pytest.mark.parametrize("twoj1, twoj2", [(1, 2), (2, 3), (4, 1), (3, 3)])
def test_swapped_tables_agree(twoj1, twoj2):
    """build(a, b).query(m1, m2) == build(b, a).query_exchanged(m2, m1)."""
    ab = _table(twoj1, twoj2)
    ba = _table(twoj2, twoj1)
    for twoj in ab.j_values():
        for twom in _projections(twoj):
            for m1 in _projections(twoj1):
                m2 = twom - m1
                assert ab.query(twoj, twom, m1, m2) == ba.query_exchanged(
                    twoj, twom, m2, m1
                )


def test_zero_outside_domain():
    """Structurally invalid combinations give zero instead of raising."""
    t = _table(3, 2)
    zero = SignedSquare.zero()
    assert t.query(5, 7, 3, 4) == zero  # |m| > j
    assert t.query(1, 3, 3, 0) == zero  # |m| > j for j = 1/2
    assert t.query(5, 3, 5, -2) == zero  # |m1| > j1
    assert t.query(5, 3, -1, 4) == zero  # |m2| > j2
    assert t.query(5, 3, 3, 2) == zero  # m != m1 + m2
    assert t.query(7, 1, 1, 0) == zero  # j > j1 + j2
    assert t.query(4, 1, 1, 0) == zero  # wrong parity of j
    assert t.query(-1, 1, 1, 0) == zero  # j < |j1 - j2|
    assert t.query(5, 2, 2, 0) == zero  # wrong parity of m
    assert t.query_exchanged(5, 7, 3, 4) == zero


def test_cg_with_spins():
    """Spin arguments are accepted in either operand order."""
    t = _table(2, 1)
    one = Spin.from_halves(2, 0)
    half = Spin.from_halves(1, 1)
    tot = Spin.from_halves(1, 1)
    assert t.cg(one, half, tot) == SignedSquare(Fraction(-1, 3))
    assert t.cg(half, one, tot) == SignedSquare(Fraction(1, 3))
    with pytest.raises(InputError):
        t.cg(Spin.from_halves(4, 0), half, tot)


@pytest.mark.parametrize("twoj1, twoj2", [(4, 3), (5, 5), (2, 7)])
def test_deterministic_rebuild(twoj1, twoj2):
    """Repeated builds, with any worker count, give identical exact values."""
    tables = [build_table(twoj1, twoj2, w) for w in (None, 1, 2, None)]
    ref = [[cell.c for cell in col.cells] for col in tables[0].columns]
    for t in tables[1:]:
        assert [[cell.c for cell in col.cells] for col in t.columns] == ref


def test_every_cell_filled():
    """No cell entry is left unset after construction."""
    t = build_table(7, 5)
    for col in t.columns:
        for cell in col.cells:
            assert all(isinstance(v, SignedSquare) for v in cell.c)


@pytest.mark.parametrize("max_workers", [None, 1, 2])
def test_failure_propagates_without_hanging(monkeypatch, max_workers):
    """An invariant violation in one column aborts the whole build."""
    original = Column.compute_top

    def failing_top(self):
        if self.dj == 1:
            raise InvariantViolation("injected")
        original(self)

    monkeypatch.setattr(Column, "compute_top", failing_top)
    with pytest.raises(InvariantViolation, match="injected"):
        build_table(5, 4, max_workers)


def test_sections_layout():
    """Sections run from m = j1 + j2 down to -(j1 + j2) without repeating 0."""
    t = _table(1, 1)
    sections = t.sections()
    assert [s.m for s in sections] == [2, 0, -2]
    assert [len(s.rows) for s in sections] == [1, 2, 1]
    mid = sections[1]
    assert [(r.m1, r.m2) for r in mid.rows] == [(1, -1), (-1, 1)]
    assert mid.rows[1].values == [SignedSquare(Fraction(1, 2)), SignedSquare(Fraction(-1, 2))]


def test_sections_mirror_phase():
    """Mirrored sections flip the sign of odd-dj columns."""
    t = _table(2, 1)
    sections = t.sections()
    assert [s.m for s in sections] == [3, 1, -1, -3]
    assert [s.print_heading for s in sections] == [True, True, False, False]
    for s in sections:
        for r in s.rows:
            for dj, v in enumerate(r.values):
                twoj = t.j_values()[dj]
                assert v == t.query(twoj, s.m, r.m1, r.m2)
