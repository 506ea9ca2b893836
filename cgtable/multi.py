"""
Decomposition of a product of several angular-momentum eigenstates
`|j1,m1> (x) |j2,m2> (x) ... (x) |jk,mk>` into total angular-momentum
eigenstates, coupling left to right.

Each intermediate coupling needs the table for one `(j_a, j_b)` pair; tables are
taken from an explicit `TableCache` that the caller may share between calls.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from fractions import Fraction
import logging
from typing import Optional
from .exact import SignedSquare
from .halfint import half_integer_latex, jm_latex
from .misc import InputError
from .spin import Spin
from .table import Table

logger = logging.getLogger(__name__)

class TableCache:
    """
    Tables keyed by `(twoj_max, twoj_min)`, built on first use and kept for the
    lifetime of the cache.
    """
    def __init__(self, max_workers: Optional[int]=None):
        self.max_workers = max_workers
        self.tables: dict[(int, int), Table] = dict()

    def __len__(self) -> int:
        return len(self.tables)

    def __contains__(self, key: (int, int)) -> bool:
        return key in self.tables

    def get(self, twoj_max: int, twoj_min: int) -> Table:
        key = (twoj_max, twoj_min)
        table = self.tables.get(key)
        if table is None:
            logger.debug("table cache miss for %s", key)
            table = Table(twoj_max, twoj_min, self.max_workers)
            self.tables[key] = table
        else:
            logger.debug("table cache hit for %s", key)
        return table

@dataclass
class State:
    """
    `sqrt(|c|) |j,m>` with sign `sign(c)`, inside the irreducible subspace
    reached through the intermediate totals in `path`.
    """
    c: SignedSquare
    twoj: int
    twom: int
    path: tuple[int, ...]

    def latex(self) -> str:
        s = self.c.s
        sign = "-" if s < 0 else ""
        return (
            f"{sign}\\sqrt{{\\frac{{{abs(s.numerator)}}}{{{s.denominator}}}}}"
            + jm_latex(self.twoj, self.twom)
        )

@dataclass
class Decomposition:
    input_states: list[Spin]
    expanded_states: list[State]
    subspace_paths: list[tuple[int, ...]]
    subspace_index: dict[tuple[int, ...], int] = field(default_factory=dict)

    def total_weight(self) -> Fraction:
        """
        Sum of squared expansion coefficients; exactly 1 for a normalized input.
        """
        return sum((st.c.squared() for st in self.expanded_states), Fraction(0))

    def lookup_subspace_index(self, path: tuple[int, ...]) -> int:
        try:
            return self.subspace_index[path]
        except KeyError:
            raise KeyError(f"unknown subspace path {path}") from None

    def latex(self) -> str:
        """
        LaTeX `align` body summarizing the subspaces and the expansion.
        """
        out = "\\mbox{irreducible subspace compositions} & &"
        for i, path in enumerate(self.subspace_paths):
            sep = "" if i == 0 else "\\qquad "
            amp = "&" if i == 0 else ""
            out += f"{sep}{i}{amp}:{_path_latex(path)}"
        out += "\\\\\n"

        out += "\\mbox{irreducible subspace dimensions} & &"
        out += "\\otimes ".join(str(st.tot.j + 1) for st in self.input_states)
        out += " &= "
        out += "\\oplus ".join(
            f"{path[-1] + 1}_{{{self.lookup_subspace_index(path)}}}"
            for path in self.subspace_paths
        )
        out += "\\\\\n"

        out += "\\mbox{irreducible subspace total angular momenta} & &"
        out += "\\otimes ".join(
            half_integer_latex(st.tot.j) for st in self.input_states)
        out += " &= "
        terms = list()
        for path in self.subspace_paths:
            idx = self.lookup_subspace_index(path)
            if path[-1] % 2 != 0:
                terms.append(
                    f"\\left({half_integer_latex(path[-1])}\\right)_{{{idx}}}")
            else:
                terms.append(f"{path[-1] // 2}_{{{idx}}}")
        out += "\\oplus ".join(terms)
        out += "\\\\\n"

        out += "\\mbox{expansion in total angular momenta basis} & &"
        out += "\\otimes ".join(
            jm_latex(*st.halves()) for st in self.input_states)
        out += " &= "
        if len(self.expanded_states) == 0:
            out += "0"
        else:
            for i, st in enumerate(self.expanded_states):
                term = (
                    f"{st.latex()}_{{{self.lookup_subspace_index(st.path)}}}")
                if i != 0 and not term.startswith("-"):
                    out += "+"
                out += term
        out += "\\\\\n"
        return out

def _path_latex(path: tuple[int, ...]) -> str:
    return (
        "\\left["
        + ",".join(half_integer_latex(p) for p in path)
        + "\\right]"
    )

def parse_states(s: str) -> list[Spin]:
    """
    Parse `"j1,m1;j2,m2[;...;jk,mk]"`.
    """
    parts = s.split(";")
    if len(parts) <= 1:
        raise InputError(
            "states", s, "input must be in the format j1,m1;j2,m2[;...;jk,mk]")
    return [Spin.parse(part) for part in parts]

def subspace_paths(twojs: list[int]) -> list[tuple[int, ...]]:
    """
    Every chain of intermediate totals `[j1, J12, J123, ...]` reachable by
    coupling `twojs` left to right, ordered by comparing from the last element
    backwards.
    """
    queue = [(twojs[0],)]
    for twoj2 in twojs[1:]:
        queue = [
            prefix + (twoj,)
            for prefix in queue
            for twoj in range(abs(prefix[-1] - twoj2), prefix[-1] + twoj2 + 1, 2)
        ]
    return sorted(queue, key=lambda path: tuple(reversed(path)))

def decompose(states: list[Spin] | str, cache: Optional[TableCache]=None) \
    -> Decomposition:
    """
    Expand the tensor product of `states` in the total angular-momentum basis.

    Parameters
    ----------
    states : list[Spin] | str
        At least two states, or their text form (see `parse_states`).
    cache : TableCache (optional)
        Tables to reuse and to add to. A fresh cache is used if omitted.

    Returns
    -------
    decomp : Decomposition
    """
    if isinstance(states, str):
        states = parse_states(states)
    if len(states) < 2:
        raise InputError("states", [str(st) for st in states], "need at least two")
    cache = TableCache() if cache is None else cache

    paths = subspace_paths([st.tot.j for st in states])
    index = {path: i for i, path in enumerate(paths)}

    first = states[0]
    head = [State(SignedSquare.one(), first.tot.j, first.proj.m, (first.tot.j,))]
    for st2 in states[1:]:
        (j2, m2) = st2.halves()
        expanded = list()
        for st1 in head:
            exchanged = st1.twoj < j2
            jmax, jmin = (j2, st1.twoj) if exchanged else (st1.twoj, j2)
            twom = st1.twom + m2
            if jmin == 0:
                expanded.append(State(st1.c, jmax, twom, st1.path + (jmax,)))
                continue
            table = cache.get(jmax, jmin)
            for twoj in range(jmax - jmin, jmax + jmin + 1, 2):
                if exchanged:
                    c = table.query_exchanged(twoj, twom, m2, st1.twom)
                else:
                    c = table.query(twoj, twom, st1.twom, m2)
                if not c.is_zero():
                    expanded.append(
                        State(st1.c.mul(c), twoj, twom, st1.path + (twoj,)))
        head = expanded

    return Decomposition(
        input_states=list(states),
        expanded_states=head,
        subspace_paths=paths,
        subspace_index=index,
    )
