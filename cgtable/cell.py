from __future__ import annotations
from .exact import SignedSquare

class Cell:
    """
    All coefficients `<m1, m - m1 | j, m>` for one state `|j, m>`, indexed by
    decreasing m1. Quantum numbers are held in halves.
    """
    min_m1: int
    max_m1: int
    c: list[SignedSquare]

    __slots__ = ("min_m1", "max_m1", "c")

    def __init__(self, min_m1: int, max_m1: int):
        self.min_m1 = min_m1
        self.max_m1 = max_m1
        self.c = [None] * ((max_m1 - min_m1) // 2 + 1)

    @staticmethod
    def for_state(twoj1: int, twoj2: int, twom: int) -> Cell:
        """
        Create an empty cell for total projection `twom`, with the m1 range cut
        by both -j1 <= m1 <= j1 and -j2 <= m - m1 <= j2.
        """
        return Cell(max(-twoj1, twom - twoj2), min(twoj1, twom + twoj2))

    def __len__(self) -> int:
        return len(self.c)

    def m1_for_index(self, idx: int) -> int:
        return self.max_m1 - 2 * idx

    def index_for_m1(self, twom1: int) -> int:
        return (self.max_m1 - twom1) // 2

    def is_valid_m1(self, twom1: int) -> bool:
        return (
            self.min_m1 <= twom1 <= self.max_m1
            and (self.max_m1 - twom1) % 2 == 0
        )

    def get(self, twom1: int) -> SignedSquare:
        """
        Return the coefficient for `twom1`.

        Raises `IndexError` if `twom1` is not valid for this cell.
        """
        if not self.is_valid_m1(twom1):
            raise IndexError(
                f"m1 = {twom1}/2 outside [{self.min_m1}/2, {self.max_m1}/2]")
        return self.c[self.index_for_m1(twom1)]

    def m1_values(self) -> range:
        return range(self.max_m1, self.min_m1 - 1, -2)
