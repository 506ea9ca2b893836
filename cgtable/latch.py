from __future__ import annotations
import threading
from .misc import ConstructionAborted

class CountdownLatch:
    """
    Blocks waiters until `count_down` has been called `count` times, or until
    the latch is aborted.
    """
    def __init__(self, count: int):
        if count < 0:
            raise ValueError("latch count must be non-negative")
        self._count = count
        self._aborted = None
        self._cond = threading.Condition()

    @property
    def count(self) -> int:
        with self._cond:
            return self._count

    def count_down(self) -> None:
        with self._cond:
            if self._count > 0:
                self._count -= 1
                if self._count == 0:
                    self._cond.notify_all()

    def abort(self, reason: BaseException) -> None:
        """
        Wake every waiter with `ConstructionAborted` unless the count has
        already reached zero.
        """
        with self._cond:
            if self._aborted is None:
                self._aborted = reason
            self._cond.notify_all()

    def wait(self) -> None:
        with self._cond:
            self._cond.wait_for(
                lambda: self._count == 0 or self._aborted is not None)
            if self._count != 0:
                raise ConstructionAborted(
                    f"aborted with {self._count} dependencies outstanding"
                ) from self._aborted
