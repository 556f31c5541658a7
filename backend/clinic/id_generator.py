import time
from typing import Callable, Container


def _now_ms() -> int:
    return int(time.time() * 1000)


class IdGenerator:
    """
    Issues ids shaped like ``p1718000000000``: a type prefix plus a millisecond
    timestamp. Values are strictly increasing per generator, so two creates in
    the same millisecond still get distinct ids, and ids already in use are skipped.
    """

    def __init__(self, clock: Callable[[], int] = _now_ms):
        self._clock = clock
        self._last = 0

    def next_id(self, prefix: str, taken: Container[str] = ()) -> str:
        candidate = max(self._clock(), self._last + 1)
        while f"{prefix}{candidate}" in taken:
            candidate += 1
        self._last = candidate
        return f"{prefix}{candidate}"
