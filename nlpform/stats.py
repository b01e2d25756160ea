"""Evaluation counters and timers kept by every formulation."""

from __future__ import annotations

import time
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, Iterator


class RunStats:
    """
    Number of calls and accumulated wall time per evaluation operation.

    Example
    -------
    >>> stats = RunStats()
    >>> with stats.timed("eval_f"):
    ...     pass
    >>> stats.count("eval_f")
    1
    """

    def __init__(self) -> None:
        self._counts: Dict[str, int] = defaultdict(int)
        self._times: Dict[str, float] = defaultdict(float)

    @contextmanager
    def timed(self, name: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self._counts[name] += 1
            self._times[name] += time.perf_counter() - start

    def count(self, name: str) -> int:
        return self._counts.get(name, 0)

    def time(self, name: str) -> float:
        return self._times.get(name, 0.0)

    @property
    def total_time(self) -> float:
        return float(sum(self._times.values()))

    def reset(self) -> None:
        self._counts.clear()
        self._times.clear()

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            name: {"count": self._counts[name], "time": self._times[name]}
            for name in sorted(self._counts)
        }

    def __str__(self) -> str:
        lines = ["Evaluation statistics"]
        for name, entry in self.to_dict().items():
            lines.append(f"  {name:<16s} {entry['count']:>8d} calls  {entry['time']:.3e} s")
        return "\n".join(lines)


__all__ = ["RunStats"]
