"""
Inter-process distribution of primal vectors.

Each rank owns one contiguous slice of the variable index space. The slice
boundaries are described by :class:`VectorLayout`; the collective reductions
needed to aggregate per-rank counts go through a :class:`Communicator`, so
they happen explicitly and only where a caller asks for them.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, runtime_checkable

import numpy as np


@runtime_checkable
class Communicator(Protocol):
    """Message-passing collaborator used by the formulation layer."""

    @property
    def rank(self) -> int: ...

    @property
    def size(self) -> int: ...

    def allreduce_sum(self, value: Any) -> Any:
        """Blocking collective sum of ``value`` across all ranks."""
        ...


class SerialCommunicator:
    """Single-process communicator: rank 0 of 1, reductions are identities."""

    @property
    def rank(self) -> int:
        return 0

    @property
    def size(self) -> int:
        return 1

    def allreduce_sum(self, value: Any) -> Any:
        return value

    def __repr__(self) -> str:
        return "SerialCommunicator()"


class MPICommunicator:
    """
    Adapter exposing an ``mpi4py`` communicator as a :class:`Communicator`.

    Args:
        comm: An ``mpi4py.MPI.Comm``. Defaults to ``MPI.COMM_WORLD``.
    """

    def __init__(self, comm: Optional[Any] = None):
        from mpi4py import MPI

        self._mpi = MPI
        self._comm = MPI.COMM_WORLD if comm is None else comm

    @property
    def comm(self) -> Any:
        return self._comm

    @property
    def rank(self) -> int:
        return int(self._comm.Get_rank())

    @property
    def size(self) -> int:
        return int(self._comm.Get_size())

    def allreduce_sum(self, value: Any) -> Any:
        return self._comm.allreduce(value, op=self._mpi.SUM)

    def __repr__(self) -> str:
        return f"MPICommunicator(rank={self.rank}, size={self.size})"


class VectorLayout:
    """
    Contiguous block distribution of a global index space over ranks.

    ``boundaries`` holds ``num_ranks + 1`` global indices; rank ``r`` owns
    ``[boundaries[r], boundaries[r + 1])``.

    Args:
        boundaries: Strictly increasing sequence starting at 0 whose last
            entry is the global size. A single-rank layout of an empty
            space is ``[0, 0]``.
        rank: Rank whose slice is local to this process.

    Raises:
        ValueError: If the boundaries are not a valid partition or ``rank`` is
            out of range.
    """

    def __init__(self, boundaries: Sequence[int], rank: int = 0):
        bounds = np.array(boundaries, dtype=np.int64, copy=True).reshape(-1)
        if bounds.size < 2:
            raise ValueError("Layout needs at least two boundaries (one rank)")
        if bounds[0] != 0:
            raise ValueError(f"First layout boundary must be 0, got {bounds[0]}")
        steps = np.diff(bounds)
        if bounds.size == 2:
            if steps[0] < 0:
                raise ValueError("Layout boundaries must be non-decreasing")
        elif np.any(steps <= 0):
            raise ValueError("Layout boundaries must be strictly increasing")
        if not 0 <= rank < bounds.size - 1:
            raise ValueError(f"Rank {rank} outside layout with {bounds.size - 1} ranks")
        self._bounds = bounds
        self._bounds.setflags(write=False)
        self._rank = int(rank)

    @classmethod
    def serial(cls, n: int) -> "VectorLayout":
        """Layout where a single rank owns all ``n`` entries."""
        if n < 0:
            raise ValueError(f"Global size must be non-negative, got {n}")
        return cls([0, n], rank=0)

    @property
    def boundaries(self) -> np.ndarray:
        return self._bounds

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def num_ranks(self) -> int:
        return int(self._bounds.size - 1)

    @property
    def n_global(self) -> int:
        return int(self._bounds[-1])

    @property
    def start(self) -> int:
        return int(self._bounds[self._rank])

    @property
    def stop(self) -> int:
        return int(self._bounds[self._rank + 1])

    @property
    def n_local(self) -> int:
        return self.stop - self.start

    @property
    def is_distributed(self) -> bool:
        return self.num_ranks > 1

    def local_sizes(self) -> np.ndarray:
        """Number of entries owned by every rank."""
        return np.diff(self._bounds)

    def local_slice(self) -> slice:
        return slice(self.start, self.stop)

    def reduced(self, keep: np.ndarray) -> "VectorLayout":
        """
        Layout of the vector obtained by keeping the entries flagged in ``keep``.

        Only serial layouts can be reduced; a distributed reduction would need
        every rank's mask.
        """
        if self.is_distributed:
            raise ValueError("Cannot reduce a distributed layout")
        keep = np.asarray(keep, dtype=bool).reshape(-1)
        if keep.size != self.n_global:
            raise ValueError(f"Mask has length {keep.size}, layout has {self.n_global}")
        return VectorLayout.serial(int(np.count_nonzero(keep)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VectorLayout):
            return NotImplemented
        return self._rank == other._rank and np.array_equal(self._bounds, other._bounds)

    def __repr__(self) -> str:
        return f"VectorLayout(boundaries={self._bounds.tolist()}, rank={self._rank})"


__all__ = ["Communicator", "SerialCommunicator", "MPICommunicator", "VectorLayout"]
