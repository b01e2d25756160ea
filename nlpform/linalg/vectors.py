"""Distributed vectors: each process stores only its contiguous local slice."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..parallel import Communicator, VectorLayout


class DistributedVector:
    """
    Vector whose global index space is partitioned by a :class:`VectorLayout`.

    Only the local slice is stored. A vector allocated by a formulation carries
    the formulation's communicator, which :meth:`dot` uses for the reduction
    across ranks. Vectors on a serial layout hold every entry on each rank and
    are never reduced.
    """

    def __init__(
        self,
        layout: VectorLayout,
        data: Optional[np.ndarray] = None,
        comm: Optional[Communicator] = None,
    ):
        self._layout = layout
        self._comm = comm
        if data is None:
            self._data = np.zeros(layout.n_local, dtype=np.float64)
        else:
            data = np.ascontiguousarray(data, dtype=np.float64).reshape(-1)
            if data.size != layout.n_local:
                raise ValueError(
                    f"Local data has length {data.size}, layout expects {layout.n_local}"
                )
            self._data = data

    @classmethod
    def from_array(cls, values: np.ndarray) -> "DistributedVector":
        """Serial vector holding a copy of ``values``."""
        values = np.array(values, dtype=np.float64).reshape(-1)
        return cls(VectorLayout.serial(values.size), values)

    @property
    def layout(self) -> VectorLayout:
        return self._layout

    @property
    def comm(self) -> Optional[Communicator]:
        return self._comm

    @property
    def local_data(self) -> np.ndarray:
        return self._data

    @property
    def global_size(self) -> int:
        return self._layout.n_global

    @property
    def local_size(self) -> int:
        return self._data.size

    def set_to_constant(self, value: float) -> None:
        self._data.fill(value)

    def copy_from(self, values: np.ndarray) -> None:
        values = np.asarray(values, dtype=np.float64).reshape(-1)
        if values.size != self._data.size:
            raise ValueError(f"Cannot copy {values.size} values into local size {self._data.size}")
        self._data[:] = values

    def copy(self) -> "DistributedVector":
        return DistributedVector(self._layout, self._data.copy(), self._comm)

    def dot(self, other: "DistributedVector", comm: Optional[Communicator] = None) -> float:
        """
        Global inner product.

        On a distributed layout the local part is summed across ranks by
        ``comm``, or by the communicator the vector was created with; having
        neither raises :class:`ValueError`.
        """
        if other.local_size != self.local_size:
            raise ValueError("Vectors have different local sizes")
        local = float(np.dot(self._data, other._data))
        if not self._layout.is_distributed:
            return local
        comm = comm if comm is not None else self._comm
        if comm is None:
            raise ValueError("dot of a distributed vector needs a communicator")
        return float(comm.allreduce_sum(local))

    def __len__(self) -> int:
        return self.global_size

    def __repr__(self) -> str:
        return f"DistributedVector(global_size={self.global_size}, local_size={self.local_size})"


__all__ = ["DistributedVector"]
