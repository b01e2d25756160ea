"""
Invertible transformations between the user's problem and the internal one.

A transformation maps the user's variable space (size ``n_pre``) to the space
the algorithm works in (size ``n_post``) and back. The chain applies
user-to-internal maps in insertion order and internal-to-user maps in
reverse order.

Transformations own scratch buffers that are overwritten on every call.
Arrays returned by the ``*_to_user``/``*_to_internal`` methods may alias
those buffers; copy them before the next call if they must persist. For the
same reason a transformation must not be used from several threads at once.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, List, Tuple

import numpy as np


class NlpTransformation(ABC):
    """One invertible map between user and internal problem coordinates."""

    @property
    @abstractmethod
    def n_pre(self) -> int:
        """Number of variables on the user side."""

    @property
    @abstractmethod
    def n_post(self) -> int:
        """Number of variables on the internal side."""

    @abstractmethod
    def x_to_internal(self, x_user: np.ndarray) -> np.ndarray: ...

    @abstractmethod
    def x_to_user(self, x_internal: np.ndarray) -> np.ndarray: ...

    @abstractmethod
    def grad_to_internal(self, grad_user: np.ndarray) -> np.ndarray: ...

    @abstractmethod
    def jac_to_internal(self, jac_user: np.ndarray) -> np.ndarray:
        """Map the columns of a dense ``(rows, n_pre)`` Jacobian."""

    @abstractmethod
    def bounds_to_internal(
        self, xl_user: np.ndarray, xu_user: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]: ...

    @abstractmethod
    def mults_to_user(self, z_internal: np.ndarray) -> np.ndarray:
        """Map bound multipliers back to the user's variables."""

    def obj_to_internal(self, f_user: float) -> float:
        return f_user

    def obj_to_user(self, f_internal: float) -> float:
        return f_internal


class FixedVarsRemover(NlpTransformation):
    """
    Eliminates fixed variables from the internal problem.

    Args:
        fixed_mask: Boolean mask over the user variables, True where fixed.
        fixed_values: Values of the user variables; only the entries flagged
            in ``fixed_mask`` are used.
    """

    def __init__(self, fixed_mask: np.ndarray, fixed_values: np.ndarray):
        fixed_mask = np.asarray(fixed_mask, dtype=bool).reshape(-1)
        fixed_values = np.asarray(fixed_values, dtype=np.float64).reshape(-1)
        if fixed_values.size != fixed_mask.size:
            raise ValueError("fixed_values must have the same length as fixed_mask")
        self._fixed_idx = np.flatnonzero(fixed_mask)
        self._free_idx = np.flatnonzero(~fixed_mask)
        self._fixed_values = fixed_values[self._fixed_idx].copy()

        self._x_user = np.zeros(fixed_mask.size, dtype=np.float64)
        self._x_user[self._fixed_idx] = self._fixed_values
        self._x_internal = np.zeros(self._free_idx.size, dtype=np.float64)
        self._z_user = np.zeros(fixed_mask.size, dtype=np.float64)

    @property
    def n_pre(self) -> int:
        return self._x_user.size

    @property
    def n_post(self) -> int:
        return self._free_idx.size

    @property
    def n_fixed(self) -> int:
        return self._fixed_idx.size

    @property
    def fixed_indices(self) -> np.ndarray:
        return self._fixed_idx.copy()

    @property
    def fixed_values(self) -> np.ndarray:
        return self._fixed_values.copy()

    @property
    def free_indices(self) -> np.ndarray:
        return self._free_idx.copy()

    def x_to_internal(self, x_user: np.ndarray) -> np.ndarray:
        np.take(x_user, self._free_idx, out=self._x_internal)
        return self._x_internal

    def x_to_user(self, x_internal: np.ndarray) -> np.ndarray:
        self._x_user[self._free_idx] = x_internal
        return self._x_user

    def grad_to_internal(self, grad_user: np.ndarray) -> np.ndarray:
        return np.asarray(grad_user)[self._free_idx]

    def jac_to_internal(self, jac_user: np.ndarray) -> np.ndarray:
        return np.asarray(jac_user)[:, self._free_idx]

    def bounds_to_internal(
        self, xl_user: np.ndarray, xu_user: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        return np.asarray(xl_user)[self._free_idx], np.asarray(xu_user)[self._free_idx]

    def mults_to_user(self, z_internal: np.ndarray) -> np.ndarray:
        # eliminated variables carry no bound multiplier
        self._z_user.fill(0.0)
        self._z_user[self._free_idx] = z_internal
        return self._z_user


class FixedVarsRelaxer(NlpTransformation):
    """
    Keeps fixed variables but widens their bounds so that ``xl < xu``.

    The bound pair of each fixed variable, with midpoint ``mid``, becomes
    ``[lo, lo + w]`` where ``w = tol * max(1, |mid|)`` and
    ``lo = mid - w / 2``. Scaling by ``|mid|`` keeps ``w`` above the float
    spacing at ``mid``; when ``tol`` is so small that ``lo + w`` still rounds
    to ``lo``, the upper bound is moved to the next representable float.
    The widths actually produced are exposed as :attr:`gaps`. Every other map
    is the identity.
    """

    def __init__(self, fixed_mask: np.ndarray, tol: float):
        if not tol > 0.0:
            raise ValueError(f"Relaxation tolerance must be positive, got {tol}")
        self._fixed_mask = np.asarray(fixed_mask, dtype=bool).reshape(-1)
        self._tol = float(tol)
        self._gaps = np.zeros(0, dtype=np.float64)

    @property
    def n_pre(self) -> int:
        return self._fixed_mask.size

    @property
    def n_post(self) -> int:
        return self._fixed_mask.size

    @property
    def n_relaxed(self) -> int:
        return int(np.count_nonzero(self._fixed_mask))

    @property
    def tol(self) -> float:
        return self._tol

    @property
    def gaps(self) -> np.ndarray:
        """``xu - xl`` of every relaxed variable after the last :meth:`relax`."""
        return self._gaps.copy()

    def widths(self, mid: np.ndarray) -> np.ndarray:
        """Requested bound gap for fixed variables centred at ``mid``."""
        return self._tol * np.maximum(1.0, np.abs(mid))

    def relax(self, xl: np.ndarray, xu: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        xl = np.array(xl, dtype=np.float64, copy=True)
        xu = np.array(xu, dtype=np.float64, copy=True)
        mask = self._fixed_mask
        mid = 0.5 * (xl[mask] + xu[mask])
        width = self.widths(mid)
        low = mid - 0.5 * width
        upp = low + width
        collapsed = upp <= low
        upp[collapsed] = np.nextafter(low[collapsed], np.inf)
        xl[mask] = low
        xu[mask] = upp
        self._gaps = upp - low
        return xl, xu

    def x_to_internal(self, x_user: np.ndarray) -> np.ndarray:
        return x_user

    def x_to_user(self, x_internal: np.ndarray) -> np.ndarray:
        return x_internal

    def grad_to_internal(self, grad_user: np.ndarray) -> np.ndarray:
        return grad_user

    def jac_to_internal(self, jac_user: np.ndarray) -> np.ndarray:
        return jac_user

    def bounds_to_internal(
        self, xl_user: np.ndarray, xu_user: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        return self.relax(xl_user, xu_user)

    def mults_to_user(self, z_internal: np.ndarray) -> np.ndarray:
        return z_internal


class TransformationChain:
    """
    Ordered composition of :class:`NlpTransformation` objects.

    An empty chain is the identity on vectors of length ``n_user``.
    """

    def __init__(self, n_user: int):
        self._n_user = int(n_user)
        self._transforms: List[NlpTransformation] = []

    def append(self, transform: NlpTransformation) -> None:
        if transform.n_pre != self.n_post:
            raise ValueError(
                f"Transformation expects {transform.n_pre} variables, chain provides {self.n_post}"
            )
        self._transforms.append(transform)

    def clear(self) -> None:
        self._transforms.clear()

    def __len__(self) -> int:
        return len(self._transforms)

    def __iter__(self) -> Iterator[NlpTransformation]:
        return iter(self._transforms)

    @property
    def n_pre(self) -> int:
        return self._n_user

    @property
    def n_post(self) -> int:
        return self._transforms[-1].n_post if self._transforms else self._n_user

    def x_to_internal(self, x_user: np.ndarray) -> np.ndarray:
        x = x_user
        for t in self._transforms:
            x = t.x_to_internal(x)
        return x

    def x_to_user(self, x_internal: np.ndarray) -> np.ndarray:
        x = x_internal
        for t in reversed(self._transforms):
            x = t.x_to_user(x)
        return x

    def grad_to_internal(self, grad_user: np.ndarray) -> np.ndarray:
        g = grad_user
        for t in self._transforms:
            g = t.grad_to_internal(g)
        return g

    def jac_to_internal(self, jac_user: np.ndarray) -> np.ndarray:
        jac = jac_user
        for t in self._transforms:
            jac = t.jac_to_internal(jac)
        return jac

    def bounds_to_internal(
        self, xl_user: np.ndarray, xu_user: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        xl, xu = xl_user, xu_user
        for t in self._transforms:
            xl, xu = t.bounds_to_internal(xl, xu)
        return xl, xu

    def mults_to_user(self, z_internal: np.ndarray) -> np.ndarray:
        z = z_internal
        for t in reversed(self._transforms):
            z = t.mults_to_user(z)
        return z

    def obj_to_internal(self, f_user: float) -> float:
        f = f_user
        for t in self._transforms:
            f = t.obj_to_internal(f)
        return f

    def obj_to_user(self, f_internal: float) -> float:
        f = f_internal
        for t in reversed(self._transforms):
            f = t.obj_to_user(f)
        return f

    def __repr__(self) -> str:
        names = ", ".join(type(t).__name__ for t in self._transforms)
        return f"TransformationChain(n_pre={self.n_pre}, n_post={self.n_post}, [{names}])"


__all__ = [
    "NlpTransformation",
    "FixedVarsRemover",
    "FixedVarsRelaxer",
    "TransformationChain",
]
