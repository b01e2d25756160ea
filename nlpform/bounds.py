"""
Classification of bounds and constraints.

Indicator vectors are float arrays of zeros and ones so the algorithm can use
them as multiplicative masks. A bound is present when it lies strictly inside
``(-infinity, infinity)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .interface import NonlinearityType


@dataclass(frozen=True)
class BoundInfo:
    """Indicator vectors and counts derived from a pair of bound vectors."""

    ilow: np.ndarray
    iupp: np.ndarray
    n_low: int
    n_upp: int
    n_lu: int


@dataclass(frozen=True)
class ConstraintSplit:
    """
    Partition of the user's constraints into equalities and inequalities.

    ``eq_mapping[k]`` is the original index of the ``k``-th equality, and
    likewise for ``ineq_mapping``. Both are sorted.
    """

    eq_mapping: np.ndarray
    ineq_mapping: np.ndarray
    c_rhs: np.ndarray
    dl: np.ndarray
    du: np.ndarray
    eq_types: tuple
    ineq_types: tuple

    @property
    def n_eq(self) -> int:
        return int(self.eq_mapping.size)

    @property
    def n_ineq(self) -> int:
        return int(self.ineq_mapping.size)


def has_lower(lower: np.ndarray, infinity: float) -> np.ndarray:
    return np.asarray(lower, dtype=float) > -infinity


def has_upper(upper: np.ndarray, infinity: float) -> np.ndarray:
    return np.asarray(upper, dtype=float) < infinity


def classify_bounds(lower: np.ndarray, upper: np.ndarray, infinity: float) -> BoundInfo:
    """Indicator vectors and local counts for ``lower <= v <= upper``."""
    low = has_lower(lower, infinity)
    upp = has_upper(upper, infinity)
    return BoundInfo(
        ilow=low.astype(np.float64),
        iupp=upp.astype(np.float64),
        n_low=int(np.count_nonzero(low)),
        n_upp=int(np.count_nonzero(upp)),
        n_lu=int(np.count_nonzero(low & upp)),
    )


def detect_fixed(lower: np.ndarray, upper: np.ndarray, tol: float, infinity: float) -> np.ndarray:
    """Mask of entries with two finite bounds closer than ``tol``."""
    lower = np.asarray(lower, dtype=float)
    upper = np.asarray(upper, dtype=float)
    both = has_lower(lower, infinity) & has_upper(upper, infinity)
    fixed = np.zeros(lower.shape, dtype=bool)
    fixed[both] = (upper[both] - lower[both]) < tol
    return fixed


def find_inconsistent(
    lower: np.ndarray, upper: np.ndarray, tol: float, allow_fixed: bool
) -> np.ndarray:
    """
    Indices whose bounds cannot describe a feasible box.

    NaN bounds are always inconsistent. ``lower > upper`` is inconsistent
    unless ``allow_fixed`` is set and the crossing is smaller than ``tol``, in
    which case the entry is a fixed variable that the fixed-variable policy
    will take care of.
    """
    lower = np.asarray(lower, dtype=float)
    upper = np.asarray(upper, dtype=float)
    bad = np.isnan(lower) | np.isnan(upper)
    with np.errstate(invalid="ignore"):
        crossed = lower > upper
        if allow_fixed:
            crossed &= (lower - upper) >= tol
    return np.flatnonzero(bad | crossed)


def split_constraints(
    clow: np.ndarray,
    cupp: np.ndarray,
    types: Sequence[NonlinearityType],
    infinity: float,
) -> ConstraintSplit:
    """
    Tag every constraint as equality (``clow == cupp``, finite) or inequality.

    Mappings preserve the original relative order of the constraints.
    """
    clow = np.asarray(clow, dtype=float).reshape(-1)
    cupp = np.asarray(cupp, dtype=float).reshape(-1)
    if clow.size != cupp.size or len(types) != clow.size:
        raise ValueError("Constraint bounds and types must have the same length")

    is_eq = (clow == cupp) & has_lower(clow, infinity) & has_upper(cupp, infinity)
    eq_mapping = np.flatnonzero(is_eq).astype(np.int64)
    ineq_mapping = np.flatnonzero(~is_eq).astype(np.int64)

    eq_types: List[NonlinearityType] = [types[i] for i in eq_mapping]
    ineq_types: List[NonlinearityType] = [types[i] for i in ineq_mapping]
    return ConstraintSplit(
        eq_mapping=eq_mapping,
        ineq_mapping=ineq_mapping,
        c_rhs=clow[eq_mapping].copy(),
        dl=clow[ineq_mapping].copy(),
        du=cupp[ineq_mapping].copy(),
        eq_types=tuple(eq_types),
        ineq_types=tuple(ineq_types),
    )


__all__ = [
    "BoundInfo",
    "ConstraintSplit",
    "has_lower",
    "has_upper",
    "classify_bounds",
    "detect_fixed",
    "find_inconsistent",
    "split_constraints",
]
