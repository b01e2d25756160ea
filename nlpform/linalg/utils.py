"""
Small array helpers shared by the matrix types and the formulations.
"""

from __future__ import annotations

from typing import Optional

import numpy as np


def symmetrize(matrix: np.ndarray) -> np.ndarray:
    """
    Return the symmetric part of ``matrix``.

    Dense Hessian blocks filled by user callbacks are only required to be
    symmetric up to round-off; this returns ``0.5 * (matrix + matrix.T)``.
    """

    return 0.5 * (matrix + matrix.T)


def project_box(x: np.ndarray, lb: Optional[np.ndarray], ub: Optional[np.ndarray]) -> np.ndarray:
    """
    Project ``x`` onto the box defined by ``lb`` and ``ub``.

    Parameters may be ``None`` (interpreted as ``-inf``/``+inf``), in which
    case the projection leaves the corresponding coordinates unchanged.
    """

    projected = np.array(x, dtype=float, copy=True)
    if lb is not None:
        projected = np.maximum(projected, lb)
    if ub is not None:
        projected = np.minimum(projected, ub)
    return projected


__all__ = ["symmetrize", "project_box"]
