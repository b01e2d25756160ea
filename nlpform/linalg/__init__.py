"""
Vector and matrix containers the formulation layer allocates and fills.

The containers perform no solver arithmetic; they only expose the local
buffers that user callbacks write into.
"""

from .matrices import DenseMatrix, MatrixKind, MixedSparseDenseMatrix, SymBlockDiagMDSMatrix
from .utils import project_box, symmetrize
from .vectors import DistributedVector

__all__ = [
    "DistributedVector",
    "MatrixKind",
    "DenseMatrix",
    "MixedSparseDenseMatrix",
    "SymBlockDiagMDSMatrix",
    "project_box",
    "symmetrize",
]
