"""
Derivative-matrix representations handed out by the formulations.

The set of representations is closed and every matrix carries its
:class:`MatrixKind` tag. Formulations match on the tag rather than on the
Python class, so a matrix allocated by one formulation and handed to another
is detected before any buffer is touched.

Coordinate-format blocks store zero-based ``int32`` row and column indices
and ``float64`` values of a fixed length ``nnz`` decided at allocation.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import numpy as np
from scipy import sparse

from ..parallel import VectorLayout
from .utils import symmetrize


class MatrixKind(Enum):
    """Tag identifying the concrete representation of a matrix."""

    DENSE = "dense"
    MIXED_SPARSE_DENSE = "mixed_sparse_dense"
    SYM_BLOCK_DIAG_MDS = "sym_block_diag_mds"


class DenseMatrix:
    """
    Row-major dense matrix with columns distributed by a :class:`VectorLayout`.

    Each process stores the columns of its local slice for every row. Rows
    are contiguous so ``local_data`` can be handed to a callback that fills
    it row by row.

    Args:
        m: Number of active rows.
        n_global: Global number of columns.
        layout: Column distribution. Defaults to a serial layout.
        max_rows: When positive, storage for this many rows is allocated up
            front and the active row count can grow up to it without
            reallocating.
    """

    kind = MatrixKind.DENSE

    def __init__(
        self,
        m: int,
        n_global: int,
        layout: Optional[VectorLayout] = None,
        max_rows: int = -1,
    ):
        if m < 0 or n_global < 0:
            raise ValueError(f"Matrix dimensions must be non-negative, got ({m}, {n_global})")
        if layout is None:
            layout = VectorLayout.serial(n_global)
        if layout.n_global != n_global:
            raise ValueError(
                f"Column layout covers {layout.n_global} columns, matrix has {n_global}"
            )
        capacity = m
        if max_rows > 0:
            if max_rows < m:
                raise ValueError(f"max_rows ({max_rows}) is smaller than the row count ({m})")
            capacity = max_rows
        self._layout = layout
        self._m = m
        self._storage = np.zeros((capacity, layout.n_local), dtype=np.float64)

    @property
    def layout(self) -> VectorLayout:
        return self._layout

    @property
    def m(self) -> int:
        return self._m

    @property
    def n(self) -> int:
        return self._layout.n_global

    @property
    def n_local(self) -> int:
        return self._layout.n_local

    @property
    def max_rows(self) -> int:
        return self._storage.shape[0]

    @property
    def shape(self) -> tuple[int, int]:
        return (self._m, self.n)

    @property
    def local_data(self) -> np.ndarray:
        """View of the active rows, shape ``(m, n_local)``."""
        return self._storage[: self._m]

    def set_num_rows(self, m: int) -> None:
        if not 0 <= m <= self.max_rows:
            raise ValueError(f"Row count {m} outside [0, {self.max_rows}]")
        self._m = m

    def append_row(self, row: np.ndarray) -> None:
        """Activate one more row holding ``row`` (local columns)."""
        if self._m >= self.max_rows:
            raise ValueError(f"Matrix already holds its maximum of {self.max_rows} rows")
        self._storage[self._m, :] = np.asarray(row, dtype=np.float64).reshape(-1)
        self._m += 1

    def set_to_zero(self) -> None:
        self._storage[: self._m].fill(0.0)

    def __repr__(self) -> str:
        return f"DenseMatrix(m={self._m}, n={self.n}, n_local={self.n_local}, max_rows={self.max_rows})"


class _CoordinateBlock:
    """Fixed-size coordinate-format storage shared by the MDS matrices."""

    def __init__(self, nrows: int, ncols: int, nnz: int):
        if nrows < 0 or ncols < 0 or nnz < 0:
            raise ValueError(f"Invalid sparse block ({nrows}, {ncols}) with nnz={nnz}")
        self.nrows = nrows
        self.ncols = ncols
        self.irow = np.zeros(nnz, dtype=np.int32)
        self.jcol = np.zeros(nnz, dtype=np.int32)
        self.values = np.zeros(nnz, dtype=np.float64)

    @property
    def nnz(self) -> int:
        return self.values.size

    def to_coo(self) -> sparse.coo_matrix:
        return sparse.coo_matrix(
            (self.values.copy(), (self.irow.copy(), self.jcol.copy())),
            shape=(self.nrows, self.ncols),
        )


class MixedSparseDenseMatrix:
    """
    Constraint Jacobian split column-wise into a sparse and a dense block.

    The first ``n_sparse`` columns are stored in coordinate format, the last
    ``n_dense`` columns as a contiguous ``(rows, n_dense)`` array.
    """

    kind = MatrixKind.MIXED_SPARSE_DENSE

    def __init__(self, rows: int, n_sparse: int, n_dense: int, nnz_sparse: int):
        if n_dense < 0:
            raise ValueError(f"Dense column count must be non-negative, got {n_dense}")
        self._sp = _CoordinateBlock(rows, n_sparse, nnz_sparse)
        self._de = np.zeros((rows, n_dense), dtype=np.float64)

    @property
    def m(self) -> int:
        return self._sp.nrows

    @property
    def n(self) -> int:
        return self.n_sp + self.n_de

    @property
    def shape(self) -> tuple[int, int]:
        return (self.m, self.n)

    @property
    def n_sp(self) -> int:
        return self._sp.ncols

    @property
    def n_de(self) -> int:
        return self._de.shape[1]

    @property
    def sp_nnz(self) -> int:
        return self._sp.nnz

    @property
    def sp_irow(self) -> np.ndarray:
        return self._sp.irow

    @property
    def sp_jcol(self) -> np.ndarray:
        return self._sp.jcol

    @property
    def sp_values(self) -> np.ndarray:
        return self._sp.values

    @property
    def de_local_data(self) -> np.ndarray:
        return self._de

    def sparse_block(self) -> sparse.coo_matrix:
        return self._sp.to_coo()

    def to_dense(self) -> np.ndarray:
        """Assembled ``(m, n_sp + n_de)`` array; duplicate triplets are summed."""
        return np.hstack([self._sp.to_coo().toarray(), self._de])

    def __repr__(self) -> str:
        return (
            f"MixedSparseDenseMatrix(m={self.m}, n_sp={self.n_sp}, "
            f"n_de={self.n_de}, sp_nnz={self.sp_nnz})"
        )


class SymBlockDiagMDSMatrix:
    """
    Symmetric Hessian with a sparse diagonal block and a dense diagonal block.

    The sparse ``n_sparse x n_sparse`` block holds upper-triangular triplets.
    Coupling between the two variable groups is not represented.
    """

    kind = MatrixKind.SYM_BLOCK_DIAG_MDS

    def __init__(self, n_sparse: int, n_dense: int, nnz_sparse: int):
        if n_dense < 0:
            raise ValueError(f"Dense block size must be non-negative, got {n_dense}")
        self._sp = _CoordinateBlock(n_sparse, n_sparse, nnz_sparse)
        self._de = np.zeros((n_dense, n_dense), dtype=np.float64)

    @property
    def n(self) -> int:
        return self.n_sp + self.n_de

    @property
    def shape(self) -> tuple[int, int]:
        return (self.n, self.n)

    @property
    def n_sp(self) -> int:
        return self._sp.ncols

    @property
    def n_de(self) -> int:
        return self._de.shape[0]

    @property
    def sp_nnz(self) -> int:
        return self._sp.nnz

    @property
    def sp_irow(self) -> np.ndarray:
        return self._sp.irow

    @property
    def sp_jcol(self) -> np.ndarray:
        return self._sp.jcol

    @property
    def sp_values(self) -> np.ndarray:
        return self._sp.values

    @property
    def de_local_data(self) -> np.ndarray:
        return self._de

    def sparse_block(self) -> sparse.csr_matrix:
        """Full symmetric sparse block rebuilt from its upper triangle."""
        upper = self._sp.to_coo().tocsr()
        if self.n_sp == 0:
            return upper
        return (upper + upper.T - sparse.diags(upper.diagonal())).tocsr()

    def to_dense(self) -> np.ndarray:
        full = np.zeros((self.n, self.n), dtype=np.float64)
        full[: self.n_sp, : self.n_sp] = self.sparse_block().toarray()
        full[self.n_sp :, self.n_sp :] = symmetrize(self._de)
        return full

    def __repr__(self) -> str:
        return f"SymBlockDiagMDSMatrix(n_sp={self.n_sp}, n_de={self.n_de}, sp_nnz={self.sp_nnz})"


__all__ = [
    "MatrixKind",
    "DenseMatrix",
    "MixedSparseDenseMatrix",
    "SymBlockDiagMDSMatrix",
]
