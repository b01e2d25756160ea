import numpy as np
import pytest
from scipy import sparse

from nlpform.linalg import (
    DenseMatrix,
    DistributedVector,
    MatrixKind,
    MixedSparseDenseMatrix,
    SymBlockDiagMDSMatrix,
)
from nlpform.parallel import VectorLayout


def test_dense_matrix_local_columns():
    layout = VectorLayout([0, 3, 7], rank=1)
    mat = DenseMatrix(2, 7, layout)
    assert mat.kind is MatrixKind.DENSE
    assert mat.shape == (2, 7)
    assert mat.local_data.shape == (2, 4)
    assert mat.local_data.flags.c_contiguous


def test_dense_matrix_grows_within_capacity():
    mat = DenseMatrix(0, 3, max_rows=2)
    storage = mat._storage
    mat.append_row(np.array([1.0, 2.0, 3.0]))
    mat.append_row(np.array([4.0, 5.0, 6.0]))
    assert mat.m == 2
    assert mat._storage is storage
    assert mat.local_data.tolist() == [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]
    with pytest.raises(ValueError):
        mat.append_row(np.zeros(3))
    mat.set_num_rows(1)
    assert mat.local_data.shape == (1, 3)


def test_dense_matrix_validation():
    with pytest.raises(ValueError):
        DenseMatrix(3, 2, max_rows=2)
    with pytest.raises(ValueError):
        DenseMatrix(1, 4, VectorLayout.serial(3))
    with pytest.raises(ValueError):
        DenseMatrix(-1, 2)


def test_mixed_sparse_dense_assembly():
    mat = MixedSparseDenseMatrix(rows=2, n_sparse=3, n_dense=2, nnz_sparse=3)
    assert mat.kind is MatrixKind.MIXED_SPARSE_DENSE
    assert mat.sp_irow.dtype == np.int32
    mat.sp_irow[:] = [0, 1, 1]
    mat.sp_jcol[:] = [0, 2, 2]
    mat.sp_values[:] = [1.0, 2.0, 3.0]
    mat.de_local_data[:] = [[7.0, 8.0], [9.0, 10.0]]
    assert sparse.issparse(mat.sparse_block())
    expected = np.array([[1.0, 0.0, 0.0, 7.0, 8.0], [0.0, 0.0, 5.0, 9.0, 10.0]])
    assert np.array_equal(mat.to_dense(), expected)
    assert mat.shape == (2, 5)


def test_sym_block_diag_mds_symmetrizes():
    mat = SymBlockDiagMDSMatrix(n_sparse=2, n_dense=2, nnz_sparse=3)
    assert mat.kind is MatrixKind.SYM_BLOCK_DIAG_MDS
    mat.sp_irow[:] = [0, 0, 1]
    mat.sp_jcol[:] = [0, 1, 1]
    mat.sp_values[:] = [2.0, -1.0, 3.0]
    mat.de_local_data[:] = [[4.0, 1.0], [1.0, 5.0]]
    full = mat.to_dense()
    assert np.allclose(full, full.T)
    assert np.allclose(full[:2, :2], [[2.0, -1.0], [-1.0, 3.0]])
    assert np.allclose(full[2:, 2:], [[4.0, 1.0], [1.0, 5.0]])
    assert np.all(full[:2, 2:] == 0.0)


def test_sym_block_diag_without_sparse_part():
    mat = SymBlockDiagMDSMatrix(n_sparse=0, n_dense=1, nnz_sparse=0)
    mat.de_local_data[:] = 2.0
    assert mat.to_dense().tolist() == [[2.0]]


def test_distributed_vector_local_slice():
    layout = VectorLayout([0, 2, 5], rank=1)
    v = DistributedVector(layout)
    assert v.global_size == 5
    assert v.local_size == 3
    v.set_to_constant(2.0)
    assert v.local_data.tolist() == [2.0, 2.0, 2.0]
    with pytest.raises(ValueError):
        DistributedVector(layout, np.zeros(5))


def test_distributed_vector_dot_uses_communicator(fake_comm):
    layout = VectorLayout([0, 2, 4], rank=0)
    a = DistributedVector(layout, np.array([1.0, 2.0]))
    b = DistributedVector(layout, np.array([3.0, 4.0]))
    comm = fake_comm(rank=0, size=2)
    assert a.dot(b, comm) == pytest.approx(22.0)
    assert comm.reductions == [11.0]


def test_distributed_vector_dot_needs_a_communicator():
    layout = VectorLayout([0, 2, 4], rank=0)
    a = DistributedVector(layout, np.array([1.0, 2.0]))
    with pytest.raises(ValueError):
        a.dot(a.copy())


def test_distributed_vector_dot_uses_stored_communicator(fake_comm):
    comm = fake_comm(rank=1, size=2)
    a = DistributedVector(VectorLayout([0, 2, 4], rank=1), np.array([1.0, 2.0]), comm)
    b = a.copy()
    assert b.comm is comm
    assert a.dot(b) == pytest.approx(10.0)
    assert comm.reductions == [5.0]


def test_serial_vector_dot_is_not_reduced(fake_comm):
    comm = fake_comm(rank=0, size=3)
    a = DistributedVector(VectorLayout.serial(2), np.array([1.0, 2.0]), comm)
    assert a.dot(a) == pytest.approx(5.0)
    assert DistributedVector.from_array([3.0]).dot(DistributedVector.from_array([2.0])) == 6.0
    assert comm.reductions == []


def test_distributed_vector_copy_is_independent():
    v = DistributedVector.from_array([1.0, 2.0])
    w = v.copy()
    w.local_data[0] = 5.0
    assert v.local_data[0] == 1.0
