"""Pytest configuration and shared fixtures for nlpform tests.

This module provides:
- Deterministic RNG fixtures for numpy
- Small user problems implementing the dense and the MDS interfaces
- A fake multi-rank communicator
"""

import os
from typing import List, Optional, Sequence

import numpy as np
import pytest

from nlpform.interface import (
    DenseConstraintsInterface,
    MDSInterface,
    NonlinearityType,
    SparseDenseBlocksInfo,
)


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    np.random.seed(int(os.environ.get("TEST_RNG_SEED", "0")))


class FakeComm:
    """Pretends to be rank ``rank`` of ``size`` ranks that all own identical data."""

    def __init__(self, rank: int, size: int):
        self._rank = rank
        self._size = size
        self.reductions: List[float] = []

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def size(self) -> int:
        return self._size

    def allreduce_sum(self, value):
        self.reductions.append(value)
        return value * self._size


class DenseQuadratic(DenseConstraintsInterface):
    """
    minimize ||x - target||^2 subject to clow <= A x <= cupp, xl <= x <= xu.

    With ``distrib`` set, every rank owns the slice ``[distrib[r], distrib[r+1])``
    and ``xl``/``xu`` hold the bounds of that slice only.
    """

    def __init__(
        self,
        xl: Sequence[float],
        xu: Sequence[float],
        clow: Sequence[float] = (),
        cupp: Sequence[float] = (),
        A: Optional[np.ndarray] = None,
        target: Optional[Sequence[float]] = None,
        x0: Optional[Sequence[float]] = None,
        distrib: Optional[Sequence[int]] = None,
        n_global: Optional[int] = None,
    ):
        self.xl = np.asarray(xl, dtype=float)
        self.xu = np.asarray(xu, dtype=float)
        self.clow = np.asarray(clow, dtype=float)
        self.cupp = np.asarray(cupp, dtype=float)
        n_local = self.xl.size
        self.n = n_local if n_global is None else n_global
        m = self.clow.size
        self.A = np.zeros((m, n_local)) if A is None else np.asarray(A, dtype=float)
        self.target = np.ones(n_local) if target is None else np.asarray(target, dtype=float)
        self.x0 = None if x0 is None else np.asarray(x0, dtype=float)
        self.distrib = distrib
        self.fail_eval = False
        self.raise_eval: Optional[Exception] = None
        self.continue_iterations = True
        self.cons_indices: List[np.ndarray] = []
        self.jac_indices: List[np.ndarray] = []
        self.points: List[np.ndarray] = []
        self.solution = None
        self.iterates: List[dict] = []

    def _check(self):
        if self.raise_eval is not None:
            raise self.raise_eval
        return not self.fail_eval

    def get_prob_sizes(self):
        return self.n, self.clow.size

    def get_vars_info(self, n, xlow, xupp, types):
        xlow[:] = self.xl
        xupp[:] = self.xu
        for i in range(len(types)):
            types[i] = NonlinearityType.NONLINEAR
        return True

    def get_cons_info(self, m, clow, cupp, types):
        clow[:] = self.clow
        cupp[:] = self.cupp
        for i in range(m):
            types[i] = NonlinearityType.LINEAR if i % 2 == 0 else NonlinearityType.NONLINEAR
        return True

    def get_vecdistrib_info(self, n_global, cols):
        if self.distrib is None:
            return False
        cols[:] = self.distrib
        return True

    def get_starting_point(self, n, x0):
        if self.x0 is None:
            return False
        x0[:] = self.x0
        return True

    def eval_f(self, n, x, new_x):
        self.points.append(np.array(x, copy=True))
        if not self._check():
            return None
        return float(np.sum((x - self.target) ** 2))

    def eval_grad_f(self, n, x, new_x, gradf):
        if not self._check():
            return False
        gradf[:] = 2.0 * (x - self.target)
        return True

    def eval_cons(self, n, m, idx_cons, x, new_x, cons):
        self.cons_indices.append(np.array(idx_cons, copy=True))
        if not self._check():
            return False
        cons[:] = self.A[idx_cons] @ x
        return True

    def eval_Jac_cons(self, n, m, idx_cons, x, new_x, Jac):
        self.jac_indices.append(np.array(idx_cons, copy=True))
        if not self._check():
            return False
        Jac[:, :] = self.A[idx_cons]
        return True

    def solution_callback(self, status, n, x, z_L, z_U, m, g, lambda_, obj_value):
        self.solution = dict(
            status=status, n=n, x=x, z_L=z_L, z_U=z_U, m=m, g=g, lambda_=lambda_, obj=obj_value
        )

    def iterate_callback(
        self, iter, obj_value, n, x, z_L, z_U, m, g, lambda_,
        inf_pr, inf_du, mu, alpha_du, alpha_pr, ls_trials,
    ):
        self.iterates.append(dict(iter=iter, obj=obj_value, x=x, g=g, lambda_=lambda_))
        return self.continue_iterations


class MDSExample(MDSInterface):
    """
    Three sparse variables, two dense variables, three constraints.

        f(x)   = 0.5 * ||x||^2
        c_i(x) = s_i + 0.5 * s_i^2 + sum(d),   i = 0, 1, 2

    with c_0 and c_2 equalities and c_1 an inequality.
    """

    def __init__(self):
        self.ns = 3
        self.nd = 2
        self.report_coupling = False
        self.fail_eval = False
        self.hess_lambdas: List[np.ndarray] = []

    def get_prob_sizes(self):
        return self.ns + self.nd, 3

    def get_vars_info(self, n, xlow, xupp, types):
        xlow[:] = -10.0
        xupp[:] = 10.0
        return True

    def get_cons_info(self, m, clow, cupp, types):
        clow[:] = [1.0, -np.inf, 2.0]
        cupp[:] = [1.0, 4.0, 2.0]
        return True

    def get_sparse_dense_blocks_info(self):
        return SparseDenseBlocksInfo(
            nx_sparse=self.ns,
            nx_dense=self.nd,
            nnz_sparse_jaceq=2,
            nnz_sparse_jacineq=1,
            nnz_sparse_hess_lagr_ss=self.ns,
        )

    def eval_f(self, n, x, new_x):
        return 0.5 * float(x @ x)

    def eval_grad_f(self, n, x, new_x, gradf):
        gradf[:] = x
        return True

    def eval_cons(self, n, m, idx_cons, x, new_x, cons):
        s, d = x[: self.ns], x[self.ns :]
        cons[:] = s[idx_cons] + 0.5 * s[idx_cons] ** 2 + d.sum()
        return True

    def eval_Jac_cons(self, n, m, idx_cons, x, new_x, nsparse, ndense, nnzJacS, iJacS, jJacS, MJacS, JacD):
        if self.fail_eval:
            return False
        s = x[: self.ns]
        for k, i in enumerate(idx_cons):
            iJacS[k] = k
            jJacS[k] = i
            MJacS[k] = 1.0 + s[i]
        JacD[:, :] = 1.0
        return True

    def eval_Hess_Lagr(
        self, n, m, x, new_x, obj_factor, lambda_, new_lambda,
        nsparse, ndense, nnzHSS, iHSS, jHSS, MHSS, HDD, hess_sd,
    ):
        self.hess_lambdas.append(np.array(lambda_, copy=True))
        iHSS[:] = np.arange(self.ns)
        jHSS[:] = np.arange(self.ns)
        MHSS[:] = obj_factor + lambda_
        HDD[:, :] = obj_factor * np.eye(self.nd)
        if self.report_coupling:
            hess_sd.nnz = 1
        return True


@pytest.fixture
def dense_problem():
    """Factory for :class:`DenseQuadratic` problems."""
    return DenseQuadratic


@pytest.fixture
def mds_problem() -> MDSExample:
    return MDSExample()


@pytest.fixture
def fake_comm():
    """Factory for :class:`FakeComm` communicators."""
    return FakeComm
