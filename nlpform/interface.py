"""
User-facing problem interfaces.

A problem is described by subclassing one of the interfaces below. The
formulation queries sizes and bounds once during finalization and calls the
evaluation methods whenever the algorithm needs a fresh evaluation. The
problem solved is

    minimize    f(x)
    subject to  clow <= c(x) <= cupp
                xlow <=  x   <= xupp

where a constraint with ``clow == cupp`` is an equality. Infinite bounds are
given as ``np.inf``/``-np.inf`` (or any value whose magnitude reaches the
configured ``infinity``).

Array arguments are preallocated numpy buffers that the callbacks fill in
place. Evaluation callbacks return ``True`` on success; ``False`` marks the
point as not evaluable, which the algorithm treats as recoverable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np


class NonlinearityType(Enum):
    """Declared nonlinearity of a variable or constraint."""

    LINEAR = "linear"
    QUADRATIC = "quadratic"
    CONVEX = "convex"
    NONLINEAR = "nonlinear"


class SolveStatus(Enum):
    """Status reported to :meth:`ProblemInterface.solution_callback`."""

    SUCCESS = "success"
    ACCEPTABLE_LEVEL = "acceptable_level"
    INFEASIBLE = "infeasible"
    MAX_ITER = "max_iter"
    MAX_CPU_TIME = "max_cpu_time"
    STEP_TOO_SMALL = "step_too_small"
    USER_STOPPED = "user_stopped"
    NUMERICAL_ERROR = "numerical_error"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SparseDenseBlocksInfo:
    """
    Block structure declared by an :class:`MDSInterface`.

    Attributes:
        nx_sparse: Number of variables in the sparse group (the first ones).
        nx_dense: Number of variables in the dense group (the last ones).
        nnz_sparse_jaceq: Nonzeros of the sparse block of the equality Jacobian.
        nnz_sparse_jacineq: Nonzeros of the sparse block of the inequality Jacobian.
        nnz_sparse_hess_lagr_ss: Nonzeros of the sparse-sparse Hessian block
            (upper triangle).
        nnz_sparse_hess_lagr_sd: Nonzeros of the sparse-dense coupling block.
            Only zero is supported.
    """

    nx_sparse: int
    nx_dense: int
    nnz_sparse_jaceq: int
    nnz_sparse_jacineq: int
    nnz_sparse_hess_lagr_ss: int
    nnz_sparse_hess_lagr_sd: int = 0


@dataclass
class SparseDenseCoupling:
    """
    Sparse-dense coupling block of the Lagrangian Hessian.

    Passed to :meth:`MDSInterface.eval_Hess_Lagr`. The formulations do not
    support cross terms between the variable groups, so a callback must leave
    ``nnz`` at zero; buffers are empty.
    """

    nnz: int = 0
    irow: Optional[np.ndarray] = None
    jcol: Optional[np.ndarray] = None
    values: Optional[np.ndarray] = None


class ProblemInterface(ABC):
    """Methods every problem must provide, whatever its derivative layout."""

    @abstractmethod
    def get_prob_sizes(self) -> Tuple[int, int]:
        """Return ``(n, m)``: global number of variables and of constraints."""

    @abstractmethod
    def get_vars_info(
        self, n: int, xlow: np.ndarray, xupp: np.ndarray, types: List[NonlinearityType]
    ) -> bool:
        """Fill variable bounds and nonlinearity types (local slice when distributed)."""

    @abstractmethod
    def get_cons_info(
        self, m: int, clow: np.ndarray, cupp: np.ndarray, types: List[NonlinearityType]
    ) -> bool:
        """Fill constraint bounds and nonlinearity types."""

    @abstractmethod
    def eval_f(self, n: int, x: np.ndarray, new_x: bool) -> Optional[float]:
        """Objective value at ``x``, or ``None`` if it cannot be evaluated."""

    @abstractmethod
    def eval_grad_f(self, n: int, x: np.ndarray, new_x: bool, gradf: np.ndarray) -> bool:
        """Fill the objective gradient at ``x``."""

    @abstractmethod
    def eval_cons(
        self,
        n: int,
        m: int,
        idx_cons: np.ndarray,
        x: np.ndarray,
        new_x: bool,
        cons: np.ndarray,
    ) -> bool:
        """
        Fill ``cons[k]`` with the value of constraint ``idx_cons[k]`` at ``x``.

        ``idx_cons`` holds indices in the user's original constraint order.
        """

    def get_vecdistrib_info(self, n_global: int, cols: np.ndarray) -> bool:
        """
        Describe how the variables are distributed over ranks.

        Fill ``cols`` (length ``num_ranks + 1``) with the global index
        boundaries of every rank's slice and return ``True``. The default
        returns ``False``: the problem is not distributed.
        """
        return False

    def get_starting_point(self, n: int, x0: np.ndarray) -> bool:
        """Fill ``x0`` with an initial point. Return ``False`` to use the default."""
        return False

    def solution_callback(
        self,
        status: SolveStatus,
        n: int,
        x: np.ndarray,
        z_L: np.ndarray,
        z_U: np.ndarray,
        m: int,
        g: np.ndarray,
        lambda_: np.ndarray,
        obj_value: float,
    ) -> None:
        """Receive the final solution in user coordinates."""

    def iterate_callback(
        self,
        iter: int,
        obj_value: float,
        n: int,
        x: np.ndarray,
        z_L: np.ndarray,
        z_U: np.ndarray,
        m: int,
        g: np.ndarray,
        lambda_: np.ndarray,
        inf_pr: float,
        inf_du: float,
        mu: float,
        alpha_du: float,
        alpha_pr: float,
        ls_trials: int,
    ) -> bool:
        """Receive the current iterate. Return ``False`` to ask the solver to stop."""
        return True


class DenseConstraintsInterface(ProblemInterface):
    """Problems whose constraint Jacobian is a dense matrix; no Hessian callback."""

    @abstractmethod
    def eval_Jac_cons(
        self,
        n: int,
        m: int,
        idx_cons: np.ndarray,
        x: np.ndarray,
        new_x: bool,
        Jac: np.ndarray,
    ) -> bool:
        """Fill row ``k`` of ``Jac`` with the gradient of constraint ``idx_cons[k]``."""


class MDSInterface(ProblemInterface):
    """Problems with mixed sparse-dense derivative blocks."""

    @abstractmethod
    def get_sparse_dense_blocks_info(self) -> SparseDenseBlocksInfo:
        """Declare the variable groups and the sparse block sizes."""

    @abstractmethod
    def eval_Jac_cons(
        self,
        n: int,
        m: int,
        idx_cons: np.ndarray,
        x: np.ndarray,
        new_x: bool,
        nsparse: int,
        ndense: int,
        nnzJacS: int,
        iJacS: np.ndarray,
        jJacS: np.ndarray,
        MJacS: np.ndarray,
        JacD: np.ndarray,
    ) -> bool:
        """
        Fill both Jacobian blocks for the constraints listed in ``idx_cons``.

        Row ``k`` of either block belongs to constraint ``idx_cons[k]``. The
        sparse triplets use column indices in ``[0, nsparse)``, ``JacD`` has
        shape ``(len(idx_cons), ndense)``.
        """

    @abstractmethod
    def eval_Hess_Lagr(
        self,
        n: int,
        m: int,
        x: np.ndarray,
        new_x: bool,
        obj_factor: float,
        lambda_: np.ndarray,
        new_lambda: bool,
        nsparse: int,
        ndense: int,
        nnzHSS: int,
        iHSS: np.ndarray,
        jHSS: np.ndarray,
        MHSS: np.ndarray,
        HDD: np.ndarray,
        hess_sd: SparseDenseCoupling,
    ) -> bool:
        """
        Fill the Hessian of the Lagrangian ``obj_factor * f + lambda_ . c``.

        ``lambda_`` is in the user's original constraint order. The sparse
        block holds upper-triangular triplets, ``HDD`` is ``(ndense, ndense)``.
        """


__all__ = [
    "NonlinearityType",
    "SolveStatus",
    "SparseDenseBlocksInfo",
    "SparseDenseCoupling",
    "ProblemInterface",
    "DenseConstraintsInterface",
    "MDSInterface",
]
