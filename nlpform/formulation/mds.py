"""
Formulation for problems with mixed sparse-dense (MDS) derivative blocks.

The variables are split into a sparse group (the first ``nx_sparse``) and a
dense group (the last ``nx_dense``). Jacobian rows carry a coordinate-format
block over the sparse group and a dense block over the dense group; the
Hessian of the Lagrangian is block diagonal with one block per group.

Fixed variables are relaxed rather than removed because eliminating columns
would renumber the user's sparse triplets. Variables are not distributed.
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np

from ..interface import MDSInterface, SparseDenseBlocksInfo, SparseDenseCoupling
from ..linalg.matrices import MatrixKind, MixedSparseDenseMatrix, SymBlockDiagMDSMatrix
from ..logging import get_logger
from ..options import FormulationOptions
from ..parallel import Communicator
from .base import (
    ContractViolation,
    FinalizationError,
    FormulationCore,
    NlpFormulation,
    VectorLike,
    _local,
)

logger = get_logger(__name__)


class MixedSparseDenseFormulation(NlpFormulation):
    """Formulation backed by an :class:`MDSInterface`."""

    supports_fixed_var_removal = False

    def __init__(
        self,
        interface: MDSInterface,
        options: Optional[FormulationOptions] = None,
        comm: Optional[Communicator] = None,
    ):
        if not isinstance(interface, MDSInterface):
            raise TypeError(
                f"MixedSparseDenseFormulation requires an MDSInterface, got {type(interface).__name__}"
            )
        super().__init__(interface, options, comm)
        self._blocks: Optional[SparseDenseBlocksInfo] = None

    def _finalize_layout(self, core: FormulationCore) -> None:
        if core.layout.is_distributed:
            raise FinalizationError("MDS problems cannot distribute their variables")
        info = self._interface.get_sparse_dense_blocks_info()
        if info.nx_sparse < 0 or info.nx_dense < 0:
            raise FinalizationError(
                f"Negative variable groups: nx_sparse={info.nx_sparse}, nx_dense={info.nx_dense}"
            )
        if info.nx_sparse + info.nx_dense != core.n_vars:
            raise FinalizationError(
                f"nx_sparse ({info.nx_sparse}) + nx_dense ({info.nx_dense}) "
                f"does not match the number of variables ({core.n_vars})"
            )
        counts = {
            "nnz_sparse_jaceq": info.nnz_sparse_jaceq,
            "nnz_sparse_jacineq": info.nnz_sparse_jacineq,
            "nnz_sparse_hess_lagr_ss": info.nnz_sparse_hess_lagr_ss,
        }
        for name, value in counts.items():
            if value < 0:
                raise FinalizationError(f"{name} must be non-negative, got {value}")
        if info.nnz_sparse_hess_lagr_sd != 0:
            raise FinalizationError(
                "Sparse-dense Hessian coupling is not supported "
                f"(declared nnz_sparse_hess_lagr_sd={info.nnz_sparse_hess_lagr_sd})"
            )
        self._blocks = info

    def _allocate_scratch(self) -> None:
        super()._allocate_scratch()
        self._lambda_user = np.zeros(self.m, dtype=np.float64)

    @property
    def blocks_info(self) -> SparseDenseBlocksInfo:
        if self._core is None or self._blocks is None:
            raise RuntimeError(f"{type(self).__name__} has not been finalized")
        return self._blocks

    @property
    def nx_sparse(self) -> int:
        return self.blocks_info.nx_sparse

    @property
    def nx_dense(self) -> int:
        return self.blocks_info.nx_dense

    def alloc_Jac_c(self) -> MixedSparseDenseMatrix:
        info = self.blocks_info
        return MixedSparseDenseMatrix(self.m_eq, info.nx_sparse, info.nx_dense, info.nnz_sparse_jaceq)

    def alloc_Jac_d(self) -> MixedSparseDenseMatrix:
        info = self.blocks_info
        return MixedSparseDenseMatrix(self.m_ineq, info.nx_sparse, info.nx_dense, info.nnz_sparse_jacineq)

    def alloc_Hess_Lagr(self) -> SymBlockDiagMDSMatrix:
        info = self.blocks_info
        return SymBlockDiagMDSMatrix(info.nx_sparse, info.nx_dense, info.nnz_sparse_hess_lagr_ss)

    def _eval_jac(self, op: str, x: VectorLike, new_x: bool, mapping: np.ndarray, Jac: Any) -> bool:
        if getattr(Jac, "kind", None) is not MatrixKind.MIXED_SPARSE_DENSE:
            raise ContractViolation(
                f"{op}: MixedSparseDenseFormulation needs a mixed sparse-dense matrix, "
                f"got {type(Jac).__name__}"
            )
        if Jac.m != mapping.size or Jac.n_sp != self.nx_sparse or Jac.n_de != self.nx_dense:
            raise ContractViolation(
                f"{op}: matrix of shape {Jac.shape} (n_sp={Jac.n_sp}) does not match "
                f"{mapping.size} rows with nx_sparse={self.nx_sparse}, nx_dense={self.nx_dense}"
            )

        core = self.core
        with self.run_stats.timed(op):
            x_user = self._x_to_user(x)
            ok = self._call_user(
                op,
                self._interface.eval_Jac_cons,
                core.n_user,
                core.n_cons,
                mapping,
                x_user,
                new_x,
                Jac.n_sp,
                Jac.n_de,
                Jac.sp_nnz,
                Jac.sp_irow,
                Jac.sp_jcol,
                Jac.sp_values,
                Jac.de_local_data,
            )
        return ok is not None

    def eval_Jac_c(self, x: VectorLike, new_x: bool, Jac_c: Any) -> bool:
        return self._eval_jac("eval_Jac_c", x, new_x, self.cons_eq_mapping, Jac_c)

    def eval_Jac_d(self, x: VectorLike, new_x: bool, Jac_d: Any) -> bool:
        return self._eval_jac("eval_Jac_d", x, new_x, self.cons_ineq_mapping, Jac_d)

    def eval_Hess_Lagr(
        self,
        x: VectorLike,
        new_x: bool,
        obj_factor: float,
        lambda_: VectorLike,
        new_lambda: bool,
        Hess_L: Any,
    ) -> bool:
        """
        Fill the block-diagonal Hessian of the Lagrangian.

        ``lambda_`` holds the equality multipliers followed by the inequality
        multipliers; they are scattered to the user's constraint order before
        the callback runs. A callback reporting entries in the sparse-dense
        coupling block violates the contract of this formulation.
        """
        if getattr(Hess_L, "kind", None) is not MatrixKind.SYM_BLOCK_DIAG_MDS:
            raise ContractViolation(
                "eval_Hess_Lagr: MixedSparseDenseFormulation needs a block-diagonal MDS "
                f"Hessian, got {type(Hess_L).__name__}"
            )
        if Hess_L.n_sp != self.nx_sparse or Hess_L.n_de != self.nx_dense:
            raise ContractViolation(
                f"eval_Hess_Lagr: Hessian blocks ({Hess_L.n_sp}, {Hess_L.n_de}) do not match "
                f"nx_sparse={self.nx_sparse}, nx_dense={self.nx_dense}"
            )
        lam = _local(lambda_)
        if lam.size != self.m:
            raise ContractViolation(f"eval_Hess_Lagr: lambda has size {lam.size}, expected {self.m}")

        core = self.core
        split = core.split
        self._lambda_user[split.eq_mapping] = lam[: split.n_eq]
        self._lambda_user[split.ineq_mapping] = lam[split.n_eq :]
        coupling = SparseDenseCoupling(
            nnz=0,
            irow=np.zeros(0, dtype=np.int32),
            jcol=np.zeros(0, dtype=np.int32),
            values=np.zeros(0, dtype=np.float64),
        )
        with self.run_stats.timed("eval_Hess_Lagr"):
            x_user = self._x_to_user(x)
            ok = self._call_user(
                "eval_Hess_Lagr",
                self._interface.eval_Hess_Lagr,
                core.n_user,
                core.n_cons,
                x_user,
                new_x,
                float(obj_factor),
                self._lambda_user,
                new_lambda,
                Hess_L.n_sp,
                Hess_L.n_de,
                Hess_L.sp_nnz,
                Hess_L.sp_irow,
                Hess_L.sp_jcol,
                Hess_L.sp_values,
                Hess_L.de_local_data,
                coupling,
            )
        if coupling.nnz != 0:
            raise ContractViolation(
                f"eval_Hess_Lagr: user reported {coupling.nnz} nonzero(s) in the sparse-dense "
                "coupling block, which this formulation does not support"
            )
        return ok is not None


__all__ = ["MixedSparseDenseFormulation"]
