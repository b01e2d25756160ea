"""
Formulation for problems with a small number of dense constraints.

Jacobians are dense matrices whose columns follow the variable layout. There
is no Hessian callback: the algorithm must use a quasi-Newton approximation,
for which :meth:`DenseFormulation.alloc_multivector_primal` provides storage.
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np

from ..interface import DenseConstraintsInterface
from ..linalg.matrices import DenseMatrix, MatrixKind
from ..logging import get_logger
from ..options import FormulationOptions
from ..parallel import Communicator
from .base import ContractViolation, NlpFormulation, VectorLike

logger = get_logger(__name__)


class DenseFormulation(NlpFormulation):
    """Formulation backed by a :class:`DenseConstraintsInterface`."""

    def __init__(
        self,
        interface: DenseConstraintsInterface,
        options: Optional[FormulationOptions] = None,
        comm: Optional[Communicator] = None,
    ):
        if not isinstance(interface, DenseConstraintsInterface):
            raise TypeError(
                f"DenseFormulation requires a DenseConstraintsInterface, got {type(interface).__name__}"
            )
        super().__init__(interface, options, comm)

    def _allocate_scratch(self) -> None:
        super()._allocate_scratch()
        n_user_local = self.core.user_layout.n_local
        self._jac_c_user = np.zeros((self.m_eq, n_user_local), dtype=np.float64)
        self._jac_d_user = np.zeros((self.m_ineq, n_user_local), dtype=np.float64)

    def alloc_Jac_c(self) -> DenseMatrix:
        return DenseMatrix(self.m_eq, self.n, self.layout)

    def alloc_Jac_d(self) -> DenseMatrix:
        return DenseMatrix(self.m_ineq, self.n, self.layout)

    def alloc_multivector_primal(self, nrows: int, max_rows: int = -1) -> DenseMatrix:
        """
        Dense matrix of ``nrows`` rows over the primal layout.

        When ``max_rows`` is positive, storage for that many rows is reserved
        so the row count can grow (e.g. limited-memory secant pairs) without
        reallocation.
        """
        return DenseMatrix(nrows, self.n, self.layout, max_rows=max_rows)

    def _eval_jac(
        self, op: str, x: VectorLike, new_x: bool, mapping: np.ndarray, scratch: np.ndarray, Jac: Any
    ) -> bool:
        if getattr(Jac, "kind", None) is not MatrixKind.DENSE:
            logger.error(
                "[internal error] %s: DenseFormulation works only with dense matrices, got %s",
                op,
                type(Jac).__name__,
            )
            return False
        out = Jac.local_data
        if out.shape != (mapping.size, self.n_local):
            logger.error(
                "[internal error] %s: Jacobian has local shape %s, expected %s",
                op,
                out.shape,
                (mapping.size, self.n_local),
            )
            return False

        core = self.core
        chain = core.chain
        # without column elimination the user can fill the matrix directly
        target = out if chain.n_post == chain.n_pre else scratch
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
                target,
            )
            if ok is None:
                return False
            if target is scratch:
                out[:] = chain.jac_to_internal(scratch)
        return True

    def eval_Jac_c(self, x: VectorLike, new_x: bool, Jac_c: Any) -> bool:
        """Fill ``Jac_c`` with the equality Jacobian; ``False`` for a non-dense matrix."""
        return self._eval_jac("eval_Jac_c", x, new_x, self.cons_eq_mapping, self._jac_c_user, Jac_c)

    def eval_Jac_d(self, x: VectorLike, new_x: bool, Jac_d: Any) -> bool:
        """Fill ``Jac_d`` with the inequality Jacobian; ``False`` for a non-dense matrix."""
        return self._eval_jac("eval_Jac_d", x, new_x, self.cons_ineq_mapping, self._jac_d_user, Jac_d)

    def eval_Hess_Lagr(
        self,
        x: VectorLike,
        new_x: bool,
        obj_factor: float,
        lambda_: VectorLike,
        new_lambda: bool,
        Hess_L: Any,
    ) -> bool:
        raise ContractViolation(
            "DenseFormulation is only for quasi-Newton Hessian approximations; "
            "eval_Hess_Lagr must not be called"
        )


__all__ = ["DenseFormulation"]
