"""
Formulation base shared by the dense and the mixed sparse-dense formulations.

:class:`FormulationCore` holds everything that is derived once from the user
interface during finalization: dimensions, bound and indicator vectors, the
equality/inequality split of the constraints with its mappings back to the
user's order, the variable layout and the transformation chain.
:class:`NlpFormulation` composes a core and forwards evaluations between the
algorithm's internal coordinates and the user's.

Evaluations reuse per-instance scratch buffers, so one formulation instance
must only be driven by one thread at a time. Use :meth:`NlpFormulation.clone`
for concurrent evaluation at independent points.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, TextIO, Tuple, Union

import numpy as np

from ..bounds import (
    ConstraintSplit,
    classify_bounds,
    detect_fixed,
    find_inconsistent,
    split_constraints,
)
from ..interface import NonlinearityType, ProblemInterface, SolveStatus
from ..linalg.utils import project_box
from ..linalg.vectors import DistributedVector
from ..logging import get_logger
from ..options import FormulationOptions
from ..parallel import Communicator, SerialCommunicator, VectorLayout
from ..stats import RunStats
from ..transforms import FixedVarsRelaxer, FixedVarsRemover, TransformationChain

logger = get_logger(__name__)

VectorLike = Union[np.ndarray, DistributedVector]

_EVAL_ERRORS = (ArithmeticError, ValueError, np.linalg.LinAlgError)


class ContractViolation(AssertionError):
    """The algorithm driver and the formulation disagree on a representation."""


class FinalizationError(ValueError):
    """Raised inside :meth:`FormulationCore.build` for malformed problem data."""


def _local(v: VectorLike) -> np.ndarray:
    if isinstance(v, DistributedVector):
        return v.local_data
    return np.asarray(v, dtype=np.float64)


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


@dataclass
class FormulationCore:
    """
    Problem structure derived from the user interface.

    All arrays are immutable after :meth:`build`. Bound vectors are in
    internal coordinates; ``n_user`` and ``user_layout`` describe the user's
    problem before the transformation chain.
    """

    n_user: int
    n_vars: int
    n_cons: int
    user_layout: VectorLayout
    layout: VectorLayout
    xl: DistributedVector
    xu: DistributedVector
    ixl: DistributedVector
    ixu: DistributedVector
    vars_type: Tuple[NonlinearityType, ...]
    split: ConstraintSplit
    c_rhs: DistributedVector
    dl: DistributedVector
    du: DistributedVector
    idl: DistributedVector
    idu: DistributedVector
    n_bnds_low: int
    n_bnds_low_local: int
    n_bnds_upp: int
    n_bnds_upp_local: int
    n_bnds_lu: int
    n_ineq_low: int
    n_ineq_upp: int
    n_ineq_lu: int
    fixed_policy: str
    n_fixed: int
    chain: TransformationChain

    @property
    def n_cons_eq(self) -> int:
        return self.split.n_eq

    @property
    def n_cons_ineq(self) -> int:
        return self.split.n_ineq

    @classmethod
    def build(
        cls,
        interface: ProblemInterface,
        options: FormulationOptions,
        comm: Communicator,
        allow_removal: bool = True,
    ) -> "FormulationCore":
        """
        Query ``interface`` and derive the formulation structure.

        Global counts are aggregated with ``comm.allreduce_sum``, a blocking
        collective every rank must enter.

        Raises:
            FinalizationError: If the interface reports inconsistent data.
        """
        sizes = interface.get_prob_sizes()
        try:
            n, m = (int(v) for v in sizes)
        except (TypeError, ValueError) as exc:
            raise FinalizationError(f"get_prob_sizes returned {sizes!r}, expected (n, m)") from exc
        if n < 0 or m < 0:
            raise FinalizationError(f"Negative problem dimensions: n={n}, m={m}")

        user_layout = cls._build_layout(interface, n, comm)
        n_local = user_layout.n_local

        xl = np.full(n_local, -np.inf)
        xu = np.full(n_local, np.inf)
        var_types = [NonlinearityType.NONLINEAR] * n_local
        if not interface.get_vars_info(n, xl, xu, var_types):
            raise FinalizationError("get_vars_info reported failure")
        if len(var_types) != n_local:
            raise FinalizationError(
                f"get_vars_info produced {len(var_types)} variable types, expected {n_local}"
            )

        clow = np.full(m, -np.inf)
        cupp = np.full(m, np.inf)
        cons_types = [NonlinearityType.NONLINEAR] * m
        if not interface.get_cons_info(m, clow, cupp, cons_types):
            raise FinalizationError("get_cons_info reported failure")
        if len(cons_types) != m:
            raise FinalizationError(
                f"get_cons_info produced {len(cons_types)} constraint types, expected {m}"
            )

        tol = options.fixed_var_tol
        policy = options.fixed_var
        bad = find_inconsistent(xl, xu, tol, allow_fixed=policy != "none")
        if bad.size:
            i = int(bad[0])
            raise FinalizationError(
                f"Inconsistent bounds for {bad.size} variable(s); first is "
                f"x[{user_layout.start + i}] with xl={xl[i]} > xu={xu[i]}"
            )
        bad = find_inconsistent(clow, cupp, tol, allow_fixed=False)
        if bad.size:
            i = int(bad[0])
            raise FinalizationError(
                f"Inconsistent bounds for {bad.size} constraint(s); first is "
                f"c[{i}] with clow={clow[i]} > cupp={cupp[i]}"
            )

        if policy == "none":
            fixed = np.zeros(n_local, dtype=bool)
        else:
            fixed = detect_fixed(xl, xu, tol, options.infinity)
        n_fixed = int(comm.allreduce_sum(int(np.count_nonzero(fixed))))

        if policy == "fixed" and n_fixed > 0 and (user_layout.is_distributed or not allow_removal):
            reason = "distributed variables" if user_layout.is_distributed else "this formulation"
            logger.warning(
                "Removal of %d fixed variable(s) is not supported for %s; relaxing them instead",
                n_fixed,
                reason,
            )
            policy = "relax"

        chain = TransformationChain(n_local)
        layout = user_layout
        if n_fixed > 0 and policy == "fixed":
            fixed_values = xl.copy()
            fixed_values[fixed] = 0.5 * (xl[fixed] + xu[fixed])
            chain.append(FixedVarsRemover(fixed, fixed_values))
            layout = user_layout.reduced(~fixed)
            var_types = [t for t, f in zip(var_types, fixed) if not f]
            logger.info("Removed %d fixed variable(s); %d remain", n_fixed, layout.n_global)
        elif n_fixed > 0 and policy == "relax":
            chain.append(FixedVarsRelaxer(fixed, tol))
            logger.info(
                "Relaxed the bounds of %d fixed variable(s) to a gap of %g * max(1, |value|)", n_fixed, tol
            )

        xl_int, xu_int = chain.bounds_to_internal(xl, xu)
        vbnds = classify_bounds(xl_int, xu_int, options.infinity)

        split = split_constraints(clow, cupp, cons_types, options.infinity)
        cbnds = classify_bounds(split.dl, split.du, options.infinity)
        _readonly(split.eq_mapping)
        _readonly(split.ineq_mapping)

        def vec(layout_: VectorLayout, values: np.ndarray) -> DistributedVector:
            v = DistributedVector(layout_, np.array(values, dtype=np.float64, copy=True), comm)
            _readonly(v.local_data)
            return v

        return cls(
            n_user=n,
            n_vars=layout.n_global,
            n_cons=m,
            user_layout=user_layout,
            layout=layout,
            xl=vec(layout, xl_int),
            xu=vec(layout, xu_int),
            ixl=vec(layout, vbnds.ilow),
            ixu=vec(layout, vbnds.iupp),
            vars_type=tuple(var_types),
            split=split,
            c_rhs=vec(VectorLayout.serial(split.n_eq), split.c_rhs),
            dl=vec(VectorLayout.serial(split.n_ineq), split.dl),
            du=vec(VectorLayout.serial(split.n_ineq), split.du),
            idl=vec(VectorLayout.serial(split.n_ineq), cbnds.ilow),
            idu=vec(VectorLayout.serial(split.n_ineq), cbnds.iupp),
            n_bnds_low=int(comm.allreduce_sum(vbnds.n_low)),
            n_bnds_low_local=vbnds.n_low,
            n_bnds_upp=int(comm.allreduce_sum(vbnds.n_upp)),
            n_bnds_upp_local=vbnds.n_upp,
            n_bnds_lu=int(comm.allreduce_sum(vbnds.n_lu)),
            n_ineq_low=cbnds.n_low,
            n_ineq_upp=cbnds.n_upp,
            n_ineq_lu=cbnds.n_lu,
            fixed_policy=policy,
            n_fixed=n_fixed,
            chain=chain,
        )

    @staticmethod
    def _build_layout(interface: ProblemInterface, n: int, comm: Communicator) -> VectorLayout:
        cols = np.zeros(comm.size + 1, dtype=np.int64)
        if not interface.get_vecdistrib_info(n, cols):
            return VectorLayout.serial(n)
        try:
            layout = VectorLayout(cols, comm.rank)
        except ValueError as exc:
            raise FinalizationError(f"Invalid variable distribution {cols.tolist()}: {exc}") from exc
        if layout.n_global != n:
            raise FinalizationError(
                f"Variable distribution covers {layout.n_global} variables, problem has {n}"
            )
        local_total = int(comm.allreduce_sum(layout.n_local))
        if local_total != n:
            raise FinalizationError(
                f"Local variable counts sum to {local_total} across ranks, expected {n}"
            )
        return layout


class NlpFormulation(ABC):
    """
    Interface the algorithm driver uses to query and evaluate a problem.

    A formulation goes through Constructed -> Finalized -> Evaluating. Every
    accessor and ``eval_*`` requires a successful
    :meth:`finalize_initialization`; accessors raise ``RuntimeError`` before
    it, evaluations are not guarded.

    Evaluation methods take and fill vectors in internal coordinates, either
    as :class:`DistributedVector` or as numpy arrays of the local size. They
    return ``False`` (``None`` for :meth:`eval_f`) when the point cannot be
    evaluated; the driver is expected to back off and retry.
    """

    #: whether the "fixed" policy may eliminate variables in this formulation
    supports_fixed_var_removal = True

    def __init__(
        self,
        interface: ProblemInterface,
        options: Optional[FormulationOptions] = None,
        comm: Optional[Communicator] = None,
    ):
        self._interface = interface
        self.options = options if options is not None else FormulationOptions()
        self.comm = comm if comm is not None else SerialCommunicator()
        self.run_stats = RunStats()
        self._core: Optional[FormulationCore] = None

    # ------------------------------------------------------------------ setup

    def finalize_initialization(self) -> bool:
        """
        Query the interface and build the formulation structure.

        Can be called again; the structure is rebuilt from the interface each
        time. Returns ``False`` and logs the reason for malformed problem data.
        """
        try:
            core = FormulationCore.build(
                self._interface,
                self.options,
                self.comm,
                allow_removal=self.supports_fixed_var_removal,
            )
            self._finalize_layout(core)
        except FinalizationError as exc:
            logger.error("finalize_initialization: %s", exc)
            self._core = None
            return False
        self._core = core
        self._allocate_scratch()
        logger.debug("Finalized %s", self)
        return True

    def _finalize_layout(self, core: FormulationCore) -> None:
        """Formulation-specific validation; raise FinalizationError to reject."""

    def _allocate_scratch(self) -> None:
        core = self.core
        self._x_user = np.zeros(core.user_layout.n_local, dtype=np.float64)
        self._grad_user = np.zeros(core.user_layout.n_local, dtype=np.float64)

    @property
    def is_finalized(self) -> bool:
        return self._core is not None

    @property
    def core(self) -> FormulationCore:
        if self._core is None:
            raise RuntimeError(f"{type(self).__name__} has not been finalized")
        return self._core

    @property
    def interface(self) -> ProblemInterface:
        return self._interface

    def clone(self) -> "NlpFormulation":
        """Independent formulation over the same interface, with fresh scratch buffers."""
        other = type(self)(self._interface, self.options, self.comm)
        if self.is_finalized and not other.finalize_initialization():
            raise RuntimeError("Problem data changed; cloned formulation failed to finalize")
        return other

    # -------------------------------------------------------------- accessors

    @property
    def n(self) -> int:
        return self.core.n_vars

    @property
    def m(self) -> int:
        return self.core.n_cons

    @property
    def m_eq(self) -> int:
        return self.core.n_cons_eq

    @property
    def m_ineq(self) -> int:
        return self.core.n_cons_ineq

    @property
    def n_low(self) -> int:
        return self.core.n_bnds_low

    @property
    def n_upp(self) -> int:
        return self.core.n_bnds_upp

    @property
    def m_ineq_low(self) -> int:
        return self.core.n_ineq_low

    @property
    def m_ineq_upp(self) -> int:
        return self.core.n_ineq_upp

    @property
    def n_complem(self) -> int:
        return self.m_ineq_low + self.m_ineq_upp + self.n_low + self.n_upp

    @property
    def n_local(self) -> int:
        return self.core.layout.n_local

    @property
    def n_low_local(self) -> int:
        return self.core.n_bnds_low_local

    @property
    def n_upp_local(self) -> int:
        return self.core.n_bnds_upp_local

    @property
    def n_bnds_lu(self) -> int:
        return self.core.n_bnds_lu

    @property
    def n_ineq_lu(self) -> int:
        return self.core.n_ineq_lu

    @property
    def n_user(self) -> int:
        return self.core.n_user

    @property
    def n_fixed(self) -> int:
        return self.core.n_fixed

    @property
    def fixed_var_policy(self) -> str:
        """Policy actually applied, after any fallback from ``"fixed"`` to ``"relax"``."""
        return self.core.fixed_policy

    @property
    def layout(self) -> VectorLayout:
        return self.core.layout

    @property
    def transformations(self) -> TransformationChain:
        return self.core.chain

    @property
    def rank(self) -> int:
        return self.comm.rank

    @property
    def num_ranks(self) -> int:
        return self.comm.size

    @property
    def cons_eq_mapping(self) -> np.ndarray:
        return self.core.split.eq_mapping

    @property
    def cons_ineq_mapping(self) -> np.ndarray:
        return self.core.split.ineq_mapping

    @property
    def vars_type(self) -> Tuple[NonlinearityType, ...]:
        return self.core.vars_type

    @property
    def cons_eq_type(self) -> Tuple[NonlinearityType, ...]:
        return self.core.split.eq_types

    @property
    def cons_ineq_type(self) -> Tuple[NonlinearityType, ...]:
        return self.core.split.ineq_types

    def get_xl(self) -> DistributedVector:
        return self.core.xl

    def get_xu(self) -> DistributedVector:
        return self.core.xu

    def get_ixl(self) -> DistributedVector:
        return self.core.ixl

    def get_ixu(self) -> DistributedVector:
        return self.core.ixu

    def get_dl(self) -> DistributedVector:
        return self.core.dl

    def get_du(self) -> DistributedVector:
        return self.core.du

    def get_idl(self) -> DistributedVector:
        return self.core.idl

    def get_idu(self) -> DistributedVector:
        return self.core.idu

    def get_crhs(self) -> DistributedVector:
        return self.core.c_rhs

    # -------------------------------------------------------------- factories

    def alloc_primal_vec(self) -> DistributedVector:
        return DistributedVector(self.core.layout, comm=self.comm)

    def alloc_dual_eq_vec(self) -> DistributedVector:
        return DistributedVector(VectorLayout.serial(self.m_eq), comm=self.comm)

    def alloc_dual_ineq_vec(self) -> DistributedVector:
        return DistributedVector(VectorLayout.serial(self.m_ineq), comm=self.comm)

    def alloc_dual_vec(self) -> DistributedVector:
        return DistributedVector(VectorLayout.serial(self.m), comm=self.comm)

    @abstractmethod
    def alloc_Jac_c(self) -> Any:
        """Matrix for the Jacobian of the equality constraints."""

    @abstractmethod
    def alloc_Jac_d(self) -> Any:
        """Matrix for the Jacobian of the inequality constraints."""

    # ------------------------------------------------------------ evaluations

    def _call_user(self, op: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Invoke a user callback; failures are logged and returned as None."""
        try:
            result = fn(*args)
        except _EVAL_ERRORS as exc:
            logger.warning("%s: user callback raised %s: %s", op, type(exc).__name__, exc)
            return None
        if result is None or (isinstance(result, (bool, np.bool_)) and not result):
            logger.warning("%s: user callback reported failure", op)
            return None
        return result

    def _x_to_user(self, x: VectorLike) -> np.ndarray:
        x_local = _local(x)
        if x_local.size != self.n_local:
            raise ContractViolation(
                f"Point has local size {x_local.size}, formulation expects {self.n_local}"
            )
        x_user = self.core.chain.x_to_user(x_local)
        if x_user is x_local:
            return x_user
        np.copyto(self._x_user, x_user)
        return self._x_user

    def eval_f(self, x: VectorLike, new_x: bool = True) -> Optional[float]:
        """Objective value at the internal point ``x``, or ``None`` on failure."""
        core = self.core
        with self.run_stats.timed("eval_f"):
            x_user = self._x_to_user(x)
            f = self._call_user("eval_f", self._interface.eval_f, core.n_user, x_user, new_x)
        if f is None:
            return None
        f = float(f)
        if not np.isfinite(f):
            logger.warning("eval_f: objective is not finite (%s)", f)
            return None
        return core.chain.obj_to_internal(f)

    def eval_grad_f(self, x: VectorLike, new_x: bool, gradf: VectorLike) -> bool:
        core = self.core
        out = _local(gradf)
        if out.size != self.n_local:
            raise ContractViolation(
                f"eval_grad_f: gradient has local size {out.size}, formulation expects {self.n_local}"
            )
        with self.run_stats.timed("eval_grad_f"):
            x_user = self._x_to_user(x)
            ok = self._call_user(
                "eval_grad_f",
                self._interface.eval_grad_f,
                core.n_user,
                x_user,
                new_x,
                self._grad_user,
            )
            if ok is None:
                return False
            out[:] = core.chain.grad_to_internal(self._grad_user)
        return True

    def _eval_cons(self, op: str, x: VectorLike, new_x: bool, mapping: np.ndarray, out: VectorLike) -> bool:
        core = self.core
        values = _local(out)
        if values.size != mapping.size:
            raise ContractViolation(f"{op}: output has size {values.size}, expected {mapping.size}")
        with self.run_stats.timed(op):
            x_user = self._x_to_user(x)
            ok = self._call_user(
                op, self._interface.eval_cons, core.n_user, core.n_cons, mapping, x_user, new_x, values
            )
        return ok is not None

    def eval_c(self, x: VectorLike, new_x: bool, c: VectorLike) -> bool:
        """Equality constraint bodies, ordered like :attr:`cons_eq_mapping`."""
        return self._eval_cons("eval_c", x, new_x, self.cons_eq_mapping, c)

    def eval_d(self, x: VectorLike, new_x: bool, d: VectorLike) -> bool:
        """Inequality constraint bodies, ordered like :attr:`cons_ineq_mapping`."""
        return self._eval_cons("eval_d", x, new_x, self.cons_ineq_mapping, d)

    @abstractmethod
    def eval_Jac_c(self, x: VectorLike, new_x: bool, Jac_c: Any) -> bool: ...

    @abstractmethod
    def eval_Jac_d(self, x: VectorLike, new_x: bool, Jac_d: Any) -> bool: ...

    @abstractmethod
    def eval_Hess_Lagr(
        self,
        x: VectorLike,
        new_x: bool,
        obj_factor: float,
        lambda_: VectorLike,
        new_lambda: bool,
        Hess_L: Any,
    ) -> bool: ...

    def get_starting_point(self, x0: VectorLike) -> bool:
        """
        Fill ``x0`` with the user's initial point or a default one.

        The default is the midpoint of two finite bounds, the bound closest
        to zero for one-sided variables and zero for free ones.
        """
        core = self.core
        out = _local(x0)
        x0_user = np.zeros(core.user_layout.n_local, dtype=np.float64)
        try:
            provided = bool(self._interface.get_starting_point(core.n_user, x0_user))
        except _EVAL_ERRORS as exc:
            logger.warning("get_starting_point: user callback raised %s: %s", type(exc).__name__, exc)
            provided = False

        if provided:
            if not np.all(np.isfinite(x0_user)):
                logger.error("get_starting_point: user initial point has non-finite entries")
                return False
            out[:] = core.chain.x_to_internal(x0_user)
            return True

        xl = core.xl.local_data
        xu = core.xu.local_data
        has_l = core.ixl.local_data > 0.0
        has_u = core.ixu.local_data > 0.0
        point = project_box(
            np.zeros_like(xl), np.where(has_l, xl, -np.inf), np.where(has_u, xu, np.inf)
        )
        both = has_l & has_u
        point[both] = 0.5 * (xl[both] + xu[both])
        out[:] = point
        logger.debug("get_starting_point: using default point from bounds")
        return True

    # ------------------------------------------------------ user-side output

    def user_obj(self, f: float) -> float:
        return self.core.chain.obj_to_user(f)

    def user_x(self, x: VectorLike) -> np.ndarray:
        """Copy of ``x`` mapped to the user's variables."""
        return np.array(self._x_to_user(x), copy=True)

    def _assemble_constraints(
        self, c: VectorLike, d: VectorLike, yc: VectorLike, yd: VectorLike
    ) -> Tuple[np.ndarray, np.ndarray]:
        split = self.core.split
        c, d, yc, yd = _local(c), _local(d), _local(yc), _local(yd)
        if c.size + d.size != self.m or c.size != split.n_eq or yc.size != split.n_eq or yd.size != split.n_ineq:
            raise ContractViolation(
                f"Constraint vectors of sizes c={c.size}, d={d.size}, yc={yc.size}, yd={yd.size} "
                f"do not match m_eq={split.n_eq}, m_ineq={split.n_ineq}"
            )
        cons = np.empty(self.m, dtype=np.float64)
        lam = np.empty(self.m, dtype=np.float64)
        cons[split.eq_mapping] = c
        cons[split.ineq_mapping] = d
        lam[split.eq_mapping] = yc
        lam[split.ineq_mapping] = yd
        return cons, lam

    def _primal_to_user(
        self, x: VectorLike, z_L: VectorLike, z_U: VectorLike
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        chain = self.core.chain
        x_user = self.user_x(x)
        zl_user = np.array(chain.mults_to_user(_local(z_L)), copy=True)
        zu_user = np.array(chain.mults_to_user(_local(z_U)), copy=True)
        return x_user, zl_user, zu_user

    def user_callback_solution(
        self,
        status: SolveStatus,
        x: VectorLike,
        z_L: VectorLike,
        z_U: VectorLike,
        c: VectorLike,
        d: VectorLike,
        yc: VectorLike,
        yd: VectorLike,
        obj_value: float,
    ) -> None:
        """Report the final solution to the user in user coordinates and order."""
        x_user, zl, zu = self._primal_to_user(x, z_L, z_U)
        cons, lam = self._assemble_constraints(c, d, yc, yd)
        self._interface.solution_callback(
            status, self.n_user, x_user, zl, zu, self.m, cons, lam, self.user_obj(obj_value)
        )

    def user_callback_iterate(
        self,
        iter: int,
        obj_value: float,
        x: VectorLike,
        z_L: VectorLike,
        z_U: VectorLike,
        c: VectorLike,
        d: VectorLike,
        yc: VectorLike,
        yd: VectorLike,
        inf_pr: float,
        inf_du: float,
        mu: float,
        alpha_du: float,
        alpha_pr: float,
        ls_trials: int,
    ) -> bool:
        """Report an iterate; returns the user's request to continue (True) or stop."""
        x_user, zl, zu = self._primal_to_user(x, z_L, z_U)
        cons, lam = self._assemble_constraints(c, d, yc, yd)
        return bool(
            self._interface.iterate_callback(
                iter,
                self.user_obj(obj_value),
                self.n_user,
                x_user,
                zl,
                zu,
                self.m,
                cons,
                lam,
                inf_pr,
                inf_du,
                mu,
                alpha_du,
                alpha_pr,
                ls_trials,
            )
        )

    # -------------------------------------------------------------- reporting

    def summary(self) -> str:
        core = self.core
        lines = [
            f"{type(self).__name__} summary",
            "=" * 50,
            f"Variables:       {self.n} (user: {core.n_user}, local: {self.n_local}, ranks: {core.layout.num_ranks})",
            f"  lower bounds:  {self.n_low}",
            f"  upper bounds:  {self.n_upp}",
            f"  lower+upper:   {self.n_bnds_lu}",
            f"  fixed:         {core.n_fixed} ({core.fixed_policy})",
            f"Constraints:     {self.m}",
            f"  equalities:    {self.m_eq}",
            f"  inequalities:  {self.m_ineq}",
            f"    lower:       {self.m_ineq_low}",
            f"    upper:       {self.m_ineq_upp}",
            f"    lower+upper: {self.n_ineq_lu}",
        ]
        return "\n".join(lines)

    def print_summary(self, stream: Optional[TextIO] = None, msg: Optional[str] = None, rank: int = 0) -> None:
        """Write :meth:`summary` to ``stream`` (stdout) on ``rank`` only."""
        if self.rank != rank:
            return
        stream = stream if stream is not None else sys.stdout
        if msg:
            stream.write(msg + "\n")
        stream.write(self.summary() + "\n")

    def __repr__(self) -> str:
        if self._core is None:
            return f"<{type(self).__name__} (not finalized)>"
        return f"<{type(self).__name__} n={self.n} m_eq={self.m_eq} m_ineq={self.m_ineq}>"


__all__ = [
    "ContractViolation",
    "FinalizationError",
    "FormulationCore",
    "NlpFormulation",
    "VectorLike",
]
