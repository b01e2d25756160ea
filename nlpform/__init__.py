"""nlpform - problem formulation and linear-algebra factory layer for interior-point NLP solvers."""

__version__ = "0.1.0"

from .bounds import BoundInfo, ConstraintSplit, classify_bounds, detect_fixed, split_constraints
from .formulation import (
    ContractViolation,
    DenseFormulation,
    FormulationCore,
    MixedSparseDenseFormulation,
    NlpFormulation,
    create_formulation,
)
from .interface import (
    DenseConstraintsInterface,
    MDSInterface,
    NonlinearityType,
    ProblemInterface,
    SolveStatus,
    SparseDenseBlocksInfo,
    SparseDenseCoupling,
)
from .linalg import (
    DenseMatrix,
    DistributedVector,
    MatrixKind,
    MixedSparseDenseMatrix,
    SymBlockDiagMDSMatrix,
)
from .logging import RankFilter, configure_logging, get_logger, set_log_level
from .options import FormulationOptions
from .parallel import Communicator, MPICommunicator, SerialCommunicator, VectorLayout
from .stats import RunStats
from .transforms import FixedVarsRelaxer, FixedVarsRemover, NlpTransformation, TransformationChain

__all__ = [
    "__version__",
    # Problem interfaces
    "ProblemInterface",
    "DenseConstraintsInterface",
    "MDSInterface",
    "NonlinearityType",
    "SolveStatus",
    "SparseDenseBlocksInfo",
    "SparseDenseCoupling",
    # Formulations
    "NlpFormulation",
    "FormulationCore",
    "DenseFormulation",
    "MixedSparseDenseFormulation",
    "create_formulation",
    "ContractViolation",
    "FormulationOptions",
    # Classification and transformations
    "BoundInfo",
    "ConstraintSplit",
    "classify_bounds",
    "detect_fixed",
    "split_constraints",
    "NlpTransformation",
    "FixedVarsRemover",
    "FixedVarsRelaxer",
    "TransformationChain",
    # Linear algebra and distribution
    "DistributedVector",
    "MatrixKind",
    "DenseMatrix",
    "MixedSparseDenseMatrix",
    "SymBlockDiagMDSMatrix",
    "Communicator",
    "SerialCommunicator",
    "MPICommunicator",
    "VectorLayout",
    "RunStats",
    # Logging
    "RankFilter",
    "get_logger",
    "set_log_level",
    "configure_logging",
]
