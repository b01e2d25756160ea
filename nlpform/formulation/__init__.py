"""
NLP formulations: the layer between a user problem and the algorithm.

The concrete formulation is chosen once, from the kind of interface the user
implements:

>>> nlp = create_formulation(problem)          # doctest: +SKIP
>>> nlp.finalize_initialization()              # doctest: +SKIP
True
"""

from typing import Optional

from ..interface import DenseConstraintsInterface, MDSInterface, ProblemInterface
from ..options import FormulationOptions
from ..parallel import Communicator
from .base import ContractViolation, FinalizationError, FormulationCore, NlpFormulation
from .dense import DenseFormulation
from .mds import MixedSparseDenseFormulation


def create_formulation(
    interface: ProblemInterface,
    options: Optional[FormulationOptions] = None,
    comm: Optional[Communicator] = None,
) -> NlpFormulation:
    """
    Build the formulation matching the derivative layout of ``interface``.

    Raises:
        TypeError: If the interface declares no supported layout.
    """
    if isinstance(interface, MDSInterface):
        return MixedSparseDenseFormulation(interface, options, comm)
    if isinstance(interface, DenseConstraintsInterface):
        return DenseFormulation(interface, options, comm)
    raise TypeError(
        f"No formulation for interface {type(interface).__name__}; implement "
        "DenseConstraintsInterface or MDSInterface"
    )


__all__ = [
    "ContractViolation",
    "FinalizationError",
    "FormulationCore",
    "NlpFormulation",
    "DenseFormulation",
    "MixedSparseDenseFormulation",
    "create_formulation",
]
