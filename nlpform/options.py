"""Configuration of the formulation layer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict

FIXED_VAR_POLICIES = ("none", "fixed", "relax")


@dataclass(frozen=True)
class FormulationOptions:
    """
    Options consumed while a formulation is finalized.

    Args:
        fixed_var: Treatment of variables whose bounds coincide. ``"none"``
            keeps them in the problem, ``"fixed"`` eliminates them from the
            internal problem and ``"relax"`` widens their bounds.
        fixed_var_tol: Absolute tolerance below which ``xu - xl`` marks a
            variable as fixed. Relaxation widens a fixed variable at value ``v``
            to a gap of ``fixed_var_tol * max(1, |v|)``.
        infinity: Bounds with magnitude at or above this value are treated as
            absent. ``np.inf`` always is.
    """

    fixed_var: str = "none"
    fixed_var_tol: float = 1e-8
    infinity: float = 1e20

    def __post_init__(self) -> None:
        if self.fixed_var not in FIXED_VAR_POLICIES:
            raise ValueError(
                f"fixed_var must be one of {FIXED_VAR_POLICIES}, got {self.fixed_var!r}."
            )
        if not self.fixed_var_tol > 0.0:
            raise ValueError(f"fixed_var_tol must be positive, got {self.fixed_var_tol}.")
        if not self.infinity > 0.0:
            raise ValueError(f"infinity must be positive, got {self.infinity}.")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FormulationOptions":
        """Create options from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in d.items() if key in known})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)


__all__ = ["FormulationOptions", "FIXED_VAR_POLICIES"]
