# src/mnasim_core/simulation/exceptions.py
"""
Diagnosable exceptions raised inside the solver stack.

The orchestrating solvers catch every one of these and turn it into a failure
result; they never reach the caller as exceptions.
"""
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class MnaInputError(DiagnosableError):
    """
    Raised for structural problems found while preparing the MNA system, before any
    matrix is assembled (empty circuit, missing ground, no source, bad layout).
    """
    details: str
    circuit_name: str = ""

    def __str__(self):
        return self.details

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="MNA Input Error",
            details=self.details,
            suggestion="Make sure the circuit has at least one component, a Ground connected to it and at least one source, and that every terminal is wired.",
            context={'component': self.circuit_name or None}
        )


@dataclass()
class SingularMatrixError(DiagnosableError, np.linalg.LinAlgError):
    """
    Raised when Gaussian elimination finds no usable pivot in a column.

    `row` is the elimination step (equal to the unknown's index) at which the
    largest available pivot fell below the threshold. The solvers fill in
    `unknown_label` with the net or branch that index belongs to.
    """
    row: int
    pivot_magnitude: float
    unknown_label: Optional[str] = None
    frequency: Optional[float] = None

    def __str__(self):
        where = f"row {self.row}"
        if self.unknown_label:
            where += f" ({self.unknown_label})"
        freq_str = f" at {self.frequency:.4e} Hz" if self.frequency is not None else ""
        return f"Singular matrix at {where}{freq_str}: largest pivot {self.pivot_magnitude:.3e}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Singular Matrix Encountered",
            details=str(self),
            suggestion="This is usually a floating node (no path to ground), a loop of ideal voltage sources or ammeters, or a source shorted by a wire. Check the connections around the named unknown.",
            context={
                'unknown': self.unknown_label or f"row {self.row}",
                'frequency': f"{self.frequency:.4e} Hz" if self.frequency is not None else None,
            }
        )


@dataclass()
class TransientDivergenceError(DiagnosableError):
    """Raised when a transient step produces a non-finite or implausibly large value."""
    time: float
    value: float
    unknown_label: Optional[str] = None

    def __str__(self):
        where = f" in {self.unknown_label}" if self.unknown_label else ""
        return f"Transient solution diverged at t = {self.time:.6e} s{where}: value {self.value!r}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Transient Divergence",
            details=str(self),
            suggestion="Reduce the time step, or check for an unstable feedback loop or an element value that is off by several orders of magnitude.",
            context={'unknown': self.unknown_label, 'time': f"{self.time:.6e} s"}
        )
