# src/mnasim_core/simulation/solver.py
"""
Shared preparation and failure handling of the DC, AC and transient solvers.

Every solver goes through the same steps before stamping anything:

1. validate the netlist (empty circuit, ground, source, unconnected terminals),
2. resolve nets,
3. size the system with MnaLayout.

Validation errors short-circuit to a failure result without building a matrix.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..errors import DiagnosableError
from ..netlist.data_structures import Netlist
from ..validation import CircuitValidator, SemanticValidationError, ValidationIssueLevel
from .config import NewtonSettings
from .exceptions import MnaInputError, SingularMatrixError
from .layout import MnaLayout
from .nets import NetAssignment, NetResolver

logger = logging.getLogger(__name__)

#: Exceptions a solver converts into a failure result instead of raising.
SOLVER_FAILURES = (DiagnosableError, ZeroDivisionError, FloatingPointError)


@dataclass(frozen=True)
class PreparedCircuit:
    """A validated netlist with its resolved nets and MNA layout."""
    netlist: Netlist
    assignment: NetAssignment
    layout: MnaLayout
    warnings: Tuple[str, ...] = ()


class MnaSolverBase:
    """
    Base of the three analysis orchestrators. A solver instance owns everything
    it computes for one run; run two analyses concurrently with two instances.
    """
    analysis_name = "MNA"

    def __init__(self, netlist: Netlist, newton: Optional[NewtonSettings] = None):
        self.netlist = netlist
        self.newton = newton

    def prepare(self) -> PreparedCircuit:
        """
        Validates, resolves and sizes the netlist.

        Raises:
            SemanticValidationError: If any error-level validation issue is found.
            MnaInputError: If the system would have no unknowns.
        """
        assignment = None if self.netlist.is_empty else NetResolver().resolve(self.netlist)
        issues = CircuitValidator(self.netlist, assignment).validate()
        if any(issue.level == ValidationIssueLevel.ERROR for issue in issues):
            raise SemanticValidationError(issues)

        warnings = tuple(issue.message for issue in issues if issue.level == ValidationIssueLevel.WARNING)
        for warning in warnings:
            logger.warning(warning)

        layout = MnaLayout.build(self.netlist, assignment)
        if layout.size == 0:
            raise MnaInputError("The circuit has no unknowns: every terminal is on the ground net.", self.netlist.name)
        return PreparedCircuit(self.netlist, assignment, layout, warnings)

    def describe_failure(self, error: BaseException, layout: Optional[MnaLayout] = None) -> str:
        """
        Turns a caught exception into the `error` text of a failure result and logs
        its full diagnostic report.
        """
        if isinstance(error, SingularMatrixError) and layout is not None and error.unknown_label is None:
            error.unknown_label = layout.label(error.row)

        if isinstance(error, DiagnosableError):
            logger.error(f"{self.analysis_name} analysis of '{self.netlist.name}' failed:{error.get_diagnostic_report()}")
            return str(error)

        message = f"Numerical error during {self.analysis_name} analysis ({type(error).__name__}): {error}"
        logger.error(message)
        return message

    @staticmethod
    def numeric_guard():
        """Turns numpy's silent division and invalid-operation warnings into FloatingPointError."""
        return np.errstate(divide="raise", invalid="raise")
