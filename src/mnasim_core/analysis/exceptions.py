# src/mnasim_core/analysis/exceptions.py
"""
Defines custom, diagnosable exceptions for the analysis services.
"""
from dataclasses import dataclass

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class TopologyAnalysisError(DiagnosableError, ValueError):
    """Raised when a netlist cannot be turned into a connectivity graph."""
    circuit_name: str
    details: str

    def __str__(self):
        return self.details

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Topological Analysis Error",
            details=self.details,
            suggestion="Resolve the netlist's nets before running the topology analysis.",
            context={'component': self.circuit_name}
        )
