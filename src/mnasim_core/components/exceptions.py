# src/mnasim_core/components/exceptions.py
"""
Diagnosable exceptions raised by the components subsystem.
"""
from dataclasses import dataclass

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class ComponentError(DiagnosableError):
    """
    Raised when a component cannot be constructed or configured, for example because a
    parameter has the wrong dimension, is out of range, or the component type is unknown.
    """
    component_fqn: str
    details: str

    def __str__(self):
        return f"Component '{self.component_fqn}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Component Definition Error",
            details=self.details,
            suggestion="Check the component's type and parameters. Values may be plain numbers in SI units or strings with units such as '1 kohm' or '100 nF'.",
            context={'component': self.component_fqn}
        )
