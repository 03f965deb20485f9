# src/mnasim_core/errors.py
import logging
from abc import abstractmethod
from typing import Any, Dict, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# --- User-Facing Exception Hierarchy ---

class MnaSimError(Exception):
    """Base class for all custom, user-facing errors in mnasim_core."""
    pass

class NetlistBuildError(MnaSimError):
    """
    Raised when turning a netlist file into a Netlist fails (file access, YAML syntax,
    schema violations, unknown component types or invalid parameters).
    The message is a pre-formatted diagnostic report.
    """
    pass

class SimulationRunError(MnaSimError):
    """
    Raised by the strict facade helpers when an analysis returns a failure result.
    The message is a pre-formatted diagnostic report.
    """
    pass

class FrameworkLogicError(Exception):
    """
    Raised when an internal contract of the package itself is broken (for example a
    component kind with no stamp function). Never converted into a failure result.
    """
    pass


# --- Diagnostic Protocol & Base Exception ---

@runtime_checkable
class Diagnosable(Protocol):
    """Anything that can render its own multi-line diagnostic report."""
    def get_diagnostic_report(self) -> str:
        ...

class DiagnosableError(Exception, Diagnosable):
    """
    Concrete, catchable base for all internal exceptions that know how to describe
    themselves. Subclasses must implement `get_diagnostic_report`.
    """
    @abstractmethod
    def get_diagnostic_report(self) -> str:
        raise NotImplementedError


# --- Stateless Formatting Utility ---

def format_diagnostic_report(
    error_type: str,
    details: str,
    suggestion: str,
    context: Dict[str, Any]
) -> str:
    """
    Formats the multi-line report shared by every diagnosable error.

    Args:
        error_type: The high-level category of the error (e.g., "Singular Matrix").
        details: A detailed, potentially multi-line description of the problem.
        suggestion: Actionable advice for resolving the issue.
        context: Optional contextual fields. Recognized keys are 'component',
                 'source_file', 'user_input', 'unknown', 'time' and 'frequency'.

    Returns:
        The formatted report string.
    """
    lines = [
        "\n",
        "================ mnasim_core: Diagnostic Report ================",
        f"Error Type:     {error_type}",
    ]
    if component := context.get('component'):
        lines.append(f"Component:      {component}")
    if source_file := context.get('source_file'):
        lines.append(f"Source File:    {source_file}")
    if user_input := context.get('user_input'):
        lines.append(f"User Input:     '{user_input}'")
    if unknown := context.get('unknown'):
        lines.append(f"Unknown:        {unknown}")
    if (time := context.get('time')) is not None:
        lines.append(f"Time:           {time}")
    if frequency := context.get('frequency'):
        lines.append(f"Frequency:      {frequency}")

    lines.append("\nDetails:")
    for line in details.splitlines():
        lines.append(f"  {line}")

    if suggestion:
        lines.append("\nSuggestion:")
        for line in suggestion.splitlines():
            lines.append(f"  {line}")

    lines.append("================================================================")
    return "\n".join(lines)
