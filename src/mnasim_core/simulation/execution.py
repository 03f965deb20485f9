# src/mnasim_core/simulation/execution.py
"""
Public entry points for running analyses.

A thin facade over the solver classes: each `run_*` function instantiates a fresh
solver (so no state is shared between calls) and returns its result object.
Failures come back as results with `success=False`; only the file-based entry
point raises, and only for problems found before any analysis could start.
"""
import logging
from pathlib import Path
from typing import Optional, Union

from ..components.base_enums import ComponentKind
from ..errors import DiagnosableError, NetlistBuildError, SimulationRunError, format_diagnostic_report
from ..netlist.data_structures import Netlist
from ..netlist_builder import NetlistBuilder
from ..parser import NetlistParser
from .ac import ACSolver
from .config import AnalysisConfig, AnalysisType, NewtonSettings, parse_analysis_config
from .dc import DCSolver
from .results import ACResult, DCResult, TransientResult
from .transient import TransientSolver

logger = logging.getLogger(__name__)

AnalysisResult = Union[DCResult, ACResult, TransientResult]


def run_dc(netlist: Netlist, newton: Optional[NewtonSettings] = None) -> DCResult:
    """DC operating point of `netlist`."""
    return DCSolver(netlist, newton).solve()


def run_ac(netlist: Netlist, frequency: float, operating_point: Optional[DCResult] = None) -> ACResult:
    """
    Phasor solution at `frequency` (Hz). Circuits with diodes are linearized at
    `operating_point`; when none is given, a DC analysis is run first to find one.
    """
    if operating_point is None and any(c.kind is ComponentKind.DIODE for c in netlist):
        logger.debug("Computing the DC operating point for the diodes of the AC analysis.")
        operating_point = run_dc(netlist)
    return ACSolver(netlist, frequency, operating_point).solve()


def run_transient(
    netlist: Netlist, end_time: float, time_step: float, newton: Optional[NewtonSettings] = None
) -> TransientResult:
    """Backward-Euler transient from 0 to `end_time` with fixed step `time_step` (seconds)."""
    return TransientSolver(netlist, end_time, time_step, newton).solve()


def run_analysis(netlist: Netlist, config: AnalysisConfig) -> AnalysisResult:
    """Runs the analysis described by `config`."""
    if config.analysis is AnalysisType.AC:
        return run_ac(netlist, config.frequency)
    if config.analysis is AnalysisType.TRANSIENT:
        return run_transient(netlist, config.end_time, config.time_step, config.newton)
    return run_dc(netlist, config.newton)


def run_netlist_file(path: Union[str, Path]) -> AnalysisResult:
    """
    Parses a YAML netlist, builds it and runs the analysis its 'analysis' block
    asks for (DC when there is none).

    Raises:
        NetlistBuildError: If the file cannot be parsed, fails schema validation, or
                           describes components or an analysis that cannot be built.
    """
    try:
        ir = NetlistParser().parse(path)
        config = parse_analysis_config(ir.raw_analysis_config)
    except DiagnosableError as e:
        logger.error(f"Could not load netlist file '{path}': {e}")
        raise NetlistBuildError(e.get_diagnostic_report()) from e

    netlist = NetlistBuilder().build(ir)
    logger.info(f"Running {config.analysis.value} analysis of '{netlist.name}'.")
    return run_analysis(netlist, config)


def require_success(result: AnalysisResult) -> AnalysisResult:
    """
    Returns `result` unchanged when it succeeded; raises SimulationRunError with a
    diagnostic report otherwise. For callers that prefer exceptions to checking
    `success`.
    """
    if result.success:
        return result
    report = format_diagnostic_report(
        error_type=f"{type(result).__name__.replace('Result', '')} Analysis Failed",
        details=result.error or "The analysis failed without an error message.",
        suggestion="See the log for the full diagnostic report of the underlying error.",
        context={}
    )
    raise SimulationRunError(report)
