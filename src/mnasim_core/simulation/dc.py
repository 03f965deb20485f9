# src/mnasim_core/simulation/dc.py
import logging

import numpy as np

from .config import DC_NEWTON, AnalysisType
from .newton import NewtonRaphsonEngine
from .readings import extract_branch_currents, extract_meter_readings, extract_node_voltages
from .results import DCResult
from .solver import SOLVER_FAILURES, MnaSolverBase
from .stamps import Stamper

logger = logging.getLogger(__name__)


class DCSolver(MnaSolverBase):
    """
    DC operating point. Capacitors are open, inductors a 1e6 S short, AC sources
    contribute their DC value (single-phase) or nothing (three-phase). Linear
    circuits are solved in one pass; diodes and saturating op-amps are iterated
    with Newton-Raphson.
    """
    analysis_name = "DC"

    def solve(self) -> DCResult:
        logger.info(f"Starting DC analysis of '{self.netlist.name}'.")
        layout = None
        warnings = ()
        try:
            prepared = self.prepare()
            layout, warnings = prepared.layout, prepared.warnings
            stamper = Stamper(self.netlist, layout)
            engine = NewtonRaphsonEngine.for_netlist(
                self.netlist, layout,
                build=lambda junctions: stamper.build(AnalysisType.DC, junction_voltages=junctions),
                settings=self.newton or DC_NEWTON,
            )
            with self.numeric_guard():
                state = engine.run()
            solution = state.solution
            if not np.all(np.isfinite(solution)):
                raise FloatingPointError("the DC solution contains non-finite values")
        except SOLVER_FAILURES as e:
            return DCResult.failure(self.describe_failure(e, layout), warnings)

        if not state.converged:
            warnings = warnings + (
                f"Newton-Raphson did not converge within {state.iteration} iterations "
                f"(last max dV {state.max_delta:.3e} V).",
            )
        result = DCResult(
            success=True,
            node_voltages=extract_node_voltages(prepared.assignment, solution),
            branch_currents=extract_branch_currents(layout, solution),
            meter_readings=extract_meter_readings(self.netlist, layout, solution),
            terminal_nets=prepared.assignment.terminal_net_names(),
            junction_voltages=dict(state.junction_voltages),
            converged=state.converged,
            iterations=state.iteration,
            warnings=warnings,
        )
        logger.info(
            f"DC analysis of '{self.netlist.name}' finished: {len(result.node_voltages)} nets, "
            f"{state.iteration} iteration(s), converged={state.converged}."
        )
        return result
