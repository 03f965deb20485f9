# src/mnasim_core/simulation/ac.py
import logging
import math
from typing import Dict, Optional

from ..components.base_enums import ComponentKind
from ..constants import DIODE_SEED_VOLTAGE
from ..netlist.data_structures import Netlist
from .config import AnalysisType
from .exceptions import MnaInputError, SingularMatrixError
from .readings import extract_branch_currents, extract_meter_readings, extract_node_voltages
from .results import ACResult, DCResult
from .solver import SOLVER_FAILURES, MnaSolverBase
from .stamps import Stamper

logger = logging.getLogger(__name__)


class ACSolver(MnaSolverBase):
    """
    Sinusoidal steady state at one frequency, on a complex system.

    The AC model is linear: no Newton-Raphson runs. Diodes contribute their
    small-signal conductance at an operating point, taken from `operating_point`
    when a successful DCResult is supplied and DIODE_SEED_VOLTAGE otherwise.
    """
    analysis_name = "AC"

    def __init__(self, netlist: Netlist, frequency: float, operating_point: Optional[DCResult] = None):
        super().__init__(netlist)
        self.frequency = frequency
        self.operating_point = operating_point

    @property
    def omega(self) -> float:
        return 2.0 * math.pi * self.frequency

    def _junction_voltages(self) -> Dict[str, float]:
        known = {}
        if self.operating_point is not None and self.operating_point.success:
            known = self.operating_point.junction_voltages
        return {
            c.instance_id: known.get(c.instance_id, DIODE_SEED_VOLTAGE)
            for c in self.netlist if c.kind is ComponentKind.DIODE
        }

    def solve(self) -> ACResult:
        logger.info(f"Starting AC analysis of '{self.netlist.name}' at {self.frequency!r} Hz.")
        layout = None
        warnings = ()
        try:
            if not (isinstance(self.frequency, (int, float)) and math.isfinite(self.frequency) and self.frequency > 0):
                raise MnaInputError(f"AC analysis needs a positive, finite frequency; got {self.frequency!r}.", self.netlist.name)
            prepared = self.prepare()
            layout, warnings = prepared.layout, prepared.warnings
            system = Stamper(self.netlist, layout).build(
                AnalysisType.AC, omega=self.omega, junction_voltages=self._junction_voltages()
            )
            with self.numeric_guard():
                solution = system.solve()
        except SOLVER_FAILURES as e:
            if isinstance(e, SingularMatrixError) and e.frequency is None:
                e.frequency = self.frequency
            return ACResult.failure(self.describe_failure(e, layout), self.frequency, warnings)

        result = ACResult(
            success=True,
            frequency=self.frequency,
            node_voltages=extract_node_voltages(prepared.assignment, solution, is_complex=True),
            branch_currents=extract_branch_currents(layout, solution, is_complex=True),
            meter_readings=extract_meter_readings(self.netlist, layout, solution, is_complex=True),
            terminal_nets=prepared.assignment.terminal_net_names(),
            warnings=warnings,
        )
        logger.info(f"AC analysis of '{self.netlist.name}' at {self.frequency:.6g} Hz finished.")
        return result
