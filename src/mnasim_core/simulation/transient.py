# src/mnasim_core/simulation/transient.py
import logging
import math
from typing import Dict, List, Optional

import numpy as np

from ..components.base_enums import ComponentKind, ProbeMode
from ..constants import DIVERGENCE_LIMIT
from ..netlist.data_structures import Netlist
from .companion import CompanionState
from .config import TRANSIENT_NEWTON, AnalysisType, NewtonSettings
from .exceptions import MnaInputError, TransientDivergenceError
from .layout import MnaLayout, net_voltage
from .newton import NewtonRaphsonEngine
from .results import TransientResult
from .solver import SOLVER_FAILURES, MnaSolverBase, PreparedCircuit
from .stamps import Stamper

logger = logging.getLogger(__name__)

#: Component kinds whose own current is recorded in `component_currents`.
TRACKED_CURRENT_KINDS = (
    ComponentKind.RESISTOR, ComponentKind.CAPACITOR, ComponentKind.INDUCTOR,
    ComponentKind.LOAD, ComponentKind.DIODE,
)


class _SampleRecorder:
    """Collects one sample per time point and turns them into arrays at the end."""

    def __init__(self, prepared: PreparedCircuit, time_step: float):
        self.netlist = prepared.netlist
        self.assignment = prepared.assignment
        self.layout: MnaLayout = prepared.layout
        self.time_step = time_step
        self.times: List[float] = []
        self.node_voltages: Dict[str, List[float]] = {net.name: [] for net in self.assignment.nets}
        if self.assignment.ground is not None:
            self.node_voltages[self.assignment.ground.name] = []
        self.branch_currents: Dict[str, List[float]] = {label: [] for label in self.layout.branch_index}
        self.component_currents: Dict[str, List[float]] = {
            c.instance_id: [] for c in self.netlist if c.kind in TRACKED_CURRENT_KINDS
        }
        self.scope_traces: Dict[str, List[float]] = {}
        for scope in self.netlist:
            if scope.kind is ComponentKind.OSCILLOSCOPE:
                for channel in scope.channels():
                    self.scope_traces[f"{scope.instance_id}.{channel.label}"] = []

    def record(self, time: float, x: np.ndarray, before: CompanionState, after: CompanionState) -> None:
        self.times.append(time)
        if self.assignment.ground is not None:
            self.node_voltages[self.assignment.ground.name].append(0.0)
        for net in self.assignment.nets:
            self.node_voltages[net.name].append(float(x[net.net_id]))
        for label, index in self.layout.branch_index.items():
            self.branch_currents[label].append(float(x[index]))

        for component in self.netlist:
            kind = component.kind
            slots = self.layout.slots[component.instance_id]
            cid = component.instance_id
            if kind in TRACKED_CURRENT_KINDS:
                v = float(net_voltage(x, slots.nets[0]) - net_voltage(x, slots.nets[1]))
                if kind is ComponentKind.RESISTOR:
                    current = v * component.conductance
                elif kind is ComponentKind.CAPACITOR:
                    g = component.properties["capacitance"] / self.time_step
                    current = g * (v - before.capacitor_voltages.get(cid, 0.0))
                elif kind is ComponentKind.INDUCTOR:
                    current = after.inductor_currents[cid]
                elif kind is ComponentKind.LOAD:
                    current = after.load_currents[cid]
                else:
                    current = component.current(v)
                self.component_currents[cid].append(float(current))
            elif kind is ComponentKind.OSCILLOSCOPE:
                ports = {port: i for i, port in enumerate(type(component).declare_ports())}
                for channel in component.channels():
                    key = f"{cid}.{channel.label}"
                    if channel.mode is ProbeMode.CURRENT:
                        value = x[self.layout.branch_index[f"{cid}.{channel.key}"]]
                    else:
                        value = (net_voltage(x, slots.nets[ports[channel.positive]])
                                 - net_voltage(x, slots.nets[ports[channel.negative]]))
                    self.scope_traces[key].append(float(value))

    def to_result(self, non_converged: List[float], warnings, error: Optional[str] = None) -> TransientResult:
        def arrays(series: Dict[str, List[float]]) -> Dict[str, np.ndarray]:
            return {name: np.asarray(values, dtype=float) for name, values in series.items()}

        return TransientResult(
            success=error is None,
            times=np.asarray(self.times, dtype=float),
            node_voltages=arrays(self.node_voltages),
            branch_currents=arrays(self.branch_currents),
            component_currents=arrays(self.component_currents),
            oscilloscope_traces=arrays(self.scope_traces),
            terminal_nets=self.assignment.terminal_net_names(),
            non_converged_times=tuple(non_converged),
            warnings=tuple(warnings),
            error=error,
        )


class TransientSolver(MnaSolverBase):
    """
    Fixed-step backward-Euler integration from t = 0 to `end_time`.

    The solution is computed at t_k = k*h for k = 0 .. round(end_time / h). The
    system at t_k uses the companion history of t_(k-1); before t_0 all history is
    zero. Each step runs Newton-Raphson seeded with the previous step's solution
    and diode junction voltages. A non-finite value, or one larger than
    DIVERGENCE_LIMIT, aborts the run with a failure that keeps the samples
    computed so far.
    """
    analysis_name = "Transient"

    def __init__(self, netlist: Netlist, end_time: float, time_step: float, newton: Optional[NewtonSettings] = None):
        super().__init__(netlist, newton)
        self.end_time = end_time
        self.time_step = time_step

    def time_points(self) -> np.ndarray:
        steps = int(round(self.end_time / self.time_step))
        return np.arange(steps + 1) * self.time_step

    def _check_inputs(self) -> None:
        for name, value in (("end_time", self.end_time), ("time_step", self.time_step)):
            if not (isinstance(value, (int, float)) and math.isfinite(value) and value > 0):
                raise MnaInputError(f"Transient analysis needs a positive, finite {name}; got {value!r}.", self.netlist.name)
        if self.time_step > self.end_time:
            raise MnaInputError(
                f"time_step ({self.time_step} s) must not exceed end_time ({self.end_time} s).", self.netlist.name
            )

    @staticmethod
    def _check_divergence(x: np.ndarray, time: float, layout: MnaLayout) -> None:
        bad = ~np.isfinite(x) | (np.abs(np.nan_to_num(x, nan=0.0)) > DIVERGENCE_LIMIT)
        if np.any(bad):
            index = int(np.argmax(bad))
            raise TransientDivergenceError(time=float(time), value=float(x[index]), unknown_label=layout.label(index))

    def solve(self) -> TransientResult:
        logger.info(
            f"Starting transient analysis of '{self.netlist.name}' "
            f"(end {self.end_time!r} s, step {self.time_step!r} s)."
        )
        layout = None
        warnings = ()
        recorder = None
        non_converged: List[float] = []
        try:
            self._check_inputs()
            prepared = self.prepare()
            layout, warnings = prepared.layout, prepared.warnings
            recorder = _SampleRecorder(prepared, self.time_step)
            stamper = Stamper(self.netlist, layout)
            engine = NewtonRaphsonEngine.for_netlist(
                self.netlist, layout, build=None, settings=self.newton or TRANSIENT_NEWTON
            )
            times = self.time_points()
            logger.debug(f"Transient run over {len(times)} time points, system size {layout.size}.")

            h = self.time_step
            companion = CompanionState.initial(self.netlist)
            previous = None
            for time in times:
                step_engine = engine.with_build(
                    lambda junctions, t=float(time), c=companion: stamper.build(
                        AnalysisType.TRANSIENT, time=t, time_step=h, junction_voltages=junctions, companion=c
                    )
                )
                seed = step_engine.seed(
                    previous.solution if previous is not None else None,
                    previous.junction_voltages if previous is not None else None,
                )
                state = step_engine.run(seed)
                self._check_divergence(state.solution, time, layout)
                if not state.converged:
                    non_converged.append(float(time))

                advanced = companion.advance(self.netlist, layout, state.solution, h)
                recorder.record(float(time), state.solution, companion, advanced)
                companion, previous = advanced, state
        except SOLVER_FAILURES as e:
            message = self.describe_failure(e, layout)
            if recorder is None:
                return TransientResult.failure(message, warnings)
            return recorder.to_result(non_converged, warnings, error=message)

        if non_converged:
            warnings = warnings + (
                f"Newton-Raphson did not converge at {len(non_converged)} time point(s), "
                f"first at t = {non_converged[0]:.6e} s.",
            )
        result = recorder.to_result(non_converged, warnings)
        logger.info(
            f"Transient analysis of '{self.netlist.name}' finished: {len(result.times)} time points, "
            f"{len(non_converged)} non-converged."
        )
        return result
