# src/mnasim_core/simulation/newton.py
"""
Newton-Raphson iteration over the MNA system.

The engine is a set of explicit state transitions:

    seed() -> step(state) -> step(state) -> ... -> converged | budget exhausted

Every transition takes a frozen NewtonState and returns a new one; the engine
itself keeps no per-run mutable fields, so a single step can be tested in
isolation and two runs never interfere.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Mapping, NamedTuple, Optional, Tuple

import numpy as np

from ..components.base_enums import ComponentKind
from ..components.elements import Diode
from ..constants import DIODE_SEED_VOLTAGE
from ..netlist.data_structures import Netlist
from .config import DC_NEWTON, NewtonSettings
from .layout import MnaLayout, net_voltage
from .linear_system import LinearSystem

logger = logging.getLogger(__name__)

#: Builds a fresh system for the given diode junction voltages.
BuildFunction = Callable[[Mapping[str, float]], LinearSystem]


class DiodeSite(NamedTuple):
    diode: Diode
    anode: Optional[int]
    cathode: Optional[int]


class ClampSite(NamedTuple):
    slot: int
    limit: float


@dataclass(frozen=True)
class NewtonState:
    """
    One point of a Newton-Raphson run.

    Attributes:
        solution: The current iterate of the full unknown vector.
        junction_voltages: Linearization voltage of every diode, by id.
        iteration: Number of completed build-solve cycles.
        max_delta: Largest net-voltage change of the last cycle (inf before the first).
        converged: True once max_delta fell below the tolerance.
        delta_history: max_delta of every completed cycle, in order.
    """
    solution: np.ndarray
    junction_voltages: Dict[str, float] = field(default_factory=dict)
    iteration: int = 0
    max_delta: float = float("inf")
    converged: bool = False
    delta_history: Tuple[float, ...] = ()


class NewtonRaphsonEngine:
    """
    Re-linearizes and re-solves until the net voltages stop moving.

    Diodes are linearized at a junction voltage derived from the previous iterate
    with junction limiting applied. Op-amp output and pole nets are clamped to the
    saturation voltage after each solve, before the convergence check. A circuit
    with neither is solved in exactly one cycle.
    """

    def __init__(
        self,
        build: BuildFunction,
        num_nets: int,
        size: int,
        diodes: Optional[List[DiodeSite]] = None,
        clamps: Optional[List[ClampSite]] = None,
        settings: NewtonSettings = DC_NEWTON,
    ):
        self.build = build
        self.num_nets = num_nets
        self.size = size
        self.diodes: Tuple[DiodeSite, ...] = tuple(diodes or ())
        self.clamps: Tuple[ClampSite, ...] = tuple(clamps or ())
        self.settings = settings

    @classmethod
    def for_netlist(
        cls, netlist: Netlist, layout: MnaLayout, build: BuildFunction, settings: NewtonSettings = DC_NEWTON
    ) -> "NewtonRaphsonEngine":
        """Collects the diode and op-amp sites of `netlist` from its layout."""
        diodes: List[DiodeSite] = []
        clamps: List[ClampSite] = []
        for component in netlist:
            slots = layout.slots[component.instance_id]
            if component.kind is ComponentKind.DIODE:
                diodes.append(DiodeSite(component, slots.nets[0], slots.nets[1]))
            elif component.kind is ComponentKind.OPAMP:
                limit = component.properties["saturation_voltage"]
                for slot in (slots.nets[2], slots.nets[3]):  # out, internal_pole
                    if slot is not None:
                        clamps.append(ClampSite(slot, limit))
        return cls(build, layout.num_nets, layout.size, diodes, clamps, settings)

    def with_build(self, build: BuildFunction) -> "NewtonRaphsonEngine":
        """The same engine driving a different build callback (one per transient step)."""
        return NewtonRaphsonEngine(build, self.num_nets, self.size, list(self.diodes), list(self.clamps), self.settings)

    @property
    def is_nonlinear(self) -> bool:
        return bool(self.diodes or self.clamps)

    def seed(
        self,
        solution: Optional[np.ndarray] = None,
        junction_voltages: Optional[Mapping[str, float]] = None,
    ) -> NewtonState:
        """
        The starting state. Without arguments: zeros, with DIODE_SEED_VOLTAGE on every
        diode anode net. A transient step passes the previous step's solution and
        junction voltages instead.
        """
        if solution is None:
            x = np.zeros(self.size)
            for site in self.diodes:
                if site.anode is not None:
                    x[site.anode] = DIODE_SEED_VOLTAGE
        else:
            x = np.array(solution, dtype=float, copy=True)

        junctions = {site.diode.instance_id: self._junction_voltage(site, x) for site in self.diodes}
        if junction_voltages:
            junctions.update({k: v for k, v in junction_voltages.items() if k in junctions})
        return NewtonState(solution=x, junction_voltages=junctions)

    def step(self, state: NewtonState) -> NewtonState:
        """One build-solve-clamp-check cycle."""
        junctions = {
            site.diode.instance_id: site.diode.limit_junction_voltage(
                self._junction_voltage(site, state.solution),
                state.junction_voltages.get(site.diode.instance_id, 0.0),
            )
            for site in self.diodes
        }

        system = self.build(junctions)
        x = system.solve()

        for clamp in self.clamps:
            x[clamp.slot] = min(max(x[clamp.slot], -clamp.limit), clamp.limit)

        n = self.num_nets
        max_delta = float(np.max(np.abs(x[:n] - state.solution[:n]))) if n else 0.0
        return NewtonState(
            solution=x,
            junction_voltages=junctions,
            iteration=state.iteration + 1,
            max_delta=max_delta,
            converged=max_delta < self.settings.tolerance,
            delta_history=state.delta_history + (max_delta,),
        )

    def run(self, state: Optional[NewtonState] = None) -> NewtonState:
        """
        Steps from `state` (or a fresh seed) until convergence or until the iteration
        budget is spent. Non-convergence is reported through `converged=False` and a
        warning, never raised.
        """
        state = state if state is not None else self.seed()
        if not self.is_nonlinear:
            return replace(self.step(state), converged=True)

        while True:
            state = self.step(state)
            if state.converged:
                logger.debug(f"Newton-Raphson converged in {state.iteration} iterations (max dV {state.max_delta:.3e} V).")
                return state
            if state.iteration >= self.settings.max_iterations:
                logger.warning(
                    f"Newton-Raphson did not converge in {state.iteration} iterations "
                    f"(last max dV {state.max_delta:.3e} V); using the last iterate."
                )
                return state

    @staticmethod
    def _junction_voltage(site: DiodeSite, solution: np.ndarray) -> float:
        return float(net_voltage(solution, site.anode) - net_voltage(solution, site.cathode))
