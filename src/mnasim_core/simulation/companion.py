# src/mnasim_core/simulation/companion.py
"""
Backward-Euler history of the energy-storage elements during a transient run.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict

import numpy as np

from ..components.base_enums import ComponentKind
from ..netlist.data_structures import Netlist
from .layout import MnaLayout, net_voltage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompanionState:
    """
    History values from the previous time step, keyed by component id.

    - capacitor_voltages: V(left) - V(right) of each capacitor.
    - inductor_currents: left -> right current of each inductor.
    - load_currents: left -> right current of each (non-open) load.
    - pole_voltages: internal pole voltage of each op-amp.

    A fresh state is all zeros. States are never mutated; `advance` returns the
    next one.
    """
    capacitor_voltages: Dict[str, float] = field(default_factory=dict)
    inductor_currents: Dict[str, float] = field(default_factory=dict)
    load_currents: Dict[str, float] = field(default_factory=dict)
    pole_voltages: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def initial(cls, netlist: Netlist) -> "CompanionState":
        def zeros(kind: ComponentKind) -> Dict[str, float]:
            return {c.instance_id: 0.0 for c in netlist if c.kind is kind}

        return cls(
            capacitor_voltages=zeros(ComponentKind.CAPACITOR),
            inductor_currents=zeros(ComponentKind.INDUCTOR),
            load_currents=zeros(ComponentKind.LOAD),
            pole_voltages=zeros(ComponentKind.OPAMP),
        )

    def advance(self, netlist: Netlist, layout: MnaLayout, solution: np.ndarray, time_step: float) -> "CompanionState":
        """Computes the history for the next step from this step's converged solution."""
        h = time_step
        capacitors, inductors, loads, poles = {}, {}, {}, {}
        for component in netlist:
            slots = layout.slots[component.instance_id]
            kind = component.kind
            if kind is ComponentKind.CAPACITOR:
                capacitors[component.instance_id] = float(
                    net_voltage(solution, slots.nets[0]) - net_voltage(solution, slots.nets[1]))
            elif kind is ComponentKind.INDUCTOR:
                v = net_voltage(solution, slots.nets[0]) - net_voltage(solution, slots.nets[1])
                i_prev = self.inductor_currents.get(component.instance_id, 0.0)
                inductors[component.instance_id] = float(i_prev + h / component.properties["inductance"] * v)
            elif kind is ComponentKind.LOAD:
                impedance = component.impedance()
                if impedance is None:
                    loads[component.instance_id] = 0.0
                    continue
                v = net_voltage(solution, slots.nets[0]) - net_voltage(solution, slots.nets[1])
                i_prev = self.load_currents.get(component.instance_id, 0.0)
                r, l_ = impedance.resistance, impedance.inductance
                loads[component.instance_id] = float((h * v + l_ * i_prev) / (l_ + h * r))
            elif kind is ComponentKind.OPAMP:
                poles[component.instance_id] = float(net_voltage(solution, slots.nets[3]))
        return CompanionState(capacitors, inductors, loads, poles)
