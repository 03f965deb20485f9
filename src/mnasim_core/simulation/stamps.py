# src/mnasim_core/simulation/stamps.py
"""
Per-component-kind contributions to the MNA system.

Each ComponentKind maps to exactly one stamp function in STAMP_TABLE. A stamp
function receives the component, its ElementSlots (row/column of every terminal,
branch unknown and internal net) and a StampContext describing the analysis,
and accumulates its terms into the context's LinearSystem. A slot of None is the
ground net: its row and column do not exist and are skipped.

Sign conventions:
- Matrix rows are KCL equations "sum of currents leaving the net = injected current".
- A branch unknown is the current entering the element's positive terminal and
  flowing through it to the negative terminal.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional

import numpy as np

from ..components.base import ComponentBase
from ..components.base_enums import ComponentKind, ProbeMode
from ..constants import (
    DC_INDUCTOR_SHORT_SIEMENS, IDEAL_METER_RESISTANCE_OHMS, LOAD_RATED_FREQUENCY,
    OPAMP_POLE_CONDUCTANCE_SIEMENS, OPEN_CIRCUIT_SIEMENS, OSCILLOSCOPE_LEAKAGE_SIEMENS,
    TRANSFORMER_PRIMARY_LEAKAGE_SIEMENS, TRANSFORMER_SECONDARY_LEAKAGE_SIEMENS,
)
from ..errors import FrameworkLogicError
from ..netlist.data_structures import Netlist
from .companion import CompanionState
from .config import AnalysisType
from .layout import ElementSlots, MnaLayout
from .linear_system import LinearSystem

logger = logging.getLogger(__name__)

Slot = Optional[int]
METER_CONDUCTANCE = 1.0 / IDEAL_METER_RESISTANCE_OHMS


@dataclass
class StampContext:
    """
    Everything a stamp function may need besides the component itself.

    Attributes:
        system: The LinearSystem being accumulated.
        analysis: DC, AC or TRANSIENT.
        omega: Angular frequency (AC only).
        time: Simulation time of the step being built (transient only).
        time_step: Backward-Euler step h (transient only).
        junction_voltages: Diode linearization voltage per diode id.
        companion: History of the previous time step (transient only).
    """
    system: LinearSystem
    analysis: AnalysisType
    omega: float = 0.0
    time: float = 0.0
    time_step: Optional[float] = None
    junction_voltages: Mapping[str, float] = field(default_factory=dict)
    companion: Optional[CompanionState] = None

    @property
    def is_ac(self) -> bool:
        return self.analysis is AnalysisType.AC

    @property
    def is_transient(self) -> bool:
        return self.analysis is AnalysisType.TRANSIENT

    @property
    def h(self) -> float:
        if self.time_step is None:
            raise FrameworkLogicError("A transient stamp was requested without a time step.")
        return self.time_step


# --- Primitives ---

def stamp_admittance(system: LinearSystem, a: Slot, b: Slot, y) -> None:
    """Admittance y between slots a and b (either may be ground)."""
    if a is not None:
        system.add(a, a, y)
    if b is not None:
        system.add(b, b, y)
    if a is not None and b is not None:
        system.add(a, b, -y)
        system.add(b, a, -y)


def stamp_current_source(system: LinearSystem, a: Slot, b: Slot, current) -> None:
    """Independent current `current` flowing from a to b through the element."""
    if a is not None:
        system.add_rhs(a, -current)
    if b is not None:
        system.add_rhs(b, current)


def stamp_branch_constraint(system: LinearSystem, pos: Slot, neg: Slot, branch: int, value) -> None:
    """
    Enforces V(pos) - V(neg) = value with branch unknown `branch`.

    This one primitive serves every element that fixes a voltage: voltage sources,
    ammeters, wattmeter current coils, three-phase phases and scope current channels.
    """
    if pos is not None:
        system.add(pos, branch, 1)
        system.add(branch, pos, 1)
    if neg is not None:
        system.add(neg, branch, -1)
        system.add(branch, neg, -1)
    system.add_rhs(branch, value)


# --- Per-kind stamp functions ---

def stamp_nothing(component: ComponentBase, slots: ElementSlots, ctx: StampContext) -> None:
    """Ground and junction markers only join nets."""


def stamp_resistor(component, slots, ctx):
    stamp_admittance(ctx.system, slots.nets[0], slots.nets[1], component.conductance)


def stamp_capacitor(component, slots, ctx):
    c = component.properties["capacitance"]
    left, right = slots.nets[0], slots.nets[1]
    if ctx.is_ac:
        stamp_admittance(ctx.system, left, right, 1j * ctx.omega * c)
    elif ctx.is_transient:
        g = c / ctx.h
        v_prev = ctx.companion.capacitor_voltages.get(component.instance_id, 0.0)
        stamp_admittance(ctx.system, left, right, g)
        stamp_current_source(ctx.system, right, left, g * v_prev)
    # DC: open circuit.


def stamp_inductor(component, slots, ctx):
    inductance = component.properties["inductance"]
    left, right = slots.nets[0], slots.nets[1]
    if ctx.is_ac:
        stamp_admittance(ctx.system, left, right, 1.0 / (1j * ctx.omega * inductance))
    elif ctx.is_transient:
        i_prev = ctx.companion.inductor_currents.get(component.instance_id, 0.0)
        stamp_admittance(ctx.system, left, right, ctx.h / inductance)
        stamp_current_source(ctx.system, left, right, i_prev)
    else:
        stamp_admittance(ctx.system, left, right, DC_INDUCTOR_SHORT_SIEMENS)


def stamp_voltage_source(component, slots, ctx):
    if ctx.is_ac:
        value = component.phasor()
    elif ctx.is_transient:
        value = component.value_at(ctx.time)
    else:
        value = component.dc_value()
    stamp_branch_constraint(ctx.system, slots.nets[0], slots.nets[1], slots.branches[0], value)


def stamp_three_phase_source(component, slots, ctx):
    if ctx.is_ac:
        values = component.phasors()
    elif ctx.is_transient:
        values = component.values_at(ctx.time)
    else:
        values = [0.0, 0.0, 0.0]
    neutral = slots.nets[3]
    for k, value in enumerate(values):
        stamp_branch_constraint(ctx.system, slots.nets[k], neutral, slots.branches[k], value)


def stamp_ammeter(component, slots, ctx):
    stamp_branch_constraint(ctx.system, slots.nets[0], slots.nets[1], slots.branches[0], 0.0)


def stamp_voltmeter(component, slots, ctx):
    stamp_admittance(ctx.system, slots.nets[0], slots.nets[1], METER_CONDUCTANCE)


def stamp_wattmeter(component, slots, ctx):
    m, l_, c, v = slots.nets
    stamp_branch_constraint(ctx.system, m, l_, slots.branches[0], 0.0)
    stamp_admittance(ctx.system, c, v, METER_CONDUCTANCE)


def stamp_oscilloscope(component, slots, ctx):
    for slot in slots.nets:
        stamp_admittance(ctx.system, slot, None, OSCILLOSCOPE_LEAKAGE_SIEMENS)
    index = {port: i for i, port in enumerate(type(component).declare_ports())}
    branches = iter(slots.branches)
    for channel in component.channels():
        pos, neg = slots.nets[index[channel.positive]], slots.nets[index[channel.negative]]
        if channel.mode is ProbeMode.CURRENT:
            stamp_branch_constraint(ctx.system, pos, neg, next(branches), 0.0)
        else:
            stamp_admittance(ctx.system, pos, neg, METER_CONDUCTANCE)


def stamp_load(component, slots, ctx):
    left, right = slots.nets[0], slots.nets[1]
    impedance = component.impedance()
    if impedance is None:
        stamp_admittance(ctx.system, left, right, OPEN_CIRCUIT_SIEMENS)
        return
    r = impedance.resistance
    if ctx.is_ac:
        frequency = ctx.omega / (2.0 * math.pi)
        z = r + 1j * impedance.reactance * (frequency / LOAD_RATED_FREQUENCY)
        stamp_admittance(ctx.system, left, right, 1.0 / z)
    elif ctx.is_transient:
        l_over_h = impedance.inductance / ctx.h
        g = 1.0 / (r + l_over_h)
        i_prev = ctx.companion.load_currents.get(component.instance_id, 0.0)
        stamp_admittance(ctx.system, left, right, g)
        stamp_current_source(ctx.system, left, right, i_prev * l_over_h * g)
    else:
        stamp_admittance(ctx.system, left, right, 1.0 / r)


def stamp_diode(component, slots, ctx):
    anode, cathode = slots.nets[0], slots.nets[1]
    v_d = ctx.junction_voltages.get(component.instance_id, 0.0)
    model = component.companion(v_d)
    stamp_admittance(ctx.system, anode, cathode, model.conductance)
    if not ctx.is_ac:
        stamp_current_source(ctx.system, anode, cathode, model.equivalent_current)


def stamp_opamp(component, slots, ctx):
    system = ctx.system
    p, n, out, pole = slots.nets
    props = component.properties
    a0 = props["open_loop_gain"]
    ac = component.common_mode_gain

    # Input stage.
    stamp_admittance(system, p, n, 1.0 / props["input_resistance"])
    stamp_admittance(system, p, None, component.common_mode_conductance)
    stamp_admittance(system, n, None, component.common_mode_conductance)

    # Dominant pole.
    pole_admittance = OPAMP_POLE_CONDUCTANCE_SIEMENS
    if ctx.is_ac:
        pole_admittance = pole_admittance + 1j * ctx.omega * component.pole_capacitance
    elif ctx.is_transient:
        g_cp = component.pole_capacitance / ctx.h
        pole_admittance += g_cp
        v_prev = ctx.companion.pole_voltages.get(component.instance_id, 0.0)
        stamp_current_source(system, None, pole, g_cp * v_prev)
    stamp_admittance(system, pole, None, pole_admittance)

    # Gain stage: V_pole = A0 (V+ - V-) + Ac (V+ + V-)/2 + A0 Vos.
    if pole is not None:
        if p is not None:
            system.add(pole, p, -(a0 + ac / 2.0))
        if n is not None:
            system.add(pole, n, -(-a0 + ac / 2.0))
        if not ctx.is_ac:
            system.add_rhs(pole, a0 * props["offset_voltage"])

    # Output stage: V_pole behind the output resistance.
    if out is not None:
        g_out = 1.0 / props["output_resistance"]
        system.add(out, out, g_out)
        if pole is not None:
            system.add(out, pole, -g_out)


def stamp_transformer(component, slots, ctx):
    system = ctx.system
    pp, pn, sp, sn = slots.nets
    mid = slots.internal_nets[0]
    primary = slots.branches[0]
    props = component.properties
    a = props["turns_ratio"]

    for slot in (pp, pn):
        stamp_admittance(system, slot, None, TRANSFORMER_PRIMARY_LEAKAGE_SIEMENS)
    for slot in (sp, sn):
        stamp_admittance(system, slot, None, TRANSFORMER_SECONDARY_LEAKAGE_SIEMENS)

    r_eq = props["series_resistance"]
    if ctx.is_ac:
        z_series = complex(r_eq, props["series_reactance"])
        y_series = 1.0 / z_series if abs(z_series) > 0 else DC_INDUCTOR_SHORT_SIEMENS
        y_shunt = 1.0 / props["core_resistance"] - 1j / props["magnetizing_reactance"]
    else:
        y_series = 1.0 / r_eq if r_eq > 0 else DC_INDUCTOR_SHORT_SIEMENS
        y_shunt = 1.0 / props["core_resistance"]
    stamp_admittance(system, pp, mid, y_series)
    stamp_admittance(system, mid, pn, y_shunt)

    # Ideal a:1 coupling: V(mid) - V(P-) = a (V(S+) - V(S-)); secondary carries -a * I_p.
    for slot, coefficient in ((mid, 1.0), (pn, -1.0), (sp, -a), (sn, a)):
        if slot is not None:
            system.add(slot, primary, coefficient)
            system.add(primary, slot, coefficient)


StampFunction = Callable[[ComponentBase, ElementSlots, StampContext], None]

STAMP_TABLE: Dict[ComponentKind, StampFunction] = {
    ComponentKind.RESISTOR: stamp_resistor,
    ComponentKind.CAPACITOR: stamp_capacitor,
    ComponentKind.INDUCTOR: stamp_inductor,
    ComponentKind.VOLTAGE_SOURCE: stamp_voltage_source,
    ComponentKind.THREE_PHASE_SOURCE: stamp_three_phase_source,
    ComponentKind.AMMETER: stamp_ammeter,
    ComponentKind.VOLTMETER: stamp_voltmeter,
    ComponentKind.WATTMETER: stamp_wattmeter,
    ComponentKind.OSCILLOSCOPE: stamp_oscilloscope,
    ComponentKind.GROUND: stamp_nothing,
    ComponentKind.JUNCTION: stamp_nothing,
    ComponentKind.DIODE: stamp_diode,
    ComponentKind.OPAMP: stamp_opamp,
    ComponentKind.TRANSFORMER: stamp_transformer,
    ComponentKind.LOAD: stamp_load,
}

_missing_kinds = [kind.name for kind in ComponentKind if kind not in STAMP_TABLE]
if _missing_kinds:
    raise FrameworkLogicError(f"No stamp function registered for component kind(s): {_missing_kinds}.")


class Stamper:
    """Builds a fresh LinearSystem for one solve by dispatching every component to its stamp."""

    def __init__(self, netlist: Netlist, layout: MnaLayout, table: Mapping[ComponentKind, StampFunction] = STAMP_TABLE):
        self.netlist = netlist
        self.layout = layout
        self.table = table

    def build(
        self,
        analysis: AnalysisType,
        omega: float = 0.0,
        time: float = 0.0,
        time_step: Optional[float] = None,
        junction_voltages: Optional[Mapping[str, float]] = None,
        companion: Optional[CompanionState] = None,
    ) -> LinearSystem:
        dtype = np.complex128 if analysis is AnalysisType.AC else np.float64
        system = LinearSystem(self.layout.size, dtype=dtype)
        ctx = StampContext(
            system=system,
            analysis=analysis,
            omega=omega,
            time=time,
            time_step=time_step,
            junction_voltages=junction_voltages or {},
            companion=companion if companion is not None else CompanionState(),
        )
        for component in self.netlist:
            try:
                stamp = self.table[component.kind]
            except KeyError:
                raise FrameworkLogicError(f"No stamp function for component kind '{component.kind}'.") from None
            stamp(component, self.layout.slots[component.instance_id], ctx)
        return system
