# src/mnasim_core/components/elements.py
"""
Concrete two-terminal elements: the reference markers (Ground, Junction), the
passive R, L, C elements, the rated series R-L load and the junction diode.
"""

import logging
import math
from typing import Dict, List, NamedTuple, Optional

from ..constants import (
    DIODE_MAX_EXPONENT, LOAD_POWER_FACTOR, LOAD_RATED_CURRENT, LOAD_RATED_FREQUENCY,
    LOAD_RATED_VOLTAGE, LOAD_SIN_PHI, SQRT2,
)
from .base import ComponentBase, ParameterSpec, register_component
from .base_enums import ComponentKind

logger = logging.getLogger(__name__)


@register_component(ComponentKind.GROUND)
class Ground(ComponentBase):
    """The 0 V reference. Every net touching a Ground terminal is the ground net."""
    id_prefix = "GND"

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {}

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["ref"]


@register_component(ComponentKind.JUNCTION)
class Junction(ComponentBase):
    """A wiring dot; it only joins wires and contributes nothing to the matrix."""
    id_prefix = "J"

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {}

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["node"]


@register_component(ComponentKind.RESISTOR)
class Resistor(ComponentBase):
    """Represents an ideal Resistor component."""
    id_prefix = "R"

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {"resistance": ParameterSpec("ohm", 1000.0, positive=True)}

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["left", "right"]

    @property
    def conductance(self) -> float:
        return 1.0 / self.properties["resistance"]


@register_component(ComponentKind.CAPACITOR)
class Capacitor(ComponentBase):
    """Represents an ideal Capacitor component."""
    id_prefix = "C"

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {"capacitance": ParameterSpec("farad", 1e-6, positive=True)}

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["left", "right"]


@register_component(ComponentKind.INDUCTOR)
class Inductor(ComponentBase):
    """Represents an ideal Inductor component."""
    id_prefix = "L"

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {"inductance": ParameterSpec("henry", 1e-3, positive=True)}

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["left", "right"]


class LoadImpedance(NamedTuple):
    resistance: float  # ohm
    reactance: float  # ohm, at the rated frequency
    inductance: float  # henry


@register_component(ComponentKind.LOAD)
class Load(ComponentBase):
    """
    A lagging-power-factor load rated 2 kVA at 120 V (16.67 A, PF 0.8), modelled as
    a series R-L branch. `load_percent` scales the rated current: at k = load/100 the
    branch impedance is Z = 120 V / (k * 16.67 A) with R = 0.8 Z and X_L = 0.6 Z at
    50 Hz. A load at or below 0 % is an open circuit.
    """
    id_prefix = "LD"

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {"load_percent": ParameterSpec("dimensionless", 100.0, non_negative=True)}

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["left", "right"]

    def impedance(self) -> Optional[LoadImpedance]:
        """The series R-L values, or None when the load is open."""
        k = self.properties["load_percent"] / 100.0
        if k <= 0:
            return None
        current = k * LOAD_RATED_CURRENT
        z = LOAD_RATED_VOLTAGE / current
        resistance = LOAD_POWER_FACTOR * z
        reactance = LOAD_SIN_PHI * z
        inductance = reactance / (2.0 * math.pi * LOAD_RATED_FREQUENCY)
        return LoadImpedance(resistance, reactance, inductance)


class DiodeCompanion(NamedTuple):
    current: float  # I_d at the linearization voltage
    conductance: float  # G_d = dI/dV
    equivalent_current: float  # I_eq = I_d - G_d * V_d


@register_component(ComponentKind.DIODE)
class Diode(ComponentBase):
    """
    Shockley junction diode, I = Is * (exp(V / (n Vt)) - 1).

    The solvers never stamp the exponential directly; they stamp the companion
    conductance and current returned by `companion()` at the current iterate.
    """
    id_prefix = "D"
    is_nonlinear = True

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "saturation_current": ParameterSpec("ampere", 1e-14, positive=True),
            "emission_coefficient": ParameterSpec("dimensionless", 1.0, positive=True),
            "thermal_voltage": ParameterSpec("volt", 0.02585, positive=True),
        }

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["anode", "cathode"]

    @property
    def n_vt(self) -> float:
        return self.properties["emission_coefficient"] * self.properties["thermal_voltage"]

    @property
    def critical_voltage(self) -> float:
        """Voltage above which Newton steps on the junction voltage are limited."""
        n_vt = self.n_vt
        return n_vt * math.log(n_vt / (SQRT2 * self.properties["saturation_current"]))

    def current(self, v_d: float) -> float:
        """Diode current at `v_d`, with the same exponent cap as the companion model."""
        n_vt = self.n_vt
        exponent = min(v_d, DIODE_MAX_EXPONENT * n_vt) / n_vt
        return self.properties["saturation_current"] * (math.exp(exponent) - 1.0)

    def companion(self, v_d: float) -> DiodeCompanion:
        """Linearized model at `v_d`; G_d is floored at Is/(n Vt) for reverse bias."""
        i_s = self.properties["saturation_current"]
        n_vt = self.n_vt
        exp_val = math.exp(min(v_d, DIODE_MAX_EXPONENT * n_vt) / n_vt)
        i_d = i_s * (exp_val - 1.0)
        g_min = i_s / n_vt
        g_d = max(g_min * exp_val, g_min)
        return DiodeCompanion(i_d, g_d, i_d - g_d * v_d)

    def limit_junction_voltage(self, v_new: float, v_old: float) -> float:
        """
        Limits the junction-voltage step between Newton iterations. Large forward steps
        above the critical voltage are compressed logarithmically; reverse and
        small-signal steps pass through unchanged.
        """
        n_vt = self.n_vt
        v_crit = self.critical_voltage
        if v_new > v_crit and abs(v_new - v_old) > 2.0 * n_vt:
            if v_old > 0:
                arg = 1.0 + (v_new - v_old) / n_vt
                return v_old + n_vt * math.log(arg) if arg > 0 else v_crit
            return n_vt * math.log(v_new / n_vt)
        return v_new
