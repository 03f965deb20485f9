# src/mnasim_core/components/sources.py
"""
Independent voltage sources: the single-phase source (DC or sinusoidal) and the
balanced three-phase source with a neutral.
"""

import cmath
import logging
import math
from typing import Dict, List, Tuple

from ..constants import SQRT2, SQRT3, THREE_PHASE_OFFSETS_DEG
from .base import ComponentBase, ParameterSpec, register_component
from .base_enums import ComponentKind, SourceWaveform

logger = logging.getLogger(__name__)


@register_component(ComponentKind.VOLTAGE_SOURCE)
class VoltageSource(ComponentBase):
    """
    Ideal voltage source enforcing V(positive) - V(negative).

    For a 'dc' waveform the enforced value is `voltage`. For 'ac' it is
    voltage * sin(2 pi f t + phase) in the time domain and the phasor
    voltage at angle `phase` in AC analysis. DC analysis always uses `voltage`.
    """
    id_prefix = "V"
    is_source = True

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "voltage": ParameterSpec("volt", 5.0),
            "waveform": ParameterSpec(None, SourceWaveform.DC.value, choices=tuple(w.value for w in SourceWaveform)),
            "frequency": ParameterSpec("hertz", 50.0, positive=True),
            "phase": ParameterSpec("degree", 0.0),
        }

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["positive", "negative"]

    def branch_labels(self) -> List[str]:
        return [self.instance_id]

    @property
    def waveform(self) -> SourceWaveform:
        return SourceWaveform(self.properties["waveform"])

    def dc_value(self) -> float:
        return self.properties["voltage"]

    def phasor(self) -> complex:
        return cmath.rect(self.properties["voltage"], math.radians(self.properties["phase"]))

    def value_at(self, time: float) -> float:
        if self.waveform is SourceWaveform.DC:
            return self.properties["voltage"]
        omega = 2.0 * math.pi * self.properties["frequency"]
        return self.properties["voltage"] * math.sin(omega * time + math.radians(self.properties["phase"]))


@register_component(ComponentKind.THREE_PHASE_SOURCE)
class ThreePhaseSource(ComponentBase):
    """
    Balanced star-connected source. `voltage` is the RMS line-to-line voltage; each
    phase enforces V_LL/sqrt(3) against the neutral, displaced by 0, -120 and +120
    degrees from `phase_shift`.
    """
    id_prefix = "TP"
    is_source = True
    PHASES: Tuple[str, ...] = ("phase_R", "phase_Y", "phase_B")

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "voltage": ParameterSpec("volt", 415.0, non_negative=True),
            "frequency": ParameterSpec("hertz", 50.0, positive=True),
            "phase_shift": ParameterSpec("degree", 0.0),
        }

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["phase_R", "phase_Y", "phase_B", "neutral"]

    def branch_labels(self) -> List[str]:
        return [f"{self.instance_id}.{phase}" for phase in self.PHASES]

    def connectivity(self) -> List[Tuple[str, str]]:
        return [(phase, "neutral") for phase in self.PHASES]

    @property
    def phase_voltage(self) -> float:
        return self.properties["voltage"] / SQRT3

    def _angles_deg(self) -> List[float]:
        return [self.properties["phase_shift"] + offset for offset in THREE_PHASE_OFFSETS_DEG]

    def phasors(self) -> List[complex]:
        return [cmath.rect(self.phase_voltage, math.radians(angle)) for angle in self._angles_deg()]

    def values_at(self, time: float) -> List[float]:
        peak = SQRT2 * self.phase_voltage
        omega = 2.0 * math.pi * self.properties["frequency"]
        return [peak * math.sin(omega * time + math.radians(angle)) for angle in self._angles_deg()]
