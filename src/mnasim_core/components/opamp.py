# src/mnasim_core/components/opamp.py
import logging
import math
from typing import Dict, List, Tuple

from ..constants import OPAMP_COMMON_MODE_RESISTANCE_FACTOR, OPAMP_POLE_CONDUCTANCE_SIEMENS
from .base import ComponentBase, ParameterSpec, register_component
from .base_enums import ComponentKind

logger = logging.getLogger(__name__)


@register_component(ComponentKind.OPAMP)
class OpAmp(ComponentBase):
    """
    Single-pole operational amplifier macro-model.

    - Input stage: differential resistance `input_resistance` between the inputs and
      a common-mode resistance of 50x that value from each input to ground.
    - Gain stage: a VCCS drives the hidden `internal_pole` node (1 ohm to ground),
      so V_pole = A0 (V+ - V-) + Ac (V+ + V-)/2 + A0 Vos, with Ac set by the CMRR.
      The pole capacitance places the dominant pole at GBW / A0.
    - Output stage: `output_resistance` between the pole voltage and `out`.

    Saturation is not part of the linear stamp; the Newton engine clamps the pole
    and output nets to +/- `saturation_voltage` after each solve.
    """
    id_prefix = "U"
    is_nonlinear = True

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "open_loop_gain": ParameterSpec("dimensionless", 1e5, positive=True),
            "gain_bandwidth": ParameterSpec("hertz", 1e6, positive=True),
            "input_resistance": ParameterSpec("ohm", 2e6, positive=True),
            "output_resistance": ParameterSpec("ohm", 75.0, positive=True),
            "offset_voltage": ParameterSpec("volt", 0.0),
            "cmrr": ParameterSpec("dimensionless", 90.0),  # dB
            "saturation_voltage": ParameterSpec("volt", 15.0, positive=True),
        }

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["in_pos", "in_neg", "out"]

    @classmethod
    def declare_hidden_ports(cls) -> List[str]:
        return ["internal_pole"]

    def connectivity(self) -> List[Tuple[str, str]]:
        return [("in_pos", "in_neg")]

    def grounded_ports(self) -> List[str]:
        return ["in_pos", "in_neg", "out", "internal_pole"]

    @property
    def common_mode_gain(self) -> float:
        return self.properties["open_loop_gain"] / 10.0 ** (self.properties["cmrr"] / 20.0)

    @property
    def common_mode_conductance(self) -> float:
        return 1.0 / (OPAMP_COMMON_MODE_RESISTANCE_FACTOR * self.properties["input_resistance"])

    @property
    def pole_frequency(self) -> float:
        return self.properties["gain_bandwidth"] / self.properties["open_loop_gain"]

    @property
    def pole_capacitance(self) -> float:
        """Capacitance that, against the 1 ohm pole resistor, sets the dominant pole."""
        return 1.0 / (2.0 * math.pi * self.pole_frequency * (1.0 / OPAMP_POLE_CONDUCTANCE_SIEMENS))
