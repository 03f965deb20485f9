# src/mnasim_core/components/instruments.py
"""
Measurement devices. Ammeters and current paths are 0 V branch constraints, voltage
paths are a very large resistance, so inserting an instrument barely disturbs
the circuit it observes.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Set, Tuple

from .base import ComponentBase, ParameterSpec, register_component
from .base_enums import ComponentKind, ProbeMode

logger = logging.getLogger(__name__)


@register_component(ComponentKind.AMMETER)
class Ammeter(ComponentBase):
    """Reads the current entering `positive` and leaving `negative`."""
    id_prefix = "A"

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {}

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["positive", "negative"]

    def branch_labels(self) -> List[str]:
        return [self.instance_id]


@register_component(ComponentKind.VOLTMETER)
class Voltmeter(ComponentBase):
    """Reads V(positive) - V(negative)."""
    id_prefix = "VM"

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {}

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["positive", "negative"]


@register_component(ComponentKind.WATTMETER)
class Wattmeter(ComponentBase):
    """
    Electrodynamometer wattmeter: a current coil from M (mains) to L (load) and a
    voltage coil from C (common) to V. It reads the coil voltage V(C) - V(V), the
    coil current M -> L and their product.
    """
    id_prefix = "WM"

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {}

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["M", "L", "C", "V"]

    def branch_labels(self) -> List[str]:
        return [self.instance_id]

    def connectivity(self) -> List[Tuple[str, str]]:
        return [("M", "L"), ("C", "V")]


@dataclass(frozen=True)
class ScopeChannel:
    """One enabled oscilloscope channel."""
    key: str  # 'ch1' or 'ch2'
    label: str
    mode: ProbeMode
    positive: str
    negative: str


@register_component(ComponentKind.OSCILLOSCOPE)
class Oscilloscope(ComponentBase):
    """
    Two-channel oscilloscope. A channel in voltage mode is a high resistance across
    its terminals; in current mode it is a 0 V branch whose current is the trace.
    Terminals of a disabled channel may stay unconnected.
    """
    id_prefix = "OSC"
    CHANNEL_KEYS: Tuple[str, ...] = ("ch1", "ch2")

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        modes = tuple(m.value for m in ProbeMode)
        return {
            "ch1_enabled": ParameterSpec(None, True),
            "ch2_enabled": ParameterSpec(None, False),
            "ch1_mode": ParameterSpec(None, ProbeMode.VOLTAGE.value, choices=modes),
            "ch2_mode": ParameterSpec(None, ProbeMode.VOLTAGE.value, choices=modes),
            "ch1_label": ParameterSpec(None, "CH1"),
            "ch2_label": ParameterSpec(None, "CH2"),
        }

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["ch1_pos", "ch1_neg", "ch2_pos", "ch2_neg"]

    def channels(self) -> List[ScopeChannel]:
        """The enabled channels, in channel order."""
        return [
            ScopeChannel(
                key=key,
                label=str(self.properties[f"{key}_label"]) or key.upper(),
                mode=ProbeMode(self.properties[f"{key}_mode"]),
                positive=f"{key}_pos",
                negative=f"{key}_neg",
            )
            for key in self.CHANNEL_KEYS
            if self.properties[f"{key}_enabled"]
        ]

    def current_channels(self) -> List[ScopeChannel]:
        return [ch for ch in self.channels() if ch.mode is ProbeMode.CURRENT]

    def branch_labels(self) -> List[str]:
        return [f"{self.instance_id}.{ch.key}" for ch in self.current_channels()]

    def optional_ports(self) -> Set[str]:
        enabled = {ch.key for ch in self.channels()}
        return {
            port for key in self.CHANNEL_KEYS if key not in enabled
            for port in (f"{key}_pos", f"{key}_neg")
        }

    def connectivity(self) -> List[Tuple[str, str]]:
        return [(ch.positive, ch.negative) for ch in self.channels()]

    def grounded_ports(self) -> List[str]:
        return type(self).declare_ports()
