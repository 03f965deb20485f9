# src/mnasim_core/components/__init__.py
from .base_enums import ComponentKind, SourceWaveform, ProbeMode
from .exceptions import ComponentError
from .base import (
    ComponentBase, ParameterSpec, COMPONENT_REGISTRY, KIND_REGISTRY,
    register_component, get_component_class,
)
from .elements import Ground, Junction, Resistor, Capacitor, Inductor, Load, Diode
from .sources import VoltageSource, ThreePhaseSource
from .instruments import Ammeter, Voltmeter, Wattmeter, Oscilloscope, ScopeChannel
from .transformer import Transformer
from .opamp import OpAmp

__all__ = [
    "ComponentKind", "SourceWaveform", "ProbeMode",
    "ComponentError",
    "ComponentBase", "ParameterSpec", "COMPONENT_REGISTRY", "KIND_REGISTRY",
    "register_component", "get_component_class",
    "Ground", "Junction", "Resistor", "Capacitor", "Inductor", "Load", "Diode",
    "VoltageSource", "ThreePhaseSource",
    "Ammeter", "Voltmeter", "Wattmeter", "Oscilloscope", "ScopeChannel",
    "Transformer",
    "OpAmp",
]
