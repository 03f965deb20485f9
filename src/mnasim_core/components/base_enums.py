# src/mnasim_core/components/base_enums.py
from enum import Enum


class ComponentKind(Enum):
    """
    The closed set of component kinds the solvers understand.

    The value is the type name used in netlists and in the component registry.
    Every member must have a stamp function in the simulation dispatch table.
    """
    RESISTOR = "Resistor"
    CAPACITOR = "Capacitor"
    INDUCTOR = "Inductor"
    VOLTAGE_SOURCE = "VoltageSource"
    THREE_PHASE_SOURCE = "ThreePhaseSource"
    AMMETER = "Ammeter"
    VOLTMETER = "Voltmeter"
    WATTMETER = "Wattmeter"
    OSCILLOSCOPE = "Oscilloscope"
    GROUND = "Ground"
    JUNCTION = "Junction"
    DIODE = "Diode"
    OPAMP = "OpAmp"
    TRANSFORMER = "Transformer"
    LOAD = "Load"

    def __str__(self):
        return self.value


class SourceWaveform(Enum):
    """Time behaviour of a single-phase voltage source."""
    DC = "dc"
    AC = "ac"


class ProbeMode(Enum):
    """How an oscilloscope channel is inserted into the circuit."""
    VOLTAGE = "voltage"  # High-impedance probe across the channel terminals.
    CURRENT = "current"  # 0 V branch in series; the channel reads the branch current.
