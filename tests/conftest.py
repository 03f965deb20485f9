# tests/conftest.py
import pytest

from mnasim_core import Netlist


def build_divider(voltage=5.0, resistance=1000.0) -> Netlist:
    """5 V source -> 1 kohm -> ground."""
    netlist = Netlist(name="divider")
    netlist.create("VoltageSource", "V1", voltage=voltage)
    netlist.create("Resistor", "R1", resistance=resistance)
    netlist.create("Ground", "GND1")
    netlist.connect("V1.positive", "R1.left")
    netlist.connect("R1.right", "V1.negative", "GND1.ref")
    return netlist


def build_two_source(v1=5.0, v2=5.0) -> Netlist:
    """
    V1 -- R1 (330) --+-- R2 (220) -- V2
                     |
                  R3 (1k)
                     |
                    gnd
    """
    netlist = Netlist(name="two_source")
    netlist.create("VoltageSource", "V1", voltage=v1)
    netlist.create("VoltageSource", "V2", voltage=v2)
    netlist.create("Resistor", "R1", resistance="330 ohm")
    netlist.create("Resistor", "R2", resistance="220 ohm")
    netlist.create("Resistor", "R3", resistance="1 kohm")
    netlist.create("Ground", "GND1")
    netlist.connect("V1.positive", "R1.left")
    netlist.connect("V2.positive", "R2.right")
    netlist.connect("R1.right", "R2.left", "R3.left")
    netlist.connect("R3.right", "V1.negative", "V2.negative", "GND1.ref")
    return netlist


def build_rc(resistance="1 kohm", capacitance="100 nF", voltage="5 V") -> Netlist:
    """DC step into a series RC, capacitor to ground."""
    netlist = Netlist(name="rc")
    netlist.create("VoltageSource", "V1", voltage=voltage)
    netlist.create("Resistor", "R1", resistance=resistance)
    netlist.create("Capacitor", "C1", capacitance=capacitance)
    netlist.create("Ground", "GND1")
    netlist.connect("V1.positive", "R1.left")
    netlist.connect("R1.right", "C1.left")
    netlist.connect("C1.right", "V1.negative", "GND1.ref")
    return netlist


def build_diode(resistance=1000.0, voltage=5.0) -> Netlist:
    """Source -> resistor -> forward-biased diode -> ground."""
    netlist = Netlist(name="diode")
    netlist.create("VoltageSource", "V1", voltage=voltage)
    netlist.create("Resistor", "R1", resistance=resistance)
    netlist.create("Diode", "D1")
    netlist.create("Ground", "GND1")
    netlist.connect("V1.positive", "R1.left")
    netlist.connect("R1.right", "D1.anode")
    netlist.connect("D1.cathode", "V1.negative", "GND1.ref")
    return netlist


@pytest.fixture
def divider_netlist() -> Netlist:
    return build_divider()


@pytest.fixture
def two_source_netlist() -> Netlist:
    return build_two_source()


@pytest.fixture
def rc_netlist() -> Netlist:
    return build_rc()


@pytest.fixture
def diode_netlist() -> Netlist:
    return build_diode()


@pytest.fixture
def voltage_at():
    """Looks up the voltage of the net a terminal ('R1.right') ended up on."""
    def _voltage_at(result, terminal_fqn: str):
        return result.node_voltages[result.terminal_nets[terminal_fqn]]
    return _voltage_at


@pytest.fixture
def write_netlist(tmp_path):
    """Writes YAML text to a file under tmp_path and returns its path."""
    def _write(text: str, name: str = "netlist.yaml"):
        path = tmp_path / name
        path.write_text(text)
        return path
    return _write


@pytest.fixture
def make_two_source():
    return build_two_source


@pytest.fixture
def make_rc():
    return build_rc


@pytest.fixture
def make_diode():
    return build_diode
