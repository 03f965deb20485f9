# tests/test_netlist_builder.py
import pytest

from mnasim_core import NetlistBuilder, NetlistParser, run_dc, run_transient
from mnasim_core.components import ComponentKind
from mnasim_core.errors import NetlistBuildError


def build(write_netlist, text):
    return NetlistBuilder().build(NetlistParser().parse(write_netlist(text)))


class TestNetlistBuilder:

    def test_builds_wired_netlist_with_implicit_ground(self, write_netlist):
        netlist = build(write_netlist, """
circuit_name: divider
components:
  - {id: V1, type: VoltageSource, ports: {positive: vin, negative: gnd}, parameters: {voltage: "5 V"}}
  - {id: R1, type: Resistor, ports: {left: vin, right: gnd}, parameters: {resistance: "1 kohm"}}
""")
        assert netlist.name == "divider"
        grounds = [c for c in netlist if c.kind is ComponentKind.GROUND]
        assert len(grounds) == 1
        assert netlist.component("R1").properties["resistance"] == pytest.approx(1000.0)
        assert netlist.terminal("V1.positive").net_label == "vin"
        assert len(netlist.wires) == 1 + 2

        result = run_dc(netlist)
        assert result.success, result.error
        assert result.node_voltages["vin"] == pytest.approx(5.0)
        assert result.terminal_nets["R1.right"] == "gnd"

    def test_explicit_ground_is_reused(self, write_netlist):
        netlist = build(write_netlist, """
ground_net: zero
components:
  - {id: V1, type: VoltageSource, ports: {positive: a, negative: zero}}
  - {id: R1, type: Resistor, ports: {left: a, right: zero}}
  - {id: G, type: Ground, ports: {ref: zero}}
""")
        assert [c.instance_id for c in netlist if c.kind is ComponentKind.GROUND] == ["G"]
        assert run_dc(netlist).node_voltages["zero"] == 0.0

    def test_single_terminal_net_stays_unwired(self, write_netlist):
        netlist = build(write_netlist, """
components:
  - {id: V1, type: VoltageSource, ports: {positive: a, negative: gnd}}
  - {id: R1, type: Resistor, ports: {left: a, right: dangling}}
""")
        assert netlist.terminal("R1.right") not in netlist.connected_terminals()
        result = run_dc(netlist)
        assert not result.success
        assert "R1.right" in result.error

    def test_user_net_name_is_not_reused_for_hidden_net(self, write_netlist):
        netlist = build(write_netlist, """
components:
  - {id: V1, type: VoltageSource, ports: {positive: vin, negative: gnd}, parameters: {voltage: "1 V"}}
  - {id: U1, type: OpAmp, ports: {in_pos: vin, in_neg: N3, out: N3}}
  - {id: RL, type: Resistor, ports: {left: N3, right: gnd}, parameters: {resistance: "10 kohm"}}
""")
        result = run_transient(netlist, end_time=10e-6, time_step=1e-6)
        assert result.success, result.error
        assert result.terminal_nets["U1.out"] == "N3"
        assert result.terminal_nets["U1.internal_pole"] != "N3"
        assert len(result.times) == 11
        for name, samples in result.node_voltages.items():
            assert len(samples) == len(result.times), name

    @pytest.mark.parametrize("component, fragment", [
        ("{id: X1, type: Memristor, ports: {a: n1}}", "unregistered type 'Memristor'"),
        ("{id: R1, type: Resistor, ports: {left: n1, middle: gnd}}", "undeclared port"),
        ("{id: R1, type: Resistor, ports: {left: n1, right: gnd}, parameters: {resistence: 5}}", "resistence"),
        ("{id: R1, type: Resistor, ports: {left: n1, right: gnd}, parameters: {resistance: '5 volt'}}", "resistance"),
        ("{id: R1, type: Resistor, ports: {left: n1, right: gnd}, parameters: {resistance: -5}}", "positive"),
    ])
    def test_build_errors_become_netlist_build_error(self, write_netlist, component, fragment):
        with pytest.raises(NetlistBuildError) as excinfo:
            build(write_netlist, f"components:\n  - {component}\n")
        assert fragment in str(excinfo.value)
        assert "Diagnostic Report" in str(excinfo.value)
