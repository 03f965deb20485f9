# tests/test_netlist.py
import pytest

from mnasim_core import IdAllocator, Netlist
from mnasim_core.components import ComponentError, Resistor
from mnasim_core.simulation import GROUND_NET_ID, MnaLayout, NetResolver


class TestIdAllocator:

    def test_allocates_per_prefix(self):
        ids = IdAllocator()
        assert ids.allocate("R") == "R1"
        assert ids.allocate("R") == "R2"
        assert ids.allocate("C") == "C1"

    def test_reserved_ids_are_skipped(self):
        ids = IdAllocator()
        ids.reserve("R5")
        assert ids.allocate("R") == "R6"

    def test_counter_follows_reserved_numbers(self):
        ids = IdAllocator()
        ids.reserve("R2")
        assert ids.allocate("R") == "R3"
        assert not ids.is_used("R1")

    def test_duplicate_reserve_raises(self):
        ids = IdAllocator()
        ids.reserve("V1")
        with pytest.raises(ValueError, match="already in use"):
            ids.reserve("V1")

    def test_release_frees_id_without_rewinding_counter(self):
        ids = IdAllocator()
        first = ids.allocate("D")
        ids.release(first)
        assert first not in ids
        assert ids.allocate("D") == "D2"

    def test_allocators_are_independent(self):
        a, b = IdAllocator(), IdAllocator()
        a.allocate("R")
        assert b.allocate("R") == "R1"


class TestNetlist:

    def test_create_allocates_ids_from_prefix(self):
        netlist = Netlist()
        r1 = netlist.create("Resistor")
        r2 = netlist.create("Resistor", resistance="2 kohm")
        assert (r1.instance_id, r2.instance_id) == ("R1", "R2")
        assert r2.properties["resistance"] == pytest.approx(2000.0)

    def test_add_prebuilt_component(self):
        netlist = Netlist()
        netlist.add(Resistor("R7", {"resistance": 10}))
        assert "R7" in netlist
        assert netlist.create("Resistor").instance_id == "R8"
        with pytest.raises(ValueError):
            netlist.add(Resistor("R7"))

    def test_unknown_type_raises_component_error(self):
        with pytest.raises(ComponentError):
            Netlist().create("Memristor")

    def test_terminal_lookup(self, divider_netlist):
        terminal = divider_netlist.terminal("R1.right")
        assert terminal.fqn == "R1.right"
        with pytest.raises(KeyError):
            divider_netlist.terminal("R1")
        with pytest.raises(KeyError):
            divider_netlist.terminal("R1.middle")

    def test_connect_chains_wires(self):
        netlist = Netlist()
        for _ in range(3):
            netlist.create("Resistor")
        wires = netlist.connect("R1.left", "R2.left", "R3.left")
        assert len(wires) == 2
        assert all(w.is_complete for w in wires)

    def test_remove_drops_touching_wires(self, divider_netlist):
        divider_netlist.remove("R1")
        assert "R1" not in divider_netlist
        assert all(w.start.component.instance_id != "R1" and w.end.component.instance_id != "R1"
                   for w in divider_netlist.wires)

    def test_connected_terminals_ignore_unfinished_wires(self):
        netlist = Netlist()
        netlist.create("Resistor")
        wire = netlist.add_wire("R1.left", None)
        assert not wire.is_complete
        assert netlist.connected_terminals() == set()


class TestNetResolver:

    def test_ground_and_encounter_order(self, divider_netlist):
        assignment = NetResolver().resolve(divider_netlist)
        assert assignment.has_ground
        assert assignment.num_nets == 1
        v1 = divider_netlist.component("V1")
        assert assignment.net_id(v1.terminal("positive")) == 0
        assert assignment.net_id(v1.terminal("negative")) == GROUND_NET_ID
        assert assignment.nets[0].name == "N1"
        assert assignment.ground.name == "gnd"
        assert assignment.ground.is_ground
        assert not assignment.nets[0].is_ground

    def test_net_labels_name_nets(self, divider_netlist):
        divider_netlist.terminal("R1.left").net_label = "vin"
        assignment = NetResolver().resolve(divider_netlist)
        assert assignment.terminal_net_names()["V1.positive"] == "vin"

    def test_unfinished_wire_does_not_join(self):
        netlist = Netlist()
        netlist.create("Resistor")
        netlist.create("Resistor")
        netlist.add_wire("R1.right", None)
        assignment = NetResolver().resolve(netlist)
        assert not assignment.has_ground
        assert assignment.num_nets == 4

    def test_multiple_grounds_form_one_net(self):
        netlist = Netlist()
        netlist.create("Resistor")
        netlist.create("Ground")
        netlist.create("Ground")
        netlist.connect("R1.left", "GND1.ref")
        netlist.connect("R1.right", "GND2.ref")
        assignment = NetResolver().resolve(netlist)
        assert assignment.num_nets == 0
        assert len(assignment.ground.terminals) == 4

    def test_wire_chain_forms_one_net(self):
        netlist = Netlist()
        for _ in range(4):
            netlist.create("Resistor")
        netlist.connect("R1.right", "R2.left")
        netlist.connect("R3.left", "R4.left")
        netlist.connect("R2.left", "R4.left")
        assignment = NetResolver().resolve(netlist)
        assert assignment.num_nets == 5
        shared = {assignment.net_id(netlist.terminal(ref)) for ref in ("R1.right", "R2.left", "R3.left", "R4.left")}
        assert shared == {1}

    def test_generated_names_skip_user_labels(self):
        netlist = Netlist()
        netlist.create("Resistor")
        netlist.create("Resistor")
        netlist.connect("R1.right", "R2.left")
        netlist.terminal("R2.right").net_label = "N1"
        assignment = NetResolver().resolve(netlist)
        assert [net.name for net in assignment.nets] == ["N2", "N3", "N1"]

    def test_hidden_net_is_named_after_its_terminal(self):
        netlist = Netlist()
        netlist.create("OpAmp", "U1")
        names = NetResolver().resolve(netlist).terminal_net_names()
        assert names["U1.internal_pole"] == "U1.internal_pole"
        assert names["U1.out"] == "N3"

    def test_terminals_record_their_net(self, divider_netlist):
        NetResolver().resolve(divider_netlist)
        assert divider_netlist.terminal("R1.left").net_id == 0
        assert divider_netlist.terminal("GND1.ref").net_id == GROUND_NET_ID


class TestMnaLayout:

    def test_sizes_nets_and_branches(self, divider_netlist):
        assignment = NetResolver().resolve(divider_netlist)
        layout = MnaLayout.build(divider_netlist, assignment)
        assert (layout.num_nets, layout.num_branches, layout.size) == (1, 1, 2)
        assert layout.branch_index == {"V1": 1}
        assert layout.slots["R1"].nets == (0, None)
        assert layout.label(1) == "V1"
        assert layout.label(9) == "#9"

    def test_internal_nets_and_transformer_branch_last(self):
        netlist = Netlist()
        netlist.create("Transformer", "T1")
        netlist.create("VoltageSource", "V1")
        assignment = NetResolver().resolve(netlist)
        layout = MnaLayout.build(netlist, assignment)
        assert layout.num_nets == 4 + 2 + 1
        assert layout.net_index["T1.mid"] == 6
        assert layout.slots["T1"].internal_nets == (6,)
        assert layout.branch_index["V1"] < layout.branch_index["T1.primary"]

    def test_opamp_hidden_pole_is_a_net(self):
        netlist = Netlist()
        netlist.create("OpAmp", "U1")
        layout = MnaLayout.build(netlist, NetResolver().resolve(netlist))
        assert len(layout.slots["U1"].nets) == 4
        assert layout.num_branches == 0
