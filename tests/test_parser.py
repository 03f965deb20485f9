# tests/test_parser.py
import cerberus
import pytest

from mnasim_core.parser import NetlistParser, ParsingError, SchemaValidationError

DIVIDER_YAML = """
circuit_name: divider
ground_net: gnd
components:
  - id: V1
    type: VoltageSource
    ports: {positive: vin, negative: gnd}
    parameters: {voltage: "5 V"}
  - id: R1
    type: Resistor
    ports: {left: vin, right: gnd}
    parameters: {resistance: "1 kohm"}
"""


class TestNetlistParser:

    def test_parses_components_and_defaults(self, write_netlist):
        ir = NetlistParser().parse(write_netlist(DIVIDER_YAML))
        assert ir.circuit_name == "divider"
        assert ir.ground_net_name == "gnd"
        assert [c.instance_id for c in ir.components] == ["V1", "R1"]
        assert ir.components[1].raw_ports_dict == {"left": "vin", "right": "gnd"}
        assert ir.components[1].raw_parameters_dict == {"resistance": "1 kohm"}
        assert ir.raw_analysis_config is None

    def test_circuit_name_and_ground_default(self, write_netlist):
        text = """
components:
  - {id: R1, type: Resistor, ports: {left: a, right: gnd}}
"""
        ir = NetlistParser().parse(write_netlist(text, "my_board.yaml"))
        assert ir.circuit_name == "my_board"
        assert ir.ground_net_name == "gnd"
        assert ir.components[0].raw_parameters_dict == {}

    def test_analysis_block(self, write_netlist):
        text = DIVIDER_YAML + 'analysis: {type: transient, end_time: "500 us", time_step: "1 us"}\n'
        ir = NetlistParser().parse(write_netlist(text))
        assert ir.raw_analysis_config == {"type": "transient", "end_time": "500 us", "time_step": "1 us"}

    def test_ac_analysis_block_with_frequency(self, write_netlist):
        text = DIVIDER_YAML + 'analysis: {type: ac, frequency: "1 kHz"}\n'
        ir = NetlistParser().parse(write_netlist(text))
        assert ir.raw_analysis_config == {"type": "ac", "frequency": "1 kHz"}

    def test_parser_can_be_reused(self, write_netlist):
        parser = NetlistParser()
        text = DIVIDER_YAML + 'analysis: {type: ac, frequency: 50}\n'
        first = parser.parse(write_netlist(text, "first.yaml"))
        second = parser.parse(write_netlist(text, "second.yaml"))
        assert first.raw_analysis_config == second.raw_analysis_config == {"type": "ac", "frequency": 50}


class TestSchemaErrors:

    @pytest.mark.parametrize("text, fragment", [
        ("circuit_name: x\n", "components"),
        ("components: []\n", "components"),
        ("components:\n  - {id: R-1, type: Resistor, ports: {left: a, right: gnd}}\n", "forbidden"),
        ("components:\n  - {id: R1, type: Resistor, ports: {left: a.b, right: gnd}}\n", "forbidden"),
        ("components:\n  - {id: R1, type: Resistor}\n", "ports"),
        ("components:\n  - {id: R1, type: Resistor, ports: {left: a, right: gnd}}\n"
         "  - {id: R1, type: Resistor, ports: {left: a, right: gnd}}\n", "Duplicate"),
        ("components:\n  - {id: R1, type: Resistor, ports: {left: a, right: gnd}}\nsweep: {}\n", "unknown field"),
    ])
    def test_structural_errors(self, write_netlist, text, fragment):
        with pytest.raises(SchemaValidationError) as excinfo:
            NetlistParser().parse(write_netlist(text))
        assert fragment in str(excinfo.value)
        assert "YAML Schema Validation Error" in excinfo.value.get_diagnostic_report()

    @pytest.mark.parametrize("analysis, fragment", [
        ("{type: ac}", "frequency"),
        ('{type: transient, end_time: "1 ms"}', "time_step"),
        ("{type: noise}", "unallowed value"),
        ("{frequency: 50}", "type"),
    ])
    def test_analysis_errors(self, write_netlist, analysis, fragment):
        text = DIVIDER_YAML + f"analysis: {analysis}\n"
        with pytest.raises(SchemaValidationError) as excinfo:
            NetlistParser().parse(write_netlist(text))
        assert fragment in str(excinfo.value)

    def test_rejected_schema_is_reported_as_schema_error(self, write_netlist, monkeypatch):
        parser = NetlistParser()

        def reject(document):
            raise cerberus.SchemaError("bad rule")

        monkeypatch.setattr(parser._validator, "validate", reject)
        with pytest.raises(SchemaValidationError) as excinfo:
            parser.parse(write_netlist(DIVIDER_YAML))
        assert "Invalid validation schema: bad rule" in str(excinfo.value)

    def test_error_lines_are_flattened(self, write_netlist):
        text = "components:\n  - {id: R-1, type: Resistor, ports: {left: a, right: gnd}}\n"
        with pytest.raises(SchemaValidationError) as excinfo:
            NetlistParser().parse(write_netlist(text))
        assert any(line.startswith("Field 'components.0.id'") for line in excinfo.value.error_lines)


class TestFileErrors:

    def test_missing_file(self, tmp_path):
        with pytest.raises(ParsingError, match="not found"):
            NetlistParser().parse(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, write_netlist):
        with pytest.raises(ParsingError, match="Invalid YAML"):
            NetlistParser().parse(write_netlist("components: [unclosed\n"))

    def test_empty_file(self, write_netlist):
        with pytest.raises(ParsingError, match="empty"):
            NetlistParser().parse(write_netlist(""))

    def test_root_must_be_mapping(self, write_netlist):
        with pytest.raises(ParsingError, match="dictionary"):
            NetlistParser().parse(write_netlist("- just\n- a list\n"))
