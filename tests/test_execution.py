# tests/test_execution.py
import logging

import pytest

from mnasim_core import (
    AnalysisConfig, AnalysisType, ACResult, DCResult, Netlist, TransientResult,
    require_success, run_analysis, run_dc, run_netlist_file,
)
from mnasim_core.errors import NetlistBuildError, SimulationRunError
from mnasim_core.simulation import ConfigParsingError, NewtonSettings, parse_analysis_config

RC_COMPONENTS = """
circuit_name: rc_step
components:
  - {id: V1, type: VoltageSource, ports: {positive: vin, negative: gnd}, parameters: {voltage: "5 V"}}
  - {id: R1, type: Resistor, ports: {left: vin, right: vc}, parameters: {resistance: "1 kohm"}}
  - {id: C1, type: Capacitor, ports: {left: vc, right: gnd}, parameters: {capacitance: "100 nF"}}
"""


class TestAnalysisConfig:

    def test_missing_block_is_dc(self):
        assert parse_analysis_config(None) == AnalysisConfig()

    def test_units_are_converted(self):
        config = parse_analysis_config({"type": "TRANSIENT", "end_time": "500 us", "time_step": "1 us"})
        assert config.analysis is AnalysisType.TRANSIENT
        assert config.end_time == pytest.approx(500e-6)
        assert config.time_step == pytest.approx(1e-6)

    def test_ac_frequency(self):
        config = parse_analysis_config({"type": "ac", "frequency": "1 kHz"})
        assert config.frequency == pytest.approx(1000.0)

    def test_newton_overrides(self):
        config = parse_analysis_config({"type": "dc", "max_iterations": 7, "tolerance": "1 mV"})
        assert config.newton.tolerance == pytest.approx(1e-3)
        assert config.newton.max_iterations == 7

    @pytest.mark.parametrize("raw", [
        {"type": "ac"},
        {"type": "ac", "frequency": "50 ohm"},
        {"type": "ac", "frequency": -5},
        {"type": "transient", "end_time": "1 us", "time_step": "1 ms"},
        {"type": "noise"},
        {"type": "dc", "max_iterations": 0},
    ])
    def test_invalid_blocks(self, raw):
        with pytest.raises(ConfigParsingError) as excinfo:
            parse_analysis_config(raw)
        assert "Analysis Configuration Error" in excinfo.value.get_diagnostic_report()

    def test_newton_settings_validate(self):
        with pytest.raises(ValueError):
            NewtonSettings(tolerance=0)


class TestRunAnalysis:

    def test_dispatches_on_type(self, rc_netlist):
        assert isinstance(run_analysis(rc_netlist, AnalysisConfig()), DCResult)
        assert isinstance(run_analysis(rc_netlist, AnalysisConfig(AnalysisType.AC, frequency=50.0)), ACResult)
        transient = run_analysis(rc_netlist, AnalysisConfig(AnalysisType.TRANSIENT, end_time=1e-5, time_step=1e-6))
        assert isinstance(transient, TransientResult)
        assert transient.success

    def test_solvers_share_no_state(self, divider_netlist, rc_netlist):
        first = run_dc(divider_netlist)
        run_dc(rc_netlist)
        assert run_dc(divider_netlist).node_voltages == first.node_voltages


class TestRunNetlistFile:

    def test_dc_by_default(self, write_netlist):
        result = run_netlist_file(write_netlist(RC_COMPONENTS))
        assert isinstance(result, DCResult)
        assert result.success, result.error
        assert result.node_voltages["vc"] == pytest.approx(5.0)

    def test_transient_block(self, write_netlist):
        text = RC_COMPONENTS + 'analysis: {type: transient, end_time: "500 us", time_step: "1 us"}\n'
        result = run_netlist_file(write_netlist(text))
        assert isinstance(result, TransientResult)
        assert result.node_voltages["vc"][-1] == pytest.approx(4.966, rel=0.01)

    def test_ac_block(self, write_netlist):
        text = RC_COMPONENTS + 'analysis: {type: ac, frequency: "1 kHz"}\n'
        result = run_netlist_file(write_netlist(text))
        assert isinstance(result, ACResult)
        assert result.frequency == pytest.approx(1000.0)

    @pytest.mark.parametrize("text", [
        "components: [broken\n",
        "components: []\n",
        RC_COMPONENTS + "analysis: {type: ac, frequency: '50 ohm'}\n",
        "components:\n  - {id: Q1, type: Transistor, ports: {b: n1}}\n",
    ])
    def test_load_failures_raise_build_error(self, write_netlist, text):
        with pytest.raises(NetlistBuildError):
            run_netlist_file(write_netlist(text))

    def test_missing_file(self, tmp_path):
        with pytest.raises(NetlistBuildError, match="not found"):
            run_netlist_file(tmp_path / "missing.yaml")


class TestRequireSuccess:

    def test_passes_successful_results_through(self, divider_netlist):
        result = run_dc(divider_netlist)
        assert require_success(result) is result

    def test_raises_on_failure(self, caplog):
        with caplog.at_level(logging.ERROR, logger="mnasim_core"):
            result = run_dc(Netlist(name="empty"))
        assert any("Diagnostic Report" in r.getMessage() for r in caplog.records)
        with pytest.raises(SimulationRunError, match="DC Analysis Failed"):
            require_success(result)
