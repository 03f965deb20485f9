# tests/test_components.py
import math

import pytest

from mnasim_core.components import (
    COMPONENT_REGISTRY, KIND_REGISTRY, ComponentError, ComponentKind, Diode, Load,
    OpAmp, Oscilloscope, ProbeMode, Resistor, ThreePhaseSource, VoltageSource,
)
from mnasim_core.simulation import STAMP_TABLE


class TestRegistry:

    def test_every_kind_is_registered_and_stamped(self):
        for kind in ComponentKind:
            assert kind in KIND_REGISTRY
            assert COMPONENT_REGISTRY[kind.value] is KIND_REGISTRY[kind]
            assert kind in STAMP_TABLE

    def test_kind_and_type_string_are_bound(self):
        assert Resistor.kind is ComponentKind.RESISTOR
        assert Resistor.component_type_str == "Resistor"


class TestParameters:

    def test_defaults_apply(self):
        assert Resistor("R1").properties["resistance"] == pytest.approx(1000.0)

    @pytest.mark.parametrize("value, expected", [
        (470, 470.0),
        ("470", 470.0),
        ("4.7 kohm", 4700.0),
        ("1 megaohm", 1e6),
    ])
    def test_quantities_convert_to_si(self, value, expected):
        assert Resistor("R1", {"resistance": value}).properties["resistance"] == pytest.approx(expected)

    def test_wrong_dimension(self):
        with pytest.raises(ComponentError, match="resistance"):
            Resistor("R1", {"resistance": "5 volt"})

    def test_non_positive_rejected(self):
        with pytest.raises(ComponentError, match="positive"):
            Resistor("R1", {"resistance": 0})

    def test_unknown_parameter(self):
        with pytest.raises(ComponentError, match="Unknown parameter"):
            Resistor("R1", {"resistence": 10})

    def test_choice_parameter_is_normalized(self):
        source = VoltageSource("V1", {"waveform": "AC"})
        assert source.properties["waveform"] == "ac"
        with pytest.raises(ComponentError):
            VoltageSource("V1", {"waveform": "square"})

    def test_update_properties_revalidates(self):
        r = Resistor("R1")
        r.update_properties(resistance="2 kohm")
        assert r.conductance == pytest.approx(5e-4)
        with pytest.raises(ComponentError):
            r.update_properties(resistance=-1)

    def test_error_report_names_component(self):
        with pytest.raises(ComponentError) as excinfo:
            Resistor("R9", {"resistance": "abc"})
        assert "R9" in excinfo.value.get_diagnostic_report()


class TestSources:

    def test_ac_waveform_value_and_phasor(self):
        source = VoltageSource("V1", {"voltage": 10, "waveform": "ac", "frequency": "1 kHz", "phase": 90})
        assert source.value_at(0.0) == pytest.approx(10.0)
        assert source.phasor() == pytest.approx(10j)
        assert source.dc_value() == pytest.approx(10.0)

    def test_three_phase_values(self):
        source = ThreePhaseSource("TP1", {"voltage": 415})
        phasors = source.phasors()
        assert abs(phasors[0]) == pytest.approx(415 / math.sqrt(3))
        assert sum(phasors) == pytest.approx(0, abs=1e-9)
        assert sum(source.values_at(0.0012)) == pytest.approx(0, abs=1e-9)
        assert source.branch_labels() == ["TP1.phase_R", "TP1.phase_Y", "TP1.phase_B"]


class TestLoad:

    def test_rated_impedance(self):
        impedance = Load("LD1").impedance()
        assert impedance.resistance == pytest.approx(0.8 * 7.2, rel=1e-4)
        assert impedance.reactance == pytest.approx(0.6 * 7.2, rel=1e-4)
        assert impedance.inductance == pytest.approx(impedance.reactance / (2 * math.pi * 50))

    def test_half_load_doubles_impedance(self):
        full = Load("LD1").impedance()
        half = Load("LD2", {"load_percent": 50}).impedance()
        assert half.resistance == pytest.approx(2 * full.resistance)

    def test_zero_load_is_open(self):
        assert Load("LD1", {"load_percent": 0}).impedance() is None


class TestDiode:

    def test_companion_matches_current_and_slope(self):
        diode = Diode("D1")
        model = diode.companion(0.65)
        assert model.current == pytest.approx(diode.current(0.65))
        assert model.conductance == pytest.approx(model.current / diode.n_vt, rel=1e-6)
        assert model.equivalent_current == pytest.approx(model.current - model.conductance * 0.65)

    def test_reverse_bias_conductance_floor(self):
        diode = Diode("D1")
        floor = diode.properties["saturation_current"] / diode.n_vt
        assert diode.companion(-5.0).conductance == pytest.approx(floor)

    def test_limiting_compresses_large_forward_steps(self):
        diode = Diode("D1")
        limited = diode.limit_junction_voltage(5.0, 0.6)
        assert 0.6 < limited < 0.8
        assert diode.limit_junction_voltage(0.601, 0.6) == pytest.approx(0.601)
        assert diode.limit_junction_voltage(-3.0, 0.6) == pytest.approx(-3.0)


class TestOpAmpAndScope:

    def test_opamp_pole(self):
        opamp = OpAmp("U1")
        assert opamp.pole_frequency == pytest.approx(10.0)
        assert opamp.pole_capacitance == pytest.approx(1 / (2 * math.pi * 10.0))
        assert opamp.common_mode_gain == pytest.approx(1e5 / 10 ** 4.5)
        assert [t.name for t in opamp.terminals if t.hidden] == ["internal_pole"]

    def test_scope_disabled_channel_ports_are_optional(self):
        scope = Oscilloscope("OSC1")
        assert scope.optional_ports() == {"ch2_pos", "ch2_neg"}
        assert scope.terminal("ch2_pos").optional
        scope.update_properties(ch2_enabled=True, ch2_mode="current")
        assert not scope.terminal("ch2_pos").optional
        assert scope.branch_labels() == ["OSC1.ch2"]
        assert scope.current_channels()[0].mode is ProbeMode.CURRENT
