# tests/test_stamps.py
import math

import numpy as np
import pytest

from mnasim_core import Netlist
from mnasim_core.constants import (
    DC_INDUCTOR_SHORT_SIEMENS, IDEAL_METER_RESISTANCE_OHMS, OPEN_CIRCUIT_SIEMENS,
    OSCILLOSCOPE_LEAKAGE_SIEMENS, TRANSFORMER_SECONDARY_LEAKAGE_SIEMENS,
)
from mnasim_core.errors import FrameworkLogicError
from mnasim_core.simulation import (
    AnalysisType, CompanionState, MnaLayout, NetResolver, StampContext, Stamper,
)


def stamp_single(type_str, analysis=AnalysisType.DC, **kwargs):
    """
    Stamps one unwired component. Each terminal is its own net, numbered in
    declaration order, so slots are predictable.
    """
    properties = kwargs.pop("properties", {})
    netlist = Netlist()
    component = netlist.create(type_str, **properties)
    layout = MnaLayout.build(netlist, NetResolver().resolve(netlist))
    system = Stamper(netlist, layout).build(analysis, **kwargs)
    return component, layout, system


class TestPassiveStamps:

    def test_resistor(self):
        _, _, system = stamp_single("Resistor", properties={"resistance": 200})
        np.testing.assert_allclose(system.matrix, [[0.005, -0.005], [-0.005, 0.005]])
        assert not system.rhs.any()

    def test_capacitor_is_open_at_dc(self):
        _, _, system = stamp_single("Capacitor")
        assert not system.matrix.any()

    def test_capacitor_ac_admittance(self):
        omega = 2 * math.pi * 1000
        _, _, system = stamp_single("Capacitor", AnalysisType.AC, properties={"capacitance": 1e-6}, omega=omega)
        assert system.is_complex
        assert system.entry(0, 0) == pytest.approx(1j * omega * 1e-6)
        assert system.entry(0, 1) == pytest.approx(-1j * omega * 1e-6)

    def test_capacitor_transient_companion(self):
        companion = CompanionState(capacitor_voltages={"C1": 2.0})
        _, _, system = stamp_single(
            "Capacitor", AnalysisType.TRANSIENT, properties={"capacitance": 1e-6},
            time_step=1e-6, companion=companion,
        )
        assert system.entry(0, 0) == pytest.approx(1.0)
        np.testing.assert_allclose(system.rhs, [2.0, -2.0])

    def test_transient_without_time_step_is_a_logic_error(self):
        with pytest.raises(FrameworkLogicError):
            stamp_single("Capacitor", AnalysisType.TRANSIENT)

    def test_inductor_dc_short(self):
        _, _, system = stamp_single("Inductor")
        assert system.entry(0, 0) == pytest.approx(DC_INDUCTOR_SHORT_SIEMENS)

    def test_inductor_transient_companion(self):
        companion = CompanionState(inductor_currents={"L1": 0.5})
        _, _, system = stamp_single(
            "Inductor", AnalysisType.TRANSIENT, properties={"inductance": 1e-3},
            time_step=1e-6, companion=companion,
        )
        assert system.entry(0, 0) == pytest.approx(1e-3)
        np.testing.assert_allclose(system.rhs, [-0.5, 0.5])

    def test_open_load(self):
        _, _, system = stamp_single("Load", properties={"load_percent": 0})
        assert system.entry(0, 0) == pytest.approx(OPEN_CIRCUIT_SIEMENS)

    def test_load_ac_reactance_scales_with_frequency(self):
        load, _, system = stamp_single("Load", AnalysisType.AC, omega=2 * math.pi * 100)
        impedance = load.impedance()
        expected = 1 / complex(impedance.resistance, 2 * impedance.reactance)
        assert system.entry(0, 0) == pytest.approx(expected)


class TestBranchStamps:

    def test_voltage_source_constraint(self):
        _, layout, system = stamp_single("VoltageSource", properties={"voltage": 12})
        b = layout.branch_index["V1"]
        assert system.entry(0, b) == 1 and system.entry(b, 0) == 1
        assert system.entry(1, b) == -1 and system.entry(b, 1) == -1
        assert system.rhs[b] == pytest.approx(12.0)

    def test_voltage_source_transient_uses_waveform(self):
        _, layout, system = stamp_single(
            "VoltageSource", AnalysisType.TRANSIENT,
            properties={"voltage": 10, "waveform": "ac", "frequency": 50},
            time=0.005, time_step=1e-4,
        )
        assert system.rhs[layout.branch_index["V1"]] == pytest.approx(10.0)

    def test_ammeter_is_zero_volt_branch(self):
        _, layout, system = stamp_single("Ammeter")
        b = layout.branch_index["A1"]
        assert system.entry(0, b) == 1
        assert system.rhs[b] == 0

    def test_three_phase_contributes_nothing_at_dc(self):
        _, layout, system = stamp_single("ThreePhaseSource")
        assert layout.num_branches == 3
        assert not system.rhs.any()
        for k in range(3):
            b = layout.branch_index[f"TP1.{('phase_R', 'phase_Y', 'phase_B')[k]}"]
            assert system.entry(k, b) == 1
            assert system.entry(3, b) == -1

    def test_three_phase_phasors_at_ac(self):
        _, layout, system = stamp_single("ThreePhaseSource", AnalysisType.AC, omega=2 * math.pi * 50)
        values = [system.rhs[layout.branch_index[label]] for label in ("TP1.phase_R", "TP1.phase_Y", "TP1.phase_B")]
        assert abs(values[0]) == pytest.approx(415 / math.sqrt(3))
        assert math.degrees(np.angle(values[1])) == pytest.approx(-120.0)

    def test_wattmeter_coils(self):
        _, layout, system = stamp_single("Wattmeter")
        b = layout.branch_index["WM1"]
        assert system.entry(0, b) == 1 and system.entry(1, b) == -1
        assert system.entry(2, 2) == pytest.approx(1 / IDEAL_METER_RESISTANCE_OHMS)


class TestMeterAndModelStamps:

    def test_voltmeter(self):
        _, _, system = stamp_single("Voltmeter")
        assert system.entry(0, 0) == pytest.approx(1 / IDEAL_METER_RESISTANCE_OHMS)
        assert system.entry(0, 1) == pytest.approx(-1 / IDEAL_METER_RESISTANCE_OHMS)

    def test_oscilloscope_current_channel(self):
        _, layout, system = stamp_single("Oscilloscope", properties={"ch1_mode": "current"})
        b = layout.branch_index["OSC1.ch1"]
        assert system.entry(0, b) == 1 and system.entry(1, b) == -1
        # Disabled ch2 terminals still get the leakage to ground.
        assert system.entry(3, 3) == pytest.approx(OSCILLOSCOPE_LEAKAGE_SIEMENS)

    def test_diode_companion(self):
        diode, _, system = stamp_single("Diode", junction_voltages={"D1": 0.7})
        model = diode.companion(0.7)
        assert system.entry(0, 0) == pytest.approx(model.conductance)
        np.testing.assert_allclose(system.rhs, [-model.equivalent_current, model.equivalent_current])

    def test_diode_ac_has_no_source_term(self):
        _, _, system = stamp_single("Diode", AnalysisType.AC, omega=1.0, junction_voltages={"D1": 0.7})
        assert not system.rhs.any()

    def test_opamp_gain_row(self):
        opamp, _, system = stamp_single("OpAmp", properties={"offset_voltage": 1e-3})
        a0, ac = 1e5, opamp.common_mode_gain
        pole = 3
        assert system.entry(pole, 0) == pytest.approx(-(a0 + ac / 2))
        assert system.entry(pole, 1) == pytest.approx(-(-a0 + ac / 2))
        assert system.entry(pole, pole) == pytest.approx(1.0)
        assert system.rhs[pole] == pytest.approx(a0 * 1e-3)
        assert system.entry(2, pole) == pytest.approx(-1 / 75.0)

    def test_transformer_coupling(self):
        _, layout, system = stamp_single("Transformer", properties={"turns_ratio": 4})
        mid, primary = layout.net_index["T1.mid"], layout.branch_index["T1.primary"]
        coupling = {mid: 1.0, 1: -1.0, 2: -4.0, 3: 4.0}
        for slot, coefficient in coupling.items():
            assert system.entry(slot, primary) == pytest.approx(coefficient)
            assert system.entry(primary, slot) == pytest.approx(coefficient)
        assert system.entry(2, 2) == pytest.approx(TRANSFORMER_SECONDARY_LEAKAGE_SIEMENS)


class TestStamper:

    def test_missing_table_entry_is_a_logic_error(self):
        netlist = Netlist()
        netlist.create("Resistor")
        layout = MnaLayout.build(netlist, NetResolver().resolve(netlist))
        with pytest.raises(FrameworkLogicError):
            Stamper(netlist, layout, table={}).build(AnalysisType.DC)

    def test_context_flags(self):
        ctx = StampContext(system=None, analysis=AnalysisType.AC, omega=1.0)
        assert ctx.is_ac and not ctx.is_transient
