# src/mnasim_core/simulation/readings.py
"""
Extraction of named quantities from a raw MNA solution vector.
"""
import logging
from typing import Dict

import numpy as np

from ..components.base_enums import ComponentKind
from ..netlist.data_structures import Netlist
from .layout import MnaLayout, net_voltage
from .nets import NetAssignment
from .results import MeterReading

logger = logging.getLogger(__name__)


def _scalar(value, is_complex: bool):
    return complex(value) if is_complex else float(np.real(value))


def extract_node_voltages(assignment: NetAssignment, solution: np.ndarray, is_complex: bool = False) -> Dict:
    """Net name -> voltage for every external net, with the ground net at exactly 0."""
    voltages = {}
    if assignment.ground is not None:
        voltages[assignment.ground.name] = 0j if is_complex else 0.0
    for net in assignment.nets:
        voltages[net.name] = _scalar(solution[net.net_id], is_complex)
    return voltages


def extract_branch_currents(layout: MnaLayout, solution: np.ndarray, is_complex: bool = False) -> Dict:
    """Branch label -> current, MNA convention (into the positive terminal, through the element)."""
    return {label: _scalar(solution[index], is_complex) for label, index in layout.branch_index.items()}


def extract_meter_readings(netlist: Netlist, layout: MnaLayout, solution: np.ndarray, is_complex: bool = False) -> Dict[str, MeterReading]:
    """
    Readings of every ammeter, voltmeter and wattmeter. Wattmeter power is V*I for
    real solutions and Re(V * conj(I)) for phasors.
    """
    readings: Dict[str, MeterReading] = {}
    for component in netlist:
        kind = component.kind
        slots = layout.slots[component.instance_id]
        if kind is ComponentKind.AMMETER:
            current = _scalar(solution[slots.branches[0]], is_complex)
            readings[component.instance_id] = MeterReading(kind.value, current, "A")
        elif kind is ComponentKind.VOLTMETER:
            voltage = net_voltage(solution, slots.nets[0]) - net_voltage(solution, slots.nets[1])
            readings[component.instance_id] = MeterReading(kind.value, _scalar(voltage, is_complex), "V")
        elif kind is ComponentKind.WATTMETER:
            _, _, c, v = slots.nets
            voltage = _scalar(net_voltage(solution, c) - net_voltage(solution, v), is_complex)
            current = _scalar(solution[slots.branches[0]], is_complex)
            power = (voltage * current.conjugate()).real if is_complex else voltage * current
            readings[component.instance_id] = MeterReading(
                kind.value, float(power), "W", voltage=voltage, current=current
            )
    return readings
