# src/mnasim_core/simulation/results.py
"""
Result contracts of the three analyses.

Every solver returns one of these frozen dataclasses, successful or not. A failed
analysis carries `success=False` and a human-readable `error`; nothing is raised
across the solver boundary. The maps are keyed by net name (node voltages) and by
branch label (branch currents), with the ground net always present at exactly 0.
"""
import cmath
import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Union

import numpy as np

Number = Union[float, complex]


@dataclass(frozen=True)
class MeterReading:
    """
    What a measurement device shows after a DC or AC solve.

    `value` is the primary reading: current for an ammeter, voltage for a
    voltmeter, power for a wattmeter. A wattmeter also fills `voltage` (V(C) - V(V))
    and `current` (M -> L).
    """
    kind: str
    value: Number
    unit: str
    voltage: Optional[Number] = None
    current: Optional[Number] = None


@dataclass(frozen=True)
class DCResult:
    """
    Attributes:
        success: False when the analysis failed; `error` then says why.
        node_voltages: Net name -> voltage (V).
        branch_currents: Branch label -> current (A), entering the element's positive
                         terminal and flowing through it.
        meter_readings: Meter id -> MeterReading.
        terminal_nets: Terminal fqn ('R1.left') -> net name.
        junction_voltages: Converged diode voltages, usable as an AC operating point.
        converged: False when Newton-Raphson ran out of iterations.
        iterations: Newton-Raphson cycles used.
        warnings: Non-fatal messages (validation warnings, non-convergence).
        error: Failure message, None on success.
    """
    success: bool
    node_voltages: Dict[str, float] = field(default_factory=dict)
    branch_currents: Dict[str, float] = field(default_factory=dict)
    meter_readings: Dict[str, MeterReading] = field(default_factory=dict)
    terminal_nets: Dict[str, str] = field(default_factory=dict)
    junction_voltages: Dict[str, float] = field(default_factory=dict)
    converged: bool = True
    iterations: int = 0
    warnings: Tuple[str, ...] = ()
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str, warnings: Tuple[str, ...] = ()) -> "DCResult":
        return cls(success=False, converged=False, warnings=tuple(warnings), error=error)


@dataclass(frozen=True)
class ACResult:
    """
    Phasor solution at one frequency. Values are complex; `magnitude` and
    `phase_degrees` read either a net voltage or a branch current by name.
    """
    success: bool
    frequency: float = 0.0
    node_voltages: Dict[str, complex] = field(default_factory=dict)
    branch_currents: Dict[str, complex] = field(default_factory=dict)
    meter_readings: Dict[str, MeterReading] = field(default_factory=dict)
    terminal_nets: Dict[str, str] = field(default_factory=dict)
    warnings: Tuple[str, ...] = ()
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str, frequency: float = 0.0, warnings: Tuple[str, ...] = ()) -> "ACResult":
        return cls(success=False, frequency=frequency, warnings=tuple(warnings), error=error)

    def value(self, name: str) -> complex:
        if name in self.node_voltages:
            return self.node_voltages[name]
        if name in self.branch_currents:
            return self.branch_currents[name]
        raise KeyError(f"'{name}' is neither a net nor a branch label of this result.")

    def magnitude(self, name: str) -> float:
        return abs(self.value(name))

    def phase_degrees(self, name: str) -> float:
        return math.degrees(cmath.phase(self.value(name)))


@dataclass(frozen=True)
class TransientResult:
    """
    Time series of a transient run, one sample per time point in `times`.

    A failed run keeps the samples computed before the failure, so `times` and
    every series may be shorter than the requested window.
    """
    success: bool
    times: np.ndarray = field(default_factory=lambda: np.zeros(0))
    node_voltages: Dict[str, np.ndarray] = field(default_factory=dict)
    branch_currents: Dict[str, np.ndarray] = field(default_factory=dict)
    component_currents: Dict[str, np.ndarray] = field(default_factory=dict)
    oscilloscope_traces: Dict[str, np.ndarray] = field(default_factory=dict)
    terminal_nets: Dict[str, str] = field(default_factory=dict)
    non_converged_times: Tuple[float, ...] = ()
    warnings: Tuple[str, ...] = ()
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str, warnings: Tuple[str, ...] = ()) -> "TransientResult":
        return cls(success=False, warnings=tuple(warnings), error=error)

    @property
    def converged(self) -> bool:
        return not self.non_converged_times

    def at(self, name: str, time: float) -> float:
        """Value of a net voltage or branch current at the sample closest to `time`."""
        series = self.node_voltages.get(name)
        if series is None:
            series = self.branch_currents.get(name)
        if series is None:
            raise KeyError(f"'{name}' is neither a net nor a branch label of this result.")
        return float(series[int(np.argmin(np.abs(self.times - time)))])
