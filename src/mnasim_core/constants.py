# src/mnasim_core/constants.py
import logging
import math

logger = logging.getLogger(__name__)

# --- Linear Algebra ---

#: Pivot magnitude below which Gaussian elimination declares the system singular.
#: Compared against abs() for real systems and the modulus for complex systems.
SINGULAR_PIVOT_THRESHOLD: float = 1.0e-12

# --- Numerical Stand-ins for Ideal Elements ---

#: Conductance used for an inductor at DC (and any other zero-impedance series element).
#: Value: 1e6 Siemens (1 micro-ohm).
DC_INDUCTOR_SHORT_SIEMENS: float = 1.0e6  # Siemens

#: Internal resistance of the voltmeter, the wattmeter voltage coil and oscilloscope voltage channels.
IDEAL_METER_RESISTANCE_OHMS: float = 1.0e8  # Ohms

#: Conductance stamped in place of an open element (e.g. a load at 0 %).
OPEN_CIRCUIT_SIEMENS: float = 1.0e-12  # Siemens

# --- Regularization Leakages (not physical elements) ---

#: Leakage from each transformer primary terminal to ground.
TRANSFORMER_PRIMARY_LEAKAGE_SIEMENS: float = 1.0e-12  # Siemens

#: Leakage from each transformer secondary terminal to ground. The secondary winding is
#: galvanically isolated, so without this the secondary voltages float.
TRANSFORMER_SECONDARY_LEAKAGE_SIEMENS: float = 1.0e-9  # Siemens

#: Leakage from every oscilloscope terminal to ground.
OSCILLOSCOPE_LEAKAGE_SIEMENS: float = 1.0e-12  # Siemens

# --- Newton-Raphson ---

#: Convergence tolerance on the largest net-voltage change between iterations.
NEWTON_TOLERANCE_VOLTS: float = 1.0e-6  # Volts

#: Iteration budget for a DC operating point.
DC_MAX_ITERATIONS: int = 100

#: Iteration budget for each transient time step.
TRANSIENT_MAX_ITERATIONS: int = 50

#: Forward-bias initial guess placed on diode anode nets.
DIODE_SEED_VOLTAGE: float = 0.6  # Volts

#: Cap on the diode exponent argument, in multiples of n*Vt.
DIODE_MAX_EXPONENT: float = 40.0

# --- Transient ---

#: Magnitude above which a transient solution is considered divergent.
DIVERGENCE_LIMIT: float = 1.0e15

# --- Op-Amp Macro-Model ---

#: Common-mode input resistance as a multiple of the differential input resistance.
OPAMP_COMMON_MODE_RESISTANCE_FACTOR: float = 50.0

#: Conductance from the internal pole node to ground (1 ohm).
OPAMP_POLE_CONDUCTANCE_SIEMENS: float = 1.0

# --- Rated Load (2 kVA, 120 V, PF 0.8 lagging) ---

LOAD_RATED_VOLTAGE: float = 120.0  # Volts
LOAD_RATED_CURRENT: float = 16.6667  # Amperes (2000 VA / 120 V)
LOAD_POWER_FACTOR: float = 0.8
LOAD_SIN_PHI: float = 0.6
LOAD_RATED_FREQUENCY: float = 50.0  # Hz

# --- Three-Phase ---

#: Phase offsets of the R, Y and B phases relative to the source phase shift.
THREE_PHASE_OFFSETS_DEG = (0.0, -120.0, 120.0)

SQRT2: float = math.sqrt(2.0)
SQRT3: float = math.sqrt(3.0)

logger.debug("Defined solver tunables (pivot threshold %g, Newton tolerance %g V).",
             SINGULAR_PIVOT_THRESHOLD, NEWTON_TOLERANCE_VOLTS)
