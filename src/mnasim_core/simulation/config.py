# src/mnasim_core/simulation/config.py
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import pint

from ..constants import DC_MAX_ITERATIONS, NEWTON_TOLERANCE_VOLTS, TRANSIENT_MAX_ITERATIONS
from ..errors import DiagnosableError, format_diagnostic_report
from ..units import to_magnitude

logger = logging.getLogger(__name__)


class AnalysisType(Enum):
    DC = "dc"
    AC = "ac"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class NewtonSettings:
    """Convergence tolerance (V) and iteration budget of a Newton-Raphson run."""
    tolerance: float = NEWTON_TOLERANCE_VOLTS
    max_iterations: int = DC_MAX_ITERATIONS

    def __post_init__(self):
        if self.tolerance <= 0:
            raise ValueError(f"Newton tolerance must be positive, got {self.tolerance}.")
        if self.max_iterations < 1:
            raise ValueError(f"Newton iteration budget must be at least 1, got {self.max_iterations}.")


DC_NEWTON = NewtonSettings(max_iterations=DC_MAX_ITERATIONS)
TRANSIENT_NEWTON = NewtonSettings(max_iterations=TRANSIENT_MAX_ITERATIONS)


@dataclass(frozen=True)
class AnalysisConfig:
    """
    What to run on a netlist. `frequency` is required for AC; `end_time` and
    `time_step` for transient. Values are in Hz and seconds.
    """
    analysis: AnalysisType = AnalysisType.DC
    frequency: Optional[float] = None
    end_time: Optional[float] = None
    time_step: Optional[float] = None
    newton: Optional[NewtonSettings] = field(default=None)


@dataclass()
class ConfigParsingError(DiagnosableError):
    """Raised when an 'analysis' block cannot be turned into an AnalysisConfig."""
    details: str
    user_input: Any = None

    def __str__(self):
        return f"Failed to parse analysis configuration: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Analysis Configuration Error",
            details=self.details,
            suggestion="Use type 'dc', 'ac' (with 'frequency') or 'transient' (with 'end_time' and 'time_step'). Quantities may carry units, e.g. '1 kHz' or '500 us'.",
            context={'user_input': self.user_input}
        )


def _positive_quantity(raw: Dict[str, Any], key: str, unit: str) -> float:
    try:
        value = to_magnitude(raw[key], unit)
    except KeyError:
        raise ConfigParsingError(f"'{key}' is required for a {raw.get('type')} analysis.", raw) from None
    except (pint.DimensionalityError, pint.UndefinedUnitError, TypeError, ValueError) as e:
        raise ConfigParsingError(f"'{key}' could not be read as a value in '{unit}': {e}", raw.get(key)) from e
    if not value > 0:
        raise ConfigParsingError(f"'{key}' must be positive, got {value} {unit}.", raw.get(key))
    return value


def parse_analysis_config(raw: Optional[Dict[str, Any]]) -> AnalysisConfig:
    """
    Parses a raw 'analysis' mapping (as found in a YAML netlist) into an AnalysisConfig.
    A missing block means a DC operating point.
    """
    if not raw:
        return AnalysisConfig()
    try:
        analysis = AnalysisType(str(raw.get("type", "dc")).lower())
    except ValueError:
        raise ConfigParsingError(f"Unknown analysis type '{raw.get('type')}'.", raw.get("type")) from None

    newton = None
    if "max_iterations" in raw or "tolerance" in raw:
        defaults = TRANSIENT_NEWTON if analysis is AnalysisType.TRANSIENT else DC_NEWTON
        try:
            newton = NewtonSettings(
                tolerance=to_magnitude(raw.get("tolerance", defaults.tolerance), "volt"),
                max_iterations=int(raw.get("max_iterations", defaults.max_iterations)),
            )
        except (pint.DimensionalityError, pint.UndefinedUnitError, TypeError, ValueError) as e:
            raise ConfigParsingError(f"Invalid Newton settings: {e}", raw) from e

    if analysis is AnalysisType.AC:
        return AnalysisConfig(analysis, frequency=_positive_quantity(raw, "frequency", "hertz"), newton=newton)
    if analysis is AnalysisType.TRANSIENT:
        end_time = _positive_quantity(raw, "end_time", "second")
        time_step = _positive_quantity(raw, "time_step", "second")
        if time_step > end_time:
            raise ConfigParsingError(f"time_step ({time_step} s) exceeds end_time ({end_time} s).", raw)
        return AnalysisConfig(analysis, end_time=end_time, time_step=time_step, newton=newton)
    return AnalysisConfig(analysis, newton=newton)
