# src/mnasim_core/simulation/__init__.py
"""
The MNA solver stack: net resolution, system layout, stamping, Newton-Raphson,
the DC/AC/transient orchestrators and the public run_* facade.
"""
from .nets import GROUND_NET_ID, GROUND_NET_NAME, Net, NetAssignment, NetResolver
from .linear_system import LinearSystem, gaussian_elimination
from .exceptions import MnaInputError, SingularMatrixError, TransientDivergenceError
from .config import (
    AnalysisConfig, AnalysisType, ConfigParsingError, NewtonSettings,
    DC_NEWTON, TRANSIENT_NEWTON, parse_analysis_config,
)
from .layout import ElementSlots, MnaLayout
from .companion import CompanionState
from .stamps import STAMP_TABLE, StampContext, Stamper
from .newton import NewtonRaphsonEngine, NewtonState
from .results import ACResult, DCResult, MeterReading, TransientResult
from .dc import DCSolver
from .ac import ACSolver
from .transient import TransientSolver
from .execution import (
    run_dc, run_ac, run_transient, run_analysis, run_netlist_file, require_success,
)

__all__ = [
    # Nets & layout
    "GROUND_NET_ID", "GROUND_NET_NAME", "Net", "NetAssignment", "NetResolver",
    "ElementSlots", "MnaLayout",
    # Linear algebra
    "LinearSystem", "gaussian_elimination",
    # Stamping & iteration
    "STAMP_TABLE", "StampContext", "Stamper", "CompanionState",
    "NewtonRaphsonEngine", "NewtonState",
    # Configuration
    "AnalysisConfig", "AnalysisType", "ConfigParsingError", "NewtonSettings",
    "DC_NEWTON", "TRANSIENT_NEWTON", "parse_analysis_config",
    # Solvers & results
    "DCSolver", "ACSolver", "TransientSolver",
    "DCResult", "ACResult", "TransientResult", "MeterReading",
    # Exceptions
    "MnaInputError", "SingularMatrixError", "TransientDivergenceError",
    # Facade
    "run_dc", "run_ac", "run_transient", "run_analysis", "run_netlist_file", "require_success",
]
