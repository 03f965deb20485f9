# src/mnasim_core/__init__.py
import logging
from .log_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
logger.info("mnasim_core package initialized.")

from .units import ureg, Quantity
from .netlist import IdAllocator, Netlist, Terminal, Wire
from .components import ComponentKind
from .simulation import (
    run_dc, run_ac, run_transient, run_analysis, run_netlist_file, require_success,
    DCResult, ACResult, TransientResult, MeterReading, AnalysisConfig, AnalysisType,
)
from .parser import NetlistParser
from .netlist_builder import NetlistBuilder
from .errors import MnaSimError, NetlistBuildError, SimulationRunError

__all__ = [
    # Units
    "ureg", "Quantity",
    # Netlist
    "IdAllocator", "Netlist", "Terminal", "Wire", "ComponentKind",
    # Parser & Builder
    "NetlistParser", "NetlistBuilder",
    # Simulation
    "run_dc", "run_ac", "run_transient", "run_analysis", "run_netlist_file", "require_success",
    "DCResult", "ACResult", "TransientResult", "MeterReading", "AnalysisConfig", "AnalysisType",
    # Top-Level Errors
    "MnaSimError", "NetlistBuildError", "SimulationRunError",
]
