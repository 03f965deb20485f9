# src/mnasim_core/parser/raw_data.py
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

# The classes in this module are the intermediate representation (IR) handed
# from the NetlistParser to the NetlistBuilder.


@dataclass(frozen=True)
class ParsedComponentData:
    """IR for one component entry: its type, its port -> net map and raw parameters."""
    instance_id: str
    component_type: str
    raw_ports_dict: Dict[str, str]
    raw_parameters_dict: Dict[str, Any]
    source_yaml_path: Path


@dataclass(frozen=True)
class ParsedCircuitNode:
    """IR of one parsed YAML netlist file."""
    circuit_name: str
    ground_net_name: str
    source_yaml_path: Path
    components: List[ParsedComponentData]
    raw_analysis_config: Optional[Dict[str, Any]] = None
