# src/mnasim_core/components/transformer.py
import logging
from typing import Dict, List, Tuple

from .base import ComponentBase, ParameterSpec, register_component
from .base_enums import ComponentKind

logger = logging.getLogger(__name__)


@register_component(ComponentKind.TRANSFORMER)
class Transformer(ComponentBase):
    """
    Single-phase transformer, approximate equivalent circuit referred to the primary.

    primary_pos --[Req + jXeq]-- mid --(ideal a:1)-- secondary
                                  |
                           [Rc || jXm] to primary_neg

    The internal `mid` net and the primary current of the ideal coupling are extra
    MNA unknowns. `turns_ratio` is a = N1/N2.
    """
    id_prefix = "T"
    internal_net_names = ("mid",)

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "turns_ratio": ParameterSpec("dimensionless", 2.0, positive=True),
            "series_resistance": ParameterSpec("ohm", 1.15, non_negative=True),
            "series_reactance": ParameterSpec("ohm", 0.85, non_negative=True),
            "core_resistance": ParameterSpec("ohm", 1200.0, positive=True),
            "magnetizing_reactance": ParameterSpec("ohm", 1000.0, positive=True),
        }

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["primary_pos", "primary_neg", "secondary_pos", "secondary_neg"]

    def branch_labels(self) -> List[str]:
        return [f"{self.instance_id}.primary"]

    def connectivity(self) -> List[Tuple[str, str]]:
        return [("primary_pos", "primary_neg"), ("secondary_pos", "secondary_neg")]

    def grounded_ports(self) -> List[str]:
        return type(self).declare_ports()
