# src/mnasim_core/analysis/results.py
"""
Result contracts of the pre-simulation analysis services.
"""
from dataclasses import dataclass
from typing import FrozenSet, Tuple

import networkx as nx


@dataclass(frozen=True)
class TopologyAnalysisResults:
    """
    Connectivity of a resolved netlist.

    Attributes:
        graph: Undirected graph whose nodes are net ids (ground is GROUND_NET_ID) and
               whose edges are the internal paths of the components.
        grounded_nets: Ids of the nets that reach ground through some component.
        floating_nets: Names of the nets with no path to ground, in net-id order.
    """
    graph: nx.Graph
    grounded_nets: FrozenSet[int]
    floating_nets: Tuple[str, ...]

    @property
    def has_floating_nets(self) -> bool:
        return bool(self.floating_nets)
