# src/mnasim_core/analysis/topology.py
import logging
from typing import Set

import networkx as nx

from ..netlist.data_structures import Netlist
from ..simulation.nets import GROUND_NET_ID, NetAssignment
from .exceptions import TopologyAnalysisError
from .results import TopologyAnalysisResults

logger = logging.getLogger(__name__)


class TopologyAnalyzer:
    """
    Finds nets that have no path to ground.

    Nets are graph nodes; every pair returned by a component's `connectivity()`
    becomes an edge between the two terminals' nets, and every `grounded_ports()`
    entry an edge to the ground node. A net outside the ground node's connected
    component has no reference and makes the MNA matrix singular unless a
    regularizing leakage happens to reach it.
    """

    def __init__(self, netlist: Netlist, assignment: NetAssignment):
        self.netlist = netlist
        self.assignment = assignment

    def analyze(self) -> TopologyAnalysisResults:
        graph = self._build_graph()
        grounded: Set[int] = set()
        if GROUND_NET_ID in graph:
            grounded = set(nx.node_connected_component(graph, GROUND_NET_ID))
        grounded.discard(GROUND_NET_ID)

        floating = tuple(net.name for net in self.assignment.nets if net.net_id not in grounded)
        if floating:
            logger.debug(f"Nets without a path to ground in '{self.netlist.name}': {list(floating)}")
        return TopologyAnalysisResults(graph=graph, grounded_nets=frozenset(grounded), floating_nets=floating)

    def _build_graph(self) -> nx.Graph:
        graph = nx.Graph()
        graph.add_nodes_from(net.net_id for net in self.assignment.nets)
        if self.assignment.has_ground:
            graph.add_node(GROUND_NET_ID)

        for component in self.netlist:
            try:
                for port_a, port_b in component.connectivity():
                    a = self.assignment.net_id(component.terminal(port_a))
                    b = self.assignment.net_id(component.terminal(port_b))
                    if a != b:
                        graph.add_edge(a, b, component=component.instance_id)
                for port in component.grounded_ports():
                    net_id = self.assignment.net_id(component.terminal(port))
                    if net_id != GROUND_NET_ID:
                        graph.add_edge(net_id, GROUND_NET_ID, component=component.instance_id)
            except KeyError as e:
                raise TopologyAnalysisError(
                    circuit_name=self.netlist.name,
                    details=f"Component '{component.instance_id}' has a terminal without a resolved net: {e}"
                ) from e
        return graph
