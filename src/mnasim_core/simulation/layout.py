# src/mnasim_core/simulation/layout.py
"""
Index plan of the extended MNA system.

Unknown vector layout:

    [ external nets | internal nets | branch currents | transformer currents ]
      0 .. n_ext-1    component-owned  sources, meters   one per transformer

The layout is computed once per netlist, before any stamping, and fixes the
system size for every Newton iteration and every time step of an analysis.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..components.base import ComponentBase
from ..components.base_enums import ComponentKind
from ..netlist.data_structures import Netlist
from .nets import GROUND_NET_ID, NetAssignment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElementSlots:
    """
    Where one component's unknowns live in the system.

    `nets` holds one entry per terminal (declared ports, then hidden ports); None
    means the terminal is on the ground net and has no row or column.
    """
    nets: Tuple[Optional[int], ...]
    branches: Tuple[int, ...] = ()
    internal_nets: Tuple[int, ...] = ()


@dataclass(frozen=True)
class MnaLayout:
    """
    Attributes:
        num_nets: Net-voltage unknowns, external plus internal (the Newton convergence block).
        num_branches: Branch-current unknowns (including transformer primary currents).
        labels: Human-readable label of every unknown, by index.
        slots: ElementSlots per component id.
        net_index: Row of each named net ('gnd' excluded).
        branch_index: Row of each branch label.
    """
    num_nets: int
    num_branches: int
    labels: Tuple[str, ...]
    slots: Dict[str, ElementSlots]
    net_index: Dict[str, int]
    branch_index: Dict[str, int]

    @property
    def size(self) -> int:
        return self.num_nets + self.num_branches

    def label(self, index: int) -> str:
        if 0 <= index < len(self.labels):
            return self.labels[index]
        return f"#{index}"

    @classmethod
    def build(cls, netlist: Netlist, assignment: NetAssignment) -> "MnaLayout":
        components: List[ComponentBase] = netlist.components
        labels: List[str] = [net.name for net in assignment.nets]
        net_index: Dict[str, int] = {net.name: net.net_id for net in assignment.nets}

        internal: Dict[str, Tuple[int, ...]] = {}
        for component in components:
            indices = []
            for suffix in component.internal_net_names:
                name = f"{component.instance_id}.{suffix}"
                net_index[name] = len(labels)
                indices.append(len(labels))
                labels.append(name)
            internal[component.instance_id] = tuple(indices)
        num_nets = len(labels)

        # Transformer currents go after every other branch unknown.
        ordered = (
            [c for c in components if c.kind is not ComponentKind.TRANSFORMER]
            + [c for c in components if c.kind is ComponentKind.TRANSFORMER]
        )
        branches: Dict[str, Tuple[int, ...]] = {}
        branch_index: Dict[str, int] = {}
        for component in ordered:
            indices = []
            for label in component.branch_labels():
                branch_index[label] = len(labels)
                indices.append(len(labels))
                labels.append(label)
            branches[component.instance_id] = tuple(indices)

        slots = {}
        for component in components:
            net_ids = tuple(assignment.net_id(t) for t in component.terminals)
            slots[component.instance_id] = ElementSlots(
                nets=tuple(None if n == GROUND_NET_ID else n for n in net_ids),
                branches=branches[component.instance_id],
                internal_nets=internal[component.instance_id],
            )

        layout = cls(
            num_nets=num_nets,
            num_branches=len(labels) - num_nets,
            labels=tuple(labels),
            slots=slots,
            net_index=net_index,
            branch_index=branch_index,
        )
        logger.debug(
            f"MNA layout for '{netlist.name}': {assignment.num_nets} nets, "
            f"{num_nets - assignment.num_nets} internal nets, {layout.num_branches} branch unknowns."
        )
        return layout


def net_voltage(solution, index: Optional[int]):
    """Voltage of a slot in `solution`; a None slot is the ground net (0 V)."""
    return 0.0 if index is None else solution[index]
