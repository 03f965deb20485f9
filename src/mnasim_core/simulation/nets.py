# src/mnasim_core/simulation/nets.py
"""
Net resolution: grouping terminals into nets and designating the ground net.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from networkx.utils import UnionFind

from ..components.base_enums import ComponentKind
from ..netlist.data_structures import Netlist, Terminal

logger = logging.getLogger(__name__)

#: Reserved id of the ground net. It never appears in the unknown vector.
GROUND_NET_ID: int = -1
GROUND_NET_NAME: str = "gnd"


@dataclass(frozen=True)
class Net:
    """A resolved net. The ground net carries GROUND_NET_ID."""
    net_id: int
    name: str
    terminals: Tuple[Terminal, ...]

    @property
    def is_ground(self) -> bool:
        return self.net_id == GROUND_NET_ID


@dataclass(frozen=True)
class NetAssignment:
    """
    Output of the NetResolver.

    Attributes:
        nets: The non-ground nets, indexed by net id (nets[i].net_id == i).
        ground: The ground net, or None when the circuit has no ground reference.
        terminal_nets: Net id of every terminal of every component.
    """
    nets: Tuple[Net, ...]
    ground: Optional[Net]
    terminal_nets: Dict[Terminal, int] = field(repr=False)

    @property
    def has_ground(self) -> bool:
        return self.ground is not None

    @property
    def num_nets(self) -> int:
        return len(self.nets)

    def net_id(self, terminal: Terminal) -> int:
        return self.terminal_nets[terminal]

    def net_name(self, net_id: int) -> str:
        if net_id == GROUND_NET_ID:
            return self.ground.name if self.ground is not None else GROUND_NET_NAME
        return self.nets[net_id].name

    def terminal_net_names(self) -> Dict[str, str]:
        """Maps every terminal fqn ('R1.left') to the name of its net."""
        return {t.fqn: self.net_name(net_id) for t, net_id in self.terminal_nets.items()}


class NetResolver:
    """
    Groups component terminals into nets with networkx's UnionFind over complete
    wires.

    A group is the ground net when any of its terminals belongs to a Ground
    component; all such groups together form the single ground reference.
    Every other group gets the next id in encounter order (components in netlist
    order, terminals in declaration order). Hidden terminals take part like any
    other; unwired ones simply end up as single-terminal nets.

    A net is named after the first net label among its terminals. An unlabelled
    net made only of hidden terminals is named after its first terminal
    ('U1.internal_pole'); any other unlabelled net gets 'N<id + 1>', moved up to
    the next free number when a label already uses that name.
    """

    def resolve(self, netlist: Netlist) -> NetAssignment:
        ordered_terminals: List[Terminal] = [t for component in netlist for t in component.terminals]
        groups = UnionFind(ordered_terminals)
        for wire in netlist.complete_wires():
            groups.union(wire.start, wire.end)

        ground_roots = {
            groups[t] for t in ordered_terminals if t.component.kind is ComponentKind.GROUND
        }

        root_ids: Dict[Terminal, int] = {}
        members: Dict[int, List[Terminal]] = {}
        terminal_nets: Dict[Terminal, int] = {}
        next_id = 0
        for terminal in ordered_terminals:
            root = groups[terminal]
            if root in ground_roots:
                net_id = GROUND_NET_ID
            else:
                net_id = root_ids.get(root)
                if net_id is None:
                    net_id = next_id
                    root_ids[root] = net_id
                    next_id += 1
            terminal_nets[terminal] = net_id
            terminal.net_id = net_id
            members.setdefault(net_id, []).append(terminal)

        ground = None
        if ground_roots:
            ground_terminals = members[GROUND_NET_ID]
            ground_name = next((t.net_label for t in ground_terminals if t.net_label), GROUND_NET_NAME)
            ground = Net(net_id=GROUND_NET_ID, name=ground_name, terminals=tuple(ground_terminals))

        taken = {t.net_label for t in ordered_terminals if t.net_label}
        if ground is not None:
            taken.add(ground.name)
        nets = tuple(
            Net(net_id=i, name=self._net_name(i, members[i], taken), terminals=tuple(members[i]))
            for i in range(next_id)
        )

        logger.debug(
            f"Resolved {len(ordered_terminals)} terminals of '{netlist.name}' into "
            f"{len(nets)} nets (ground present: {ground is not None})."
        )
        return NetAssignment(nets=nets, ground=ground, terminal_nets=terminal_nets)

    @staticmethod
    def _net_name(net_id: int, terminals: List[Terminal], taken: Set[str]) -> str:
        for terminal in terminals:
            if terminal.net_label:
                return terminal.net_label
        if all(t.hidden for t in terminals):
            name = terminals[0].fqn
        else:
            number = net_id + 1
            while f"N{number}" in taken:
                number += 1
            name = f"N{number}"
        taken.add(name)
        return name
