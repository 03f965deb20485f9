# src/mnasim_core/netlist/data_structures.py
# Required for forward references in type hints (e.g., 'ComponentBase')
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Set, Union, TYPE_CHECKING

from .ids import IdAllocator

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..components.base import ComponentBase


@dataclass(eq=False)
class Terminal:
    """
    A named connection point owned by exactly one component.

    Terminals compare by identity: two terminals with the same name on different
    components are different electrical points. `net_id` is written by the
    NetResolver and is only meaningful after resolution.
    """
    component: ComponentBase
    name: str
    hidden: bool = False
    optional: bool = False
    net_label: Optional[str] = None
    net_id: Optional[int] = None

    @property
    def fqn(self) -> str:
        return f"{self.component.instance_id}.{self.name}"

    def __repr__(self) -> str:
        return f"Terminal('{self.fqn}', net_id={self.net_id})"


@dataclass(eq=False)
class Wire:
    """A drawn wire. Only complete wires (both ends bound) join terminals into a net."""
    wire_id: str
    start: Optional[Terminal] = None
    end: Optional[Terminal] = None

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    def __repr__(self) -> str:
        start = self.start.fqn if self.start else None
        end = self.end.fqn if self.end else None
        return f"Wire('{self.wire_id}', {start} -> {end})"


TerminalRef = Union[Terminal, str]


class Netlist:
    """
    The flattened component/terminal/wire description consumed by the solvers.

    Component insertion order is the encounter order used for net numbering and
    branch-unknown allocation. Ids are drawn from the netlist's own IdAllocator.
    """

    def __init__(self, name: str = "circuit", allocator: Optional[IdAllocator] = None):
        self.name = name
        self.ids: IdAllocator = allocator if allocator is not None else IdAllocator()
        self._components: Dict[str, ComponentBase] = {}
        self.wires: List[Wire] = []

    # --- Components ---

    def add(self, component: ComponentBase) -> ComponentBase:
        """Adds an already constructed component, reserving its id."""
        if component.instance_id in self._components:
            raise ValueError(f"Netlist '{self.name}' already contains a component '{component.instance_id}'.")
        if not self.ids.is_used(component.instance_id):
            self.ids.reserve(component.instance_id)
        self._components[component.instance_id] = component
        logger.debug(f"Added {component!r} to netlist '{self.name}'.")
        return component

    def create(self, type_str: str, instance_id: Optional[str] = None, **properties: Any) -> ComponentBase:
        """
        Instantiates a registered component type and adds it.

        Args:
            type_str: The registered type name (e.g. 'Resistor').
            instance_id: Explicit id; allocated from the type's prefix when omitted.
            **properties: Parameter values (numbers in SI units or pint strings).
        """
        from ..components.base import get_component_class

        component_cls = get_component_class(type_str)
        if instance_id is None:
            instance_id = self.ids.allocate(component_cls.id_prefix)
        else:
            self.ids.reserve(instance_id)
        component = component_cls(instance_id, properties)
        self._components[instance_id] = component
        logger.debug(f"Created {component!r} in netlist '{self.name}'.")
        return component

    def remove(self, instance_id: str) -> None:
        """Removes a component and every wire touching one of its terminals."""
        component = self._components.pop(instance_id)
        owned = set(component.terminals)
        self.wires = [w for w in self.wires if w.start not in owned and w.end not in owned]
        self.ids.release(instance_id)

    @property
    def components(self) -> List[ComponentBase]:
        return list(self._components.values())

    def component(self, instance_id: str) -> ComponentBase:
        try:
            return self._components[instance_id]
        except KeyError:
            raise KeyError(f"Netlist '{self.name}' has no component '{instance_id}'.") from None

    def __contains__(self, instance_id: str) -> bool:
        return instance_id in self._components

    def __iter__(self) -> Iterator[ComponentBase]:
        return iter(self._components.values())

    def __len__(self) -> int:
        return len(self._components)

    @property
    def is_empty(self) -> bool:
        return not self._components

    # --- Terminals & Wires ---

    def terminal(self, ref: TerminalRef) -> Terminal:
        """Resolves 'R1.left' (or a Terminal already owned by this netlist) to a Terminal."""
        if isinstance(ref, Terminal):
            if self._components.get(ref.component.instance_id) is not ref.component:
                raise KeyError(f"Terminal '{ref.fqn}' does not belong to netlist '{self.name}'.")
            return ref
        instance_id, sep, port = ref.rpartition(".")
        if not sep:
            raise KeyError(f"Terminal reference '{ref}' must have the form '<component>.<terminal>'.")
        return self.component(instance_id).terminal(port)

    def add_wire(self, start: Optional[TerminalRef] = None, end: Optional[TerminalRef] = None) -> Wire:
        """Adds a wire; either end may be left unbound (an unfinished wire)."""
        wire = Wire(
            wire_id=self.ids.allocate("W_"),
            start=self.terminal(start) if start is not None else None,
            end=self.terminal(end) if end is not None else None,
        )
        self.wires.append(wire)
        return wire

    def connect(self, a: TerminalRef, b: TerminalRef, *more: TerminalRef) -> List[Wire]:
        """Wires the given terminals together in a chain and returns the new wires."""
        refs = [a, b, *more]
        return [self.add_wire(first, second) for first, second in zip(refs, refs[1:])]

    def complete_wires(self) -> Iterator[Wire]:
        return (w for w in self.wires if w.is_complete)

    def connected_terminals(self) -> Set[Terminal]:
        """All terminals bound to at least one complete wire."""
        connected: Set[Terminal] = set()
        for wire in self.complete_wires():
            connected.add(wire.start)
            connected.add(wire.end)
        return connected

    def __repr__(self) -> str:
        return f"Netlist('{self.name}', components={len(self._components)}, wires={len(self.wires)})"
