# src/mnasim_core/netlist/ids.py
import logging
import re
from typing import Dict, Set

logger = logging.getLogger(__name__)

_NUMBERED_ID = re.compile(r"^(?P<prefix>[A-Za-z_]+?)(?P<number>\d+)$")


class IdAllocator:
    """
    Hands out unique, human-readable identifiers ('R1', 'R2', 'W1', ...).

    One allocator belongs to one netlist (or editing session). It keeps a counter
    per prefix and a set of every id already in use, so ids chosen explicitly by
    the user are never handed out again.
    """

    def __init__(self):
        self._counters: Dict[str, int] = {}
        self._used: Set[str] = set()

    def allocate(self, prefix: str) -> str:
        """Returns the next free id for `prefix` and marks it as used."""
        if not prefix:
            raise ValueError("An id prefix must be a non-empty string.")
        counter = self._counters.get(prefix, 0)
        while True:
            counter += 1
            candidate = f"{prefix}{counter}"
            if candidate not in self._used:
                break
        self._counters[prefix] = counter
        self._used.add(candidate)
        return candidate

    def reserve(self, identifier: str) -> None:
        """
        Marks an explicitly chosen id as used.

        Raises:
            ValueError: If the id is already taken.
        """
        if identifier in self._used:
            raise ValueError(f"Identifier '{identifier}' is already in use.")
        self._used.add(identifier)
        match = _NUMBERED_ID.match(identifier)
        if match:
            prefix, number = match.group("prefix"), int(match.group("number"))
            if number > self._counters.get(prefix, 0):
                self._counters[prefix] = number

    def release(self, identifier: str) -> None:
        """Frees an id (e.g. after a component is deleted). Counters never go backwards."""
        self._used.discard(identifier)

    def is_used(self, identifier: str) -> bool:
        return identifier in self._used

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._used
