# src/mnasim_core/netlist/__init__.py
from .ids import IdAllocator
from .data_structures import Netlist, Terminal, Wire, TerminalRef

__all__ = ["IdAllocator", "Netlist", "Terminal", "Wire", "TerminalRef"]
