# src/mnasim_core/parser/__init__.py
from .raw_data import ParsedCircuitNode, ParsedComponentData
from .parser import NetlistParser
from .exceptions import ParsingError, SchemaValidationError

__all__ = [
    # IR Data Structures
    "ParsedCircuitNode",
    "ParsedComponentData",
    # Parser and Exceptions
    "NetlistParser",
    "ParsingError",
    "SchemaValidationError",
]
