# src/mnasim_core/parser/exceptions.py
"""
Diagnosable exceptions of the parsing and schema validation stage.

`ParsingError` covers file access and YAML syntax; `SchemaValidationError` covers
documents that load but do not match the netlist schema.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from ..errors import DiagnosableError, format_diagnostic_report


class BaseParsingError(DiagnosableError):
    """Common base of every YAML parsing and schema validation error."""
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Generic Parsing Error",
            details=str(self),
            suggestion="Please check the format and content of the relevant YAML netlist file.",
            context={}
        )


@dataclass()
class ParsingError(BaseParsingError):
    """Raised when a netlist file cannot be read or is not valid YAML."""
    details: str
    file_path: Path

    def __str__(self):
        return f"Parsing error in file '{self.file_path}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="YAML Parsing or File Error",
            details=self.details,
            suggestion="Ensure the file exists, has the correct read permissions, and contains valid YAML syntax.",
            context={'source_file': self.file_path}
        )


def _format_schema_errors(errors: Dict[str, Any], prefix: str = "") -> list:
    """Flattens cerberus' nested error tree into 'field.path: message' lines."""
    lines = []
    for key, messages in sorted(errors.items(), key=lambda item: str(item[0])):
        path = f"{prefix}.{key}" if prefix else str(key)
        for message in messages:
            if isinstance(message, dict):
                lines.extend(_format_schema_errors(message, path))
            else:
                lines.append(f"Field '{path}': {message}")
    return lines


@dataclass()
class SchemaValidationError(BaseParsingError):
    """
    Raised when a YAML document loads but does not conform to the netlist schema
    (missing keys, invalid identifiers, duplicate component ids, incomplete
    analysis block).
    """
    errors: Dict[str, Any]
    file_path: Path

    @property
    def error_lines(self) -> list:
        return _format_schema_errors(self.errors)

    def __str__(self):
        return (
            f"YAML schema validation failed for file '{self.file_path}':\n"
            + "\n".join(f"  - {line}" for line in self.error_lines)
        )

    def get_diagnostic_report(self) -> str:
        lines = self.error_lines
        details = (
            "The structure of the YAML file does not conform to the required schema.\n"
            f"See details for {len(lines)} issue(s) below:\n\n"
            + "\n".join(f"  - {line}" for line in lines)
        )
        return format_diagnostic_report(
            error_type="YAML Schema Validation Error",
            details=details,
            suggestion="Correct the specified fields to match the netlist format. Check for invalid identifiers (e.g., using '-' or '.'), duplicate component IDs, or an 'analysis' block missing 'frequency' (ac) or 'end_time'/'time_step' (transient).",
            context={'source_file': self.file_path}
        )
