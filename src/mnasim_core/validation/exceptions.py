# src/mnasim_core/validation/exceptions.py
"""
Defines the diagnosable exception raised when circuit validation finds errors.
"""
from typing import List

from .issues import ValidationIssue, ValidationIssueLevel
from ..errors import DiagnosableError, format_diagnostic_report


class SemanticValidationError(DiagnosableError):
    """
    Container for every error-level ValidationIssue of one validation pass.

    Warnings and info issues passed to the constructor are dropped; they never
    stop an analysis.
    """
    def __init__(self, issues: List[ValidationIssue]):
        self.issues: List[ValidationIssue] = [
            issue for issue in issues if issue.level == ValidationIssueLevel.ERROR
        ]
        if not self.issues:
            summary_message = "SemanticValidationError was raised with no error-level issues."
        elif len(self.issues) == 1:
            summary_message = self.issues[0].message
        else:
            summary_message = (
                f"Circuit validation failed with {len(self.issues)} errors:\n"
                + "\n".join(f"  - {issue.message}" for issue in self.issues)
            )
        super().__init__(summary_message)

    def get_diagnostic_report(self) -> str:
        error_lines = [str(issue) for issue in self.issues]
        details = (
            f"Found {len(self.issues)} error(s) in the circuit definition:\n\n"
            + "\n".join(f"  - {line}" for line in error_lines)
        )

        first_issue = self.issues[0] if self.issues else None
        context = {}
        if first_issue:
            context['component'] = first_issue.component_fqn or first_issue.details.get('circuit_name')
            if source_path := first_issue.details.get('source_yaml_path'):
                context['source_file'] = source_path

        return format_diagnostic_report(
            error_type="Circuit Validation Error",
            details=details,
            suggestion="Correct the errors listed above before running the analysis.",
            context=context
        )
