import logging
logger = logging.getLogger(__name__)

from .issues import ValidationIssue, ValidationIssueLevel
from .issue_codes import ValidationIssueCode
from .validator import CircuitValidator
from .exceptions import SemanticValidationError

__all__ = [
    "ValidationIssue",
    "ValidationIssueLevel",
    "ValidationIssueCode",
    "CircuitValidator",
    "SemanticValidationError",
]
