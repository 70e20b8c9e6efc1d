from enum import Enum
from typing import Optional


class Severity(Enum):
    """How far an error is allowed to propagate through the batch driver."""
    FATAL = "fatal"  # abort the whole run
    ITEM = "item"    # skip the current image or pair


class PipelineError(Exception):
    """Base class for all pipeline errors."""
    default_severity = Severity.ITEM

    def __init__(self, message: str, severity: Optional[Severity] = None):
        super().__init__(message)
        self.severity = severity if severity is not None else self.default_severity

    @property
    def is_fatal(self) -> bool:
        return self.severity is Severity.FATAL


class ValidationError(PipelineError, ValueError):
    """Invalid geometric parameter, e.g. a negative radius."""


class ConfigError(PipelineError):
    """Malformed or missing configuration, or an unsatisfiable stage precondition."""
    default_severity = Severity.FATAL


class ArtifactIOError(PipelineError, OSError):
    """A resource or artifact file could not be read or written."""


class ComputationError(PipelineError, ArithmeticError):
    """Degenerate numeric input or missing inputs for a compute step."""
