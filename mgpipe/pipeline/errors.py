"""
Error Types for the mgPipe Initialization Layer

Every precondition the modeling engine relies on has its own exception type so
callers can tell exactly which check failed. None of these are recovered from
locally: they abort the run before the engine is invoked.
"""

from dataclasses import dataclass
from typing import Any, Optional


class MgPipeError(Exception):
    """Base class for all pipeline initialization failures."""


class ValidationError(MgPipeError, ValueError):
    """A parameter failed its type or range constraint."""


class NotNormalizedError(MgPipeError, ValueError):
    """
    Raised when at least one sample column of the abundance table sums to more
    than the normalization tolerance.

    Args:
        message: Human-readable description.
        column_indices: Positions of the offending sample columns (0-based,
            not counting the label column).
        column_names: Sample names of the offending columns.
        totals: Column sums of the offending columns.
    """

    def __init__(self, message: str, column_indices=(), column_names=(), totals=()):
        super().__init__(message)
        self.column_indices = list(column_indices)
        self.column_names = list(column_names)
        self.totals = list(totals)


class MissingFileError(MgPipeError, FileNotFoundError):
    """A diet, abundance, model or info path does not exist on disk."""


class SequentialModeUnsupportedError(MgPipeError):
    """The requested worker count would need the (unsupported) sequential mode."""


class CapabilityMissingError(MgPipeError):
    """Process-based parallel execution is not available in this runtime."""


@dataclass(frozen=True)
class PipelineOutcome:
    """Tagged success/failure of a full pipeline invocation."""
    ok: bool
    result: Any = None
    error: Optional[MgPipeError] = None

    @classmethod
    def success(cls, result: Any) -> "PipelineOutcome":
        return cls(ok=True, result=result)

    @classmethod
    def failure(cls, error: MgPipeError) -> "PipelineOutcome":
        return cls(ok=False, error=error)

    def unwrap(self) -> Any:
        """Return the result, or re-raise the captured error."""
        if not self.ok:
            raise self.error
        return self.result
