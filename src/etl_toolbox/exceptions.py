"""Error taxonomy for the ETL toolbox.

The hierarchy separates failures by how the pipeline must react to them:

- ``ConfigurationError`` / ``ValidationError``: usage mistakes. Never retried,
  never skipped.
- ``SchemaAccessError``: the source or target schema could not be read. Fatal
  for the whole mapping operation.
- ``CoercionError`` and subclasses: a single value could not be converted.
  Row-scoped, subject to the ``skip_bad_rows`` policy.
- ``TransientFailure``: raised by the circuit breaker once its retry budget is
  exhausted.
- ``MappingOperationError``: aggregate raised by the mapper facades, chained to
  the first fatal cause.
"""

from typing import Any, Dict, Optional


class EtlToolboxError(Exception):
    """Base class for all toolbox errors."""


class ConfigurationError(EtlToolboxError):
    """Raised for invalid binding declarations or breaker thresholds."""


class ValidationError(EtlToolboxError):
    """Raised for non-transient usage faults; bypasses the circuit breaker."""


class SchemaAccessError(EtlToolboxError):
    """Raised when a source or target schema cannot be enumerated."""


class SourceNotFoundError(SchemaAccessError, ValidationError):
    """Raised when the sheet, file or table to read from does not exist."""


class InvalidOperationError(EtlToolboxError):
    """Raised when a matched binding identifies neither a column name nor index."""


class TransientFailure(EtlToolboxError):
    """Terminal failure raised by the circuit breaker after repeated errors."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        self.original_error = original_error
        super().__init__(message)


class CoercionError(EtlToolboxError):
    """Raised when a value cannot be converted to its declared type."""

    def __init__(
        self,
        message: str,
        raw_value: Any = None,
        target_type: str = "",
        name: str = "",
    ):
        self.raw_value = raw_value
        self.observed_type = type(raw_value).__name__
        self.target_type = target_type
        self.name = name
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to structured dict for logging."""
        return {
            "error_type": type(self).__name__,
            "message": str(self),
            "raw_value": repr(self.raw_value),
            "observed_type": self.observed_type,
            "target_type": self.target_type,
            "name": self.name,
        }


class NonNullableNullError(CoercionError):
    """Raised when a null or empty value targets a non-nullable type."""


class RowMappingError(CoercionError):
    """A coercion failure annotated with the 1-based source row number."""

    def __init__(
        self,
        row_number: int,
        raw_value: Any = None,
        target_type: str = "",
        name: str = "",
        reason: str = "",
    ):
        self.row_number = row_number
        message = (
            f"Row '{row_number}': unable to cast value '{raw_value}' of type "
            f"'{type(raw_value).__name__}' to type '{target_type}' for '{name}'"
        )
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message, raw_value=raw_value, target_type=target_type, name=name
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["row_number"] = self.row_number
        return data


class MappingOperationError(EtlToolboxError):
    """A mapping operation failed; ``__cause__`` holds the first fatal error."""
