"""Custom exceptions for sample entropy computation.

Provides a hierarchy of exceptions for rejecting malformed inputs
with contextual information for debugging. Degenerate entropy outcomes
(no matches, no extended matches) are not exceptions; see
``vital.entropy.sampen.SampEnStatus``.
"""

from __future__ import annotations

from typing import Any


class SampEnError(Exception):
    """Base exception for sample entropy errors.

    All package-specific exceptions inherit from this class,
    allowing callers to catch every failure with a single except.

    Attributes:
        message: Human-readable error message.
        context: Additional context dictionary.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize sample entropy error.

        Args:
            message: Human-readable error message.
            context: Additional context for debugging.
        """
        self.message = message
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context."""
        if not self.context:
            return self.message
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({context_str})"


class InvalidParameterError(SampEnError):
    """Raised when a computation parameter is invalid.

    This occurs when:
    - Embedding dimension m is not a positive integer
    - Tolerance r is negative or not finite
    - The series is empty or contains NaN/inf samples
    - A configuration override is out of range

    Attributes:
        parameter: Parameter name that is invalid.
        value: Invalid value provided.
        valid_range: Description of valid values.
    """

    def __init__(
        self,
        message: str,
        parameter: str,
        value: Any,
        valid_range: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize invalid parameter error.

        Args:
            message: Human-readable error message.
            parameter: Parameter name that is invalid.
            value: Invalid value provided.
            valid_range: Description of valid values.
            context: Additional context for debugging.
        """
        self.parameter = parameter
        self.value = value
        self.valid_range = valid_range
        full_context = {"parameter": parameter, "value": value}
        if valid_range is not None:
            full_context["valid_range"] = valid_range
        if context:
            full_context.update(context)
        super().__init__(message, full_context)


class InsufficientDataError(InvalidParameterError):
    """Raised when the series is too short for the requested embedding.

    A series of length N supports templates of length m + 1 only when
    m + 1 < N.

    Attributes:
        required: Minimum required series length.
        actual: Actual series length.
    """

    def __init__(
        self,
        message: str,
        required: int,
        actual: int,
        parameter: str = "series",
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize insufficient data error.

        Args:
            message: Human-readable error message.
            required: Minimum required series length.
            actual: Actual series length.
            parameter: Parameter the shortfall is attributed to.
            context: Additional context for debugging.
        """
        self.required = required
        self.actual = actual
        full_context = {"required": required, "actual": actual}
        if context:
            full_context.update(context)
        super().__init__(
            message,
            parameter=parameter,
            value=actual,
            valid_range=f">= {required}",
            context=full_context,
        )


class DataFormatError(SampEnError):
    """Raised when a vital record file cannot be parsed.

    Attributes:
        path: Offending file path, if known.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.path = path
        full_context: dict[str, Any] = {}
        if path is not None:
            full_context["path"] = path
        if context:
            full_context.update(context)
        super().__init__(message, full_context)


class WorkerError(SampEnError):
    """Raised when a parallel worker task fails.

    Partial counts from other workers are discarded; the caller never
    sees a partially reduced result.

    Attributes:
        worker: Index of the failed worker slice.
    """

    def __init__(
        self,
        message: str,
        worker: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.worker = worker
        full_context: dict[str, Any] = {}
        if worker is not None:
            full_context["worker"] = worker
        if context:
            full_context.update(context)
        super().__init__(message, full_context)
