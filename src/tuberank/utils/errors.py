"""
Custom exception classes for TubeRank.
"""

from typing import Any


class TubeRankError(Exception):
    """Base exception for all TubeRank errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        suggestions: list[str] | None = None,
        context: dict[str, Any] | None = None
    ):
        """Initialize TubeRank error with enhanced information.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            suggestions: List of suggested remediation steps
            context: Additional context information for debugging
        """
        super().__init__(message)
        self.error_code = error_code or self.__class__.__name__.upper()
        self.suggestions = suggestions or []
        self.context = context or {}


class ConfigurationError(TubeRankError):
    """Raised when there is an issue with the application configuration."""
    pass


class ValidationError(TubeRankError):
    """Raised when input data fails validation (dimensions, filters, parameters)."""
    pass


class ServiceError(TubeRankError):
    """Base exception for errors occurring in service layers."""
    pass


class UpstreamError(ServiceError):
    """Raised when an external collaborator (vector store, embedder) fails."""
    pass
