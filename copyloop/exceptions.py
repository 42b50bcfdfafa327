"""
Custom Exceptions for the CopyLoop backend.

Provides specific exception types for the rating, pattern-learning and
template subsystems so callers (and the HTTP layer) can tell a rejected
input apart from a store failure or a provider failure.
"""


class CopyLoopError(Exception):
    """Base exception for all CopyLoop errors."""
    pass


# =============================================================================
# Input Exceptions
# =============================================================================

class ValidationError(CopyLoopError):
    """Raised when input to a write path violates a constraint."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class NotFoundError(CopyLoopError):
    """Raised when a write path references a row that does not exist."""

    def __init__(self, resource: str, identifier=None):
        self.resource = resource
        self.identifier = identifier
        msg = f"{resource} not found"
        if identifier is not None:
            msg += f": {identifier}"
        super().__init__(msg)


# =============================================================================
# Storage Exceptions
# =============================================================================

class StoreError(CopyLoopError):
    """Raised when the relational store fails during a write."""

    def __init__(self, operation: str, reason: str = None):
        self.operation = operation
        self.reason = reason
        msg = f"Store operation failed: {operation}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


# =============================================================================
# Template Exceptions
# =============================================================================

class TemplateLoadError(CopyLoopError):
    """Raised when a niche template file cannot be read or parsed."""

    def __init__(self, niche: str, reason: str = None):
        self.niche = niche
        self.reason = reason
        msg = f"Failed to load templates for niche '{niche}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


# =============================================================================
# AI/LLM Exceptions
# =============================================================================

class LLMError(CopyLoopError):
    """Base exception for LLM-related errors."""
    pass


class LLMResponseParseError(LLMError):
    """Raised when LLM response cannot be parsed."""

    def __init__(self, expected_format: str = "JSON"):
        self.expected_format = expected_format
        super().__init__(f"Failed to parse LLM response as {expected_format}")


# =============================================================================
# Configuration Exceptions
# =============================================================================

class ConfigurationError(CopyLoopError):
    """Raised when there's a configuration problem."""

    def __init__(self, setting: str, reason: str = None):
        self.setting = setting
        self.reason = reason
        msg = f"Configuration error: {setting}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class MissingAPIKeyError(ConfigurationError):
    """Raised when a required API key is missing."""

    def __init__(self, key_name: str):
        self.key_name = key_name
        super().__init__(key_name, "API key not configured")
