"""Application-level exception types for toolrelay."""

from __future__ import annotations


class ToolRelayError(Exception):
    """Base exception for toolrelay."""


class ConfigurationError(ToolRelayError):
    """Base exception for configuration and startup validation errors."""


class ModelNotConfiguredError(ConfigurationError):
    """Raised when model configuration is missing."""


class NoModelLoadedError(ConfigurationError):
    """Raised when a turn starts while no model is active."""


class TransportError(ToolRelayError):
    """Raised when a completion stream cannot be established or breaks."""


class ToolArgumentParseError(ToolRelayError):
    """Raised when tool-call arguments are not a JSON object."""


class ToolExecutionError(ToolRelayError):
    """Raised by tool invokers when a tool call fails."""


class UnknownToolError(ToolExecutionError):
    """Raised when a qualified tool name does not resolve to a registered tool."""


class ContinuationError(ToolRelayError):
    """Raised when the continuation round fails."""
