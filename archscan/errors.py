"""Exception types raised by the scanner."""

from __future__ import annotations


class ArchscanError(Exception):
    """Base class for scanner errors."""


class GraphValidationError(ArchscanError, ValueError):
    """Raised when a graph snapshot is structurally invalid."""


class ConfigError(ArchscanError):
    """Raised when a configuration file is malformed."""


class RuleRegistryError(ArchscanError):
    """Raised when a rule list cannot be evaluated as a registry."""


class RuleSelectionError(ArchscanError):
    """Raised when enabling or disabling a rule id that is not registered."""
