from __future__ import annotations


class SudokitError(Exception):
    """Base class for everything raised by sudokit."""


class StructuralError(SudokitError, ValueError):
    """Malformed puzzle input or an impossible board size."""


class ConfigError(SudokitError, ValueError):
    """An environment setting could not be interpreted."""


class SolveTimeout(SudokitError):
    """The solve deadline passed before the search finished."""
