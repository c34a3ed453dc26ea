"""
Exception types raised by breadsim.
"""


class BreadsimError(Exception):
    """Base class for all breadsim errors."""


class InvalidConnectionError(BreadsimError, ValueError):
    """Raised when two connectors cannot legally be joined."""


class SingularCircuitError(BreadsimError):
    """Raised when the MNA system has no unique solution."""
