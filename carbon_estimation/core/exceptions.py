"""
Exception hierarchy for the forest carbon estimation pipeline.

Author: Diego Bengochea
"""

from typing import Optional


class CarbonEstimationError(Exception):
    """Base class for all carbon estimation failures."""


class ConfigurationError(CarbonEstimationError):
    """Missing or invalid credentials, configuration or run options."""


class RemoteCallError(CarbonEstimationError):
    """Failure reported by the remote geospatial engine."""

    def __init__(self, message: str, operation: Optional[str] = None):
        self.operation = operation
        if operation:
            message = f"{operation}: {message}"
        super().__init__(message)


class AuthenticationError(RemoteCallError):
    """Engine rejected the service credentials (expired, revoked, invalid JWT)."""


class DegenerateInputError(CarbonEstimationError):
    """Insufficient data: empty histogram, zero area or empty sample set."""
