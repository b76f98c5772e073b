"""Dynamics 365 gateway and MCP tool server."""

from .config import AppConfig, DynamicsSettings
from .dynamics_client import DynamicsClient
from .errors import ApiRequestError, AuthenticationError, DynamicsError, ValidationError

__all__ = [
    "AppConfig",
    "DynamicsSettings",
    "DynamicsClient",
    "DynamicsError",
    "ValidationError",
    "AuthenticationError",
    "ApiRequestError",
]
