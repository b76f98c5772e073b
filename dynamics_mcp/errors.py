"""Exception types raised by the Dynamics 365 gateway.

Callers (the MCP tool layer) branch on the exception class rather than parsing messages:
 - ValidationError: a required argument was missing; raised before any network activity.
 - AuthenticationError: the client credentials exchange failed or returned no token.
 - ApiRequestError: the Web API answered with a non-success status, or the request /
   JSON decoding itself failed.
"""

from typing import Optional


class DynamicsError(Exception):
    """Base class for all gateway failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DynamicsError):
    """A required argument (account id, account data) was not supplied."""


class AuthenticationError(DynamicsError):
    """Token acquisition against Azure AD failed."""


class ApiRequestError(DynamicsError):
    """A Web API call failed at the HTTP or transport level."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
