"""FastMCP tool layer for the Dynamics 365 gateway.

Each tool is a thin wrapper around one DynamicsClient method: it forwards the validated arguments,
renders the result as text and turns gateway failures into MCP tool errors (`isError: true`) so a
failing call never takes the server down.

Logging goes to STDERR (configured in main.py); STDOUT carries the MCP stdio protocol.
"""

import json
import logging
from typing import Any, Dict

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from .dynamics_client import DynamicsClient
from .errors import AuthenticationError, DynamicsError

logger = logging.getLogger(__name__)

SERVER_NAME = "Dynamics365"


def _tool_error(tool_name: str, exc: DynamicsError, hint: str) -> ToolError:
    """Build the user-facing error for a failed tool call."""
    if isinstance(exc, AuthenticationError):
        hint = "credentials"
    logger.warning("%s failed (%s): %s", tool_name, type(exc).__name__, exc.message)
    return ToolError(f"Error: {exc.message}, please check your {hint} and try again.")


def _as_text(result: Any) -> str:
    return json.dumps(result, indent=2)


def create_server(client: DynamicsClient) -> FastMCP:
    """Create the FastMCP server and register every Dynamics 365 tool against `client`."""
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(name="get-user-info", description="Get user info from Dynamics 365")
    def get_user_info() -> str:
        logger.info("get-user-info called")
        try:
            info = client.get_user_info() or {}
        except DynamicsError as exc:
            raise _tool_error("get-user-info", exc, "credentials") from exc
        return (
            f"Hi {info.get('FullName')}, your user ID is {info.get('UserId')} "
            f"and your business unit ID is {info.get('BusinessUnitId')}"
        )

    @mcp.tool(name="fetch-accounts", description="Fetch accounts from Dynamics 365")
    def fetch_accounts() -> str:
        logger.info("fetch-accounts called")
        try:
            response = client.get_accounts()
        except DynamicsError as exc:
            raise _tool_error("fetch-accounts", exc, "credentials") from exc
        return _as_text((response or {}).get("value"))

    # Argument names are part of the tool schema, hence camelCase.
    @mcp.tool(
        name="get-associated-opportunities",
        description="Fetch opportunities for a given account from Dynamics 365",
    )
    def get_associated_opportunities(accountId: str) -> str:
        logger.info("get-associated-opportunities called with accountId=%r", accountId)
        try:
            response = client.get_associated_opportunities(accountId)
        except DynamicsError as exc:
            raise _tool_error("get-associated-opportunities", exc, "input") from exc
        return _as_text(response)

    @mcp.tool(
        name="get-associated-contacts",
        description="Fetch contacts for a given account from Dynamics 365",
    )
    def get_associated_contacts(accountId: str) -> str:
        logger.info("get-associated-contacts called with accountId=%r", accountId)
        try:
            response = client.get_associated_contacts(accountId)
        except DynamicsError as exc:
            raise _tool_error("get-associated-contacts", exc, "input") from exc
        return _as_text(response)

    @mcp.tool(name="create-account", description="Create a new account in Dynamics 365")
    def create_account(accountData: Dict[str, Any]) -> str:
        logger.info("create-account called")
        try:
            response = client.create_account(accountData)
        except DynamicsError as exc:
            raise _tool_error("create-account", exc, "input") from exc
        return _as_text(response)

    @mcp.tool(name="update-account", description="Update an existing account in Dynamics 365")
    def update_account(accountId: str, accountData: Dict[str, Any]) -> str:
        logger.info("update-account called with accountId=%r", accountId)
        try:
            response = client.update_account(accountId, accountData)
        except DynamicsError as exc:
            raise _tool_error("update-account", exc, "input") from exc
        return _as_text(response)

    return mcp
