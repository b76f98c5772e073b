"""Tests for the MCP tool layer, driven in memory through a FastMCP client."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastmcp import Client

from dynamics_mcp.dynamics_client import DynamicsClient
from dynamics_mcp.errors import ApiRequestError, AuthenticationError, ValidationError
from dynamics_mcp.server import create_server


def call_tool(server, name: str, arguments: dict[str, Any] | None = None):
    """Invoke a tool and return the raw MCP CallToolResult."""

    async def _call():
        async with Client(server) as mcp_client:
            return await mcp_client.call_tool_mcp(name, arguments or {})

    return asyncio.run(_call())


@pytest.fixture
def gateway() -> MagicMock:
    return MagicMock(spec=DynamicsClient)


@pytest.fixture
def server(gateway):
    return create_server(gateway)


class TestToolRegistration:
    """Tests for the set of registered tools."""

    def test_all_tools_registered(self, server):
        async def _list():
            async with Client(server) as mcp_client:
                return await mcp_client.list_tools()

        names = {tool.name for tool in asyncio.run(_list())}

        assert names == {
            "get-user-info",
            "fetch-accounts",
            "get-associated-opportunities",
            "get-associated-contacts",
            "create-account",
            "update-account",
        }


class TestToolResults:
    """Tests for rendering gateway results as text content."""

    def test_get_user_info_greets_user(self, server, gateway):
        gateway.get_user_info.return_value = {
            "UserId": "u1",
            "BusinessUnitId": "b1",
            "FullName": "Jane Doe",
        }

        result = call_tool(server, "get-user-info")

        assert not result.isError
        assert result.content[0].text == (
            "Hi Jane Doe, your user ID is u1 and your business unit ID is b1"
        )

    def test_get_user_info_with_empty_response(self, server, gateway):
        gateway.get_user_info.return_value = None

        result = call_tool(server, "get-user-info")

        assert not result.isError
        assert result.content[0].text == (
            "Hi None, your user ID is None and your business unit ID is None"
        )

    def test_fetch_accounts_returns_value_collection(self, server, gateway):
        accounts = [{"accountid": "a1", "name": "Contoso"}]
        gateway.get_accounts.return_value = {"@odata.context": "ctx", "value": accounts}

        result = call_tool(server, "fetch-accounts")

        assert json.loads(result.content[0].text) == accounts

    def test_update_account_forwards_arguments(self, server, gateway):
        gateway.update_account.return_value = {"accountid": "acc1", "name": "X"}

        result = call_tool(server, "update-account", {"accountId": "acc1", "accountData": {"name": "X"}})

        assert not result.isError
        gateway.update_account.assert_called_once_with("acc1", {"name": "X"})
        assert json.loads(result.content[0].text) == {"accountid": "acc1", "name": "X"}

    def test_get_associated_contacts_forwards_account_id(self, server, gateway):
        gateway.get_associated_contacts.return_value = {"value": []}

        call_tool(server, "get-associated-contacts", {"accountId": "acc1"})

        gateway.get_associated_contacts.assert_called_once_with("acc1")


class TestToolErrors:
    """Tests that gateway failures become MCP error results instead of crashing the server."""

    def test_validation_error_asks_to_check_input(self, server, gateway):
        gateway.get_associated_opportunities.side_effect = ValidationError(
            "Account ID is required to fetch opportunities."
        )

        result = call_tool(server, "get-associated-opportunities", {"accountId": ""})

        assert result.isError
        assert "Account ID is required" in result.content[0].text
        assert "please check your input" in result.content[0].text

    def test_authentication_error_asks_to_check_credentials(self, server, gateway):
        gateway.create_account.side_effect = AuthenticationError("Failed to authenticate with Dynamics 365: boom")

        result = call_tool(server, "create-account", {"accountData": {"name": "X"}})

        assert result.isError
        assert "please check your credentials" in result.content[0].text

    def test_api_error_keeps_status_and_body(self, server, gateway):
        gateway.get_accounts.side_effect = ApiRequestError(
            "API request failed with status: 404, message: not found", status_code=404, body="not found"
        )

        result = call_tool(server, "fetch-accounts")

        assert result.isError
        assert "404" in result.content[0].text
        assert "not found" in result.content[0].text

    def test_server_keeps_serving_after_failure(self, server, gateway):
        gateway.get_accounts.side_effect = [
            ApiRequestError("API request failed with status: 500, message: boom", status_code=500),
            {"value": []},
        ]

        async def _call_twice():
            async with Client(server) as mcp_client:
                first = await mcp_client.call_tool_mcp("fetch-accounts", {})
                second = await mcp_client.call_tool_mcp("fetch-accounts", {})
                return first, second

        first, second = asyncio.run(_call_twice())

        assert first.isError
        assert not second.isError
        assert json.loads(second.content[0].text) == []
