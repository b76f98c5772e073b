"""Shared fixtures: a full configuration, a stub credential provider and a mocked HTTP session."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests

from dynamics_mcp.config import AppConfig, DynamicsSettings
from dynamics_mcp.dynamics_client import DynamicsClient
from dynamics_mcp.errors import AuthenticationError

BASE_URL = "https://contoso.crm.dynamics.com"


def make_response(status_code: int = 200, payload: Any = None, text: str | None = None) -> MagicMock:
    """Build a stand-in for requests.Response."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 400  # same rule as requests.Response.ok
    if text is None:
        text = json.dumps(payload) if payload is not None else ""
    response.text = text
    response.content = text.encode()
    if payload is not None:
        response.json.return_value = payload
    else:
        response.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", text, 0)
    return response


@pytest.fixture
def cfg() -> AppConfig:
    return AppConfig(
        tenant_id="tenant-1",
        client_id="client-1",
        client_secret="secret-1",
        dynamics=DynamicsSettings(base_url=BASE_URL),
    )


@pytest.fixture
def auth() -> MagicMock:
    stub = MagicMock()
    stub.get_token.return_value = "token-123"
    return stub


@pytest.fixture
def failing_auth() -> MagicMock:
    stub = MagicMock()
    stub.get_token.side_effect = AuthenticationError("Failed to authenticate with Dynamics 365: invalid_client")
    return stub


@pytest.fixture
def session() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(cfg: AppConfig, auth: MagicMock, session: MagicMock) -> DynamicsClient:
    return DynamicsClient(cfg, auth=auth, session=session)
