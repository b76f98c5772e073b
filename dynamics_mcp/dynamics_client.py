"""Minimal Dynamics 365 Web API client focused on accounts, opportunities and user identity.

Responsibilities:
 - Acquire a fresh bearer token for every call (no reuse across calls).
 - Resolve relative Web API endpoints against the organization URL.
 - Attach the standard JSON + OData 4.0 headers and decode JSON responses.
 - Translate HTTP / transport failures into ApiRequestError.
 - Offer typed operations (WhoAmI, accounts, opportunities, contacts) with argument validation.

Why a thin wrapper? To isolate raw REST calls and provide clear, classified errors; callers do not
need to assemble Web API endpoints or OData filters manually.

Identifiers are interpolated into endpoints and `$filter` expressions as given, without OData
escaping.
"""

import json
import logging
from typing import Any, Dict, Optional

import requests

from .auth import DynamicsAuth
from .config import AppConfig
from .errors import ApiRequestError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "OData-MaxVersion": "4.0",
    "OData-Version": "4.0",
}


class DynamicsClient:
    """High-level helper for the subset of Dynamics 365 Web API endpoints exposed as tools."""

    def __init__(
        self,
        cfg: AppConfig,
        auth: Optional[DynamicsAuth] = None,
        session: Optional[requests.Session] = None,
    ):
        self.cfg = cfg
        self.auth = auth or DynamicsAuth(cfg)
        # Exactly one trailing slash, so endpoints are appended with a single separator.
        self.base = cfg.dynamics.base_url.rstrip("/") + "/"
        self.api_root = f"api/data/{cfg.dynamics.api_version}"
        # Reuse an HTTP session across requests for connection pooling. Auth headers are per call.
        self.session = session or requests.Session()

    def build_url(self, endpoint: str) -> str:
        return self.base + endpoint.lstrip("/")

    def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Perform one authenticated Web API call and return the decoded JSON body.

        Args:
            endpoint: Path relative to the organization URL (may embed an OData query string).
            method: HTTP method.
            body: JSON-serializable payload; omitted from the request when None.
            headers: Extra headers merged over the defaults.
        Returns:
            Decoded JSON, or None for a success response without a body (e.g. 204 from PATCH).
        Raises:
            AuthenticationError: if the token cannot be acquired (no HTTP call is made).
            ApiRequestError: on non-success status, transport failure or undecodable JSON.
        """
        token = self.auth.get_token()
        url = self.build_url(endpoint)
        merged = {"Authorization": f"Bearer {token}", **DEFAULT_HEADERS, **(headers or {})}
        payload = json.dumps(body) if body is not None else None

        logger.debug("%s %s", method, url)
        try:
            r = self.session.request(method, url, headers=merged, data=payload)
        except requests.RequestException as exc:
            logger.error("API request to %s failed: %s", url, exc)
            raise ApiRequestError(f"Failed to make API request: {exc}") from exc

        if not 200 <= r.status_code < 300:
            logger.warning("API request to %s failed with status %s", url, r.status_code)
            raise ApiRequestError(
                f"API request failed with status: {r.status_code}, message: {r.text}",
                status_code=r.status_code,
                body=r.text,
            )
        if r.status_code == 204 or not r.content:
            return None
        try:
            return r.json()
        except ValueError as exc:
            logger.error("API response from %s is not valid JSON: %s", url, exc)
            raise ApiRequestError(
                f"Failed to make API request: {exc}", status_code=r.status_code, body=r.text
            ) from exc

    def get_user_info(self) -> Dict[str, Any]:
        """Return the WhoAmI payload enriched with `UserName` / `FullName` from systemusers."""
        data = self.request(f"{self.api_root}/WhoAmI")
        if data and data.get("UserId"):
            details = self.request(
                f"{self.api_root}/systemusers({data['UserId']})",
                headers={"Prefer": 'odata.include-annotations="*"'},
            ) or {}
            data["UserName"] = details.get("domainname")
            data["FullName"] = details.get("fullname")
        return data

    def get_accounts(self) -> Any:
        """Return the raw accounts response (including its `value` envelope)."""
        return self.request(f"{self.api_root}/accounts")

    def get_associated_opportunities(self, account_id: str) -> Any:
        """List opportunities whose customer is the given account."""
        if not account_id:
            raise ValidationError("Account ID is required to fetch opportunities.")
        endpoint = f"{self.api_root}/opportunities?$filter=_customerid_value eq {account_id}"
        return self.request(endpoint)

    def get_associated_contacts(self, account_id: str) -> Any:
        """List contacts whose parent customer is the given account."""
        if not account_id:
            raise ValidationError("Account ID is required to fetch contacts.")
        endpoint = f"{self.api_root}/contacts?$filter=_parentcustomerid_value eq {account_id}"
        return self.request(endpoint)

    def create_account(self, account_data: Optional[Dict[str, Any]]) -> Any:
        if account_data is None:
            raise ValidationError("Account data is required to create an account.")
        return self.request(f"{self.api_root}/accounts", "POST", account_data)

    def update_account(self, account_id: str, account_data: Optional[Dict[str, Any]]) -> Any:
        """PATCH the given account with `account_data`.

        Raises:
            ValidationError: if the account id (checked first) or the data is missing.
        """
        if not account_id:
            raise ValidationError("Account ID is required to update an account.")
        if account_data is None:
            raise ValidationError("Account data is required to update an account.")
        return self.request(f"{self.api_root}/accounts({account_id})", "PATCH", account_data)
