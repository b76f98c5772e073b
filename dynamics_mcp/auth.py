"""Authentication helper for the Dynamics 365 Web API.

This module wraps MSAL's ConfidentialClientApplication to obtain an application (client credentials)
access token scoped to the Dynamics organization the server talks to.

Design notes:
 - Only the client credentials (application) flow is used; no user is signed in.
 - The scope is derived from the origin of the configured organization URL, suffixed with
   `/.default`, e.g. `https://contoso.crm.dynamics.com/.default`.
 - Tokens are not cached. A new MSAL application is built for every acquisition so its in-memory
   token cache never hands back an earlier token; building it lazily also keeps construction of
   this class free of network traffic (MSAL may run authority discovery when an app is created).
"""

import logging
from typing import Dict, List
from urllib.parse import urlsplit

import msal

from .config import AppConfig
from .errors import AuthenticationError

logger = logging.getLogger(__name__)


def resource_scope(base_url: str) -> List[str]:
    """Return the `.default` scope list for the origin of `base_url`."""
    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        raise AuthenticationError(f"Invalid Dynamics 365 URL: {base_url!r}")
    return [f"{parts.scheme}://{parts.netloc}/.default"]


class DynamicsAuth:
    """Acquire Azure AD access tokens for Dynamics 365 using client credentials."""

    def __init__(self, cfg: AppConfig):
        self.cfg = cfg
        # Authority = login host + tenant id (could be a tenant GUID or domain)
        self.authority = f"{cfg.dynamics.authority_host}/{cfg.tenant_id}"

    @property
    def scopes(self) -> List[str]:
        return resource_scope(self.cfg.dynamics.base_url)

    def _build_app(self) -> msal.ConfidentialClientApplication:
        return msal.ConfidentialClientApplication(
            client_id=self.cfg.client_id,
            client_credential=self.cfg.client_secret,
            authority=self.authority,
        )

    def get_token(self) -> str:
        """Return a bearer token string for the Dynamics 365 Web API.

        Raises:
            AuthenticationError: if the exchange fails or yields no access token.
        """
        scopes = self.scopes
        try:
            result: Dict = self._build_app().acquire_token_for_client(scopes=scopes)
        except Exception as exc:
            logger.error("Token acquisition failed: %s", exc)
            raise AuthenticationError(f"Failed to authenticate with Dynamics 365: {exc}") from exc

        result = result or {}
        token = result.get("access_token")
        if not token:
            reason = result.get("error") or "no access token returned"
            if result.get("error_description"):
                reason = f"{reason}: {result['error_description']}"
            logger.error("Token acquisition failed: %s", reason)
            raise AuthenticationError(f"Failed to authenticate with Dynamics 365: {reason}")
        return token
