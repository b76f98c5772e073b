"""Configuration loading and strongly-typed settings models.

Settings come from an optional `config.json` (or an override via the D365_APP_CONFIG env var) and
from environment variables, which take precedence. The environment names match the ones the
server has always used: CLIENT_ID, CLIENT_SECRET, TENANT_ID and D365_URL.

Security recommendations:
 - Prefer environment variables (or a local `.env` file) for the client secret.
 - Do not commit real secrets in source control. `config.example.json` shows structure only.
"""

import json
import os
from dataclasses import dataclass
from typing import Dict, Optional

CONFIG_FILENAME = os.environ.get("D365_APP_CONFIG", "config.json")

DEFAULT_AUTHORITY_HOST = "https://login.microsoftonline.com"
DEFAULT_API_VERSION = "v9.2"

# env var -> (section, key); section None means top level
ENV_OVERRIDES = {
    "CLIENT_ID": (None, "client_id"),
    "CLIENT_SECRET": (None, "client_secret"),
    "TENANT_ID": (None, "tenant_id"),
    "D365_URL": ("dynamics", "base_url"),
}


@dataclass(frozen=True)
class DynamicsSettings:
    base_url: str  # e.g. https://your-org.crm.dynamics.com
    authority_host: str = DEFAULT_AUTHORITY_HOST
    api_version: str = DEFAULT_API_VERSION


@dataclass(frozen=True)
class AppConfig:
    tenant_id: str
    client_id: str
    client_secret: str
    dynamics: DynamicsSettings

    @staticmethod
    def load(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> "AppConfig":
        """Build the configuration from the JSON file (if present) plus environment overrides.

        Raises:
            ValueError: if any of the four required values is missing or empty.
        """
        env = os.environ if environ is None else environ
        config_path = path or CONFIG_FILENAME
        raw: Dict = {}
        if os.path.exists(config_path):
            with open(config_path, "r", encoding="utf-8") as f:
                raw = json.load(f) or {}
        elif path:
            # An explicitly requested file must exist; the default one is optional.
            raise FileNotFoundError(
                f"Config file '{config_path}' not found. Copy 'config.example.json' to 'config.json' and fill values."
            )

        top = {k: raw.get(k) for k in ("tenant_id", "client_id", "client_secret")}
        dyn = {**(raw.get("dynamics") or {})}
        for var, (section, key) in ENV_OVERRIDES.items():
            value = env.get(var)
            if value:
                if section == "dynamics":
                    dyn[key] = value
                else:
                    top[key] = value

        missing = [k for k, v in top.items() if not v]
        if not dyn.get("base_url"):
            missing.append("dynamics.base_url")
        if missing:
            raise ValueError(
                "Missing required configuration: " + ", ".join(missing)
                + ". Set CLIENT_ID, CLIENT_SECRET, TENANT_ID and D365_URL (or fill config.json)."
            )

        dynamics = DynamicsSettings(
            base_url=dyn["base_url"],
            authority_host=(dyn.get("authority_host") or DEFAULT_AUTHORITY_HOST).rstrip("/"),
            api_version=dyn.get("api_version") or DEFAULT_API_VERSION,
        )
        return AppConfig(
            tenant_id=top["tenant_id"],
            client_id=top["client_id"],
            client_secret=top["client_secret"],
            dynamics=dynamics,
        )
