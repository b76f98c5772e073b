"""Entry point for the Dynamics 365 MCP server.

Execution flow:
 1. Load a local `.env` file (if any) into the environment.
 2. Configure logging on STDERR; STDOUT is reserved for the MCP stdio transport.
 3. Load configuration (client id/secret, tenant id, organization URL). Missing values are fatal.
 4. Build the Dynamics 365 client (no network traffic until a tool is called).
 5. Register the tools on a FastMCP server and serve over stdio.

Tokens are acquired per tool call, so a bad secret surfaces as a tool error, not a startup failure.
"""

import logging
import os
import sys
from typing import Optional

from dotenv import load_dotenv

from dynamics_mcp.config import AppConfig
from dynamics_mcp.dynamics_client import DynamicsClient
from dynamics_mcp.server import create_server

logger = logging.getLogger("dynamics_mcp")


def configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stderr,
    )


def main(config_path: Optional[str] = None) -> int:
    load_dotenv()
    configure_logging()
    try:
        cfg = AppConfig.load(config_path)
    except (ValueError, FileNotFoundError) as e:
        logger.error("%s", e)
        return 1

    client = DynamicsClient(cfg)
    mcp = create_server(client)
    logger.info("Dynamics365 MCP server running on stdio against %s", cfg.dynamics.base_url)
    mcp.run()
    return 0


def cli() -> None:
    path = None
    if len(sys.argv) > 1:
        path = sys.argv[1]
    raise SystemExit(main(path))


if __name__ == "__main__":
    cli()
