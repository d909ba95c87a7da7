"""
ShowMe Backend - Content server entry point
"""

from __future__ import annotations

import asyncio
import logging
import sys

from showme.errors import ServerErrorCode
from showme.services.config_manager import ConfigManager
from showme.services.http_server import ContentServer

logger = logging.getLogger("showme")


async def serve(config_manager: ConfigManager) -> int:
    """Run the content server until it is signalled to stop"""
    config = config_manager.get_config()
    server = ContentServer.from_config(config)
    port = config_manager.server_settings()["port"]

    result = await server.start(port)
    if not result.ok:
        error = result.error
        if error.code == ServerErrorCode.ADDRESS_IN_USE and error.context.get("existing_server"):
            logger.info("[Backend] A content server is already running on port %s", port)
            return 0
        logger.error("[Backend] %s", error.message)
        return 1

    logger.info("[Backend] Serving generated files at %s", result.value.base_url)
    try:
        await server.wait_closed()
    finally:
        await server.dispose()
    return 0


def main() -> int:
    config_manager = ConfigManager.get_instance()
    logging.basicConfig(
        level=config_manager.log_level(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger.info("[Backend] Config loaded from %s", config_manager.config_file)
    return asyncio.run(serve(config_manager))


if __name__ == "__main__":
    sys.exit(main())
