"""
Process entry point: prepares the storage directory, then serves the HTTP
API and the real-time channel from one event loop.
"""
import asyncio
import logging
import sys

import uvicorn
from dotenv import load_dotenv

from app.core.config import Settings, get_settings
from app.core.errors import StartupError
from app.core.storage import get_storage

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def serve(settings: Settings) -> None:
    from app.main import app, realtime_app

    servers = [
        uvicorn.Server(uvicorn.Config(
            app, host=settings.host, port=settings.http_port, log_level=settings.log_level
        ))
    ]
    # Same port means clients use the /ws upgrade on the API server instead
    if settings.ws_port != settings.http_port:
        servers.append(uvicorn.Server(uvicorn.Config(
            realtime_app, host=settings.host, port=settings.ws_port,
            log_level=settings.log_level, lifespan="off"
        )))

    await asyncio.gather(*(server.serve() for server in servers))


def main() -> None:
    load_dotenv()
    settings = get_settings()
    configure_logging(settings)

    try:
        get_storage().ensure_directory()
    except StartupError as e:
        logger.critical(f"Cannot start file share: {e}")
        sys.exit(1)

    from app.main import local_ip

    logger.info(f"Server running at http://{local_ip}:{settings.http_port}")
    if settings.ws_port != settings.http_port:
        logger.info(f"WebSocket server running at ws://{local_ip}:{settings.ws_port}")
    else:
        logger.info(f"WebSocket server running at ws://{local_ip}:{settings.http_port}/ws")

    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Server stopped.")


if __name__ == "__main__":
    main()
