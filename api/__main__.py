"""Command line interface for running the API server."""
import asyncio
import logging
import signal

import uvicorn

from config import settings_conf

# Configure logging
logging.basicConfig(
    level=settings_conf['log_level'],
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

server = None


class UvicornServer:
    """Wrapper for running uvicorn with proper lifecycle management."""

    def __init__(self, app_path: str = "api:app", host: str = "0.0.0.0", port: int = 8000,
                 log_level: str = "info"):
        self.config = uvicorn.Config(
            app_path,
            host=host,
            port=port,
            log_level=log_level
        )
        self.server = uvicorn.Server(self.config)

    async def run(self):
        """Run the server in a way that can be stopped."""
        await self.server.serve()

    async def stop(self):
        """Stop the server."""
        self.server.should_exit = True
        if hasattr(self.server, 'force_exit'):
            self.server.force_exit = True


def handle_shutdown(signum, frame):
    """Handle shutdown signals gracefully."""
    logger.info("Shutdown signal received. Cleaning up...")
    if server:
        server.server.should_exit = True


async def main():
    """Run the API server until a shutdown signal arrives."""
    global server

    server = UvicornServer(
        host=settings_conf['api_host'],
        port=settings_conf['api_port'],
        log_level=settings_conf['log_level'].lower()
    )
    try:
        logger.info(f"Starting API on {settings_conf['api_host']}:{settings_conf['api_port']}")
        await server.run()
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        raise
    finally:
        logger.info("Stopping API server...")
        await server.stop()
        logger.info("Cleanup complete.")


if __name__ == "__main__":
    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)
    asyncio.run(main())
