"""
SparkyBot - personal assistant bot.

Main entry point: starts the routing stack and the HTTP server.
"""

import asyncio
import sys
from pathlib import Path

from loguru import logger


def setup_logging(debug: bool = False):
    """Configure logging."""
    log_path = Path("logs")
    log_path.mkdir(exist_ok=True)

    # Remove default handler
    logger.remove()

    # Console handler
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level="DEBUG" if debug else "INFO",
        colorize=True,
    )

    # File handler
    logger.add(
        log_path / "sparkybot.log",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
        rotation="10 MB",
        retention="7 days",
        compression="zip",
    )


async def main(config_path: str, host: str = None, port: int = None, debug: bool = False):
    """Start the app and serve HTTP until interrupted."""
    setup_logging(debug)

    logger.info("=" * 50)
    logger.info("SparkyBot - Personal Assistant")
    logger.info("=" * 50)

    from sparkybot.core.app import SparkyApp
    from sparkybot.web.server import WebServer

    app = SparkyApp(config_path)
    try:
        await app.startup()
        server = WebServer(
            app,
            host=host or app.config.get("web.host", "0.0.0.0"),
            port=port or int(app.config.get("web.port", 8080)),
        )
        await server.start()
    except KeyboardInterrupt:
        logger.info("Shutdown requested via keyboard")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)
    finally:
        await app.shutdown()


def cli():
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="SparkyBot - Personal Assistant")
    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="Path to configuration file",
    )
    parser.add_argument("--host", type=str, default=None, help="Host for the HTTP server")
    parser.add_argument("--port", type=int, default=None, help="Port for the HTTP server")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version="SparkyBot 0.1.0")

    args = parser.parse_args()
    asyncio.run(main(args.config, args.host, args.port, args.debug))


if __name__ == "__main__":
    cli()
