# ABOUTME: Heartbeats entry point - starts the FastAPI server
# ABOUTME: Validates settings, configures logging and runs uvicorn

import logging
import sys

import uvicorn

from . import __version__
from .config import get_settings
from .webapp import create_app

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    """Main entry point for Heartbeats."""
    # Load and validate settings
    try:
        settings = get_settings()
    except Exception as e:
        logger.error(f"Failed to load settings: {e}")
        sys.exit(1)

    if settings.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug logs enabled")

    logger.info(f"Starting Heartbeats {__version__}")

    # Check for configuration errors
    errors = settings.validate_ready()
    if errors:
        logger.error("Configuration errors:")
        for error in errors:
            logger.error(f"  - {error}")
        sys.exit(1)

    logger.info(f"Config file: {settings.config_path}")
    logger.info(f"Listening on: {settings.host}:{settings.port}")

    # Create and run the app
    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
