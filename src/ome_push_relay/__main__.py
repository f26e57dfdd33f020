"""Main entry point for the OME push relay."""

import logging

import uvicorn

from .config import config

# Configure logging
logging.basicConfig(
    level=config.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def main():
    """Start the FastAPI server."""
    logger.info("Starting OME push relay webhook server")
    logger.info(f"Server will run on {config.api_host}:{config.api_port}")
    logger.info(f"Incoming app: {config.incoming_app}")
    logger.info(f"OME API: {config.ome_api_base_url}")
    logger.info(f"Push cleanup delay: {config.cleanup_delay} seconds")

    # Run the FastAPI application with uvicorn
    uvicorn.run(
        "ome_push_relay.api:app",
        host=config.api_host,
        port=config.api_port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
