#!/usr/bin/env python3
"""
Script to run the Book Management API server.
"""

import uvicorn

from api.config import APIConfig
from utilities.logger import get_logger, setup_logging


def main():
    """Run the API server."""
    config = APIConfig()
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
        debug=config.debug
    )

    logger = get_logger(__name__)
    logger.info(
        "Starting Book Management API server",
        host=config.host,
        port=config.port,
        debug=config.debug,
        database_url=config.database_url,
        docs=f"http://localhost:{config.port}/api-docs"
    )

    # Schema sync runs in the lifespan hook, before the socket accepts connections
    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
        log_config=None,
        access_log=True
    )


if __name__ == "__main__":
    main()
