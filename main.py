#!/usr/bin/env python3
"""
Main entry point for llm-relay

HTTP front end for the failover router: each request for a configured service
is sent to the healthiest capable provider, retried with a fixed delay and
failed over down a health-ranked provider list.
"""

import os
import uvicorn

from llm_relay.utils.logging import setup_logging
from llm_relay.api.app import create_app

# Setup logging
logger = setup_logging()


def main():
    """Main entry point for the application"""

    # Get configuration from environment
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 10006))
    log_level = os.getenv("LOG_LEVEL", "info").lower()
    workers = int(os.getenv("WORKERS", 1))

    logger.info("Starting llm-relay",
                host=host, port=port, log_level=log_level, workers=workers)

    # Create the FastAPI application
    app = create_app()

    # Run the server
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=log_level,
        workers=workers,
        reload=False
    )


if __name__ == "__main__":
    main()
