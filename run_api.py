#!/usr/bin/env python3
"""Run the ERP Insights API server."""

import logging
import sys
from pathlib import Path

# Add project to path
sys.path.insert(0, str(Path(__file__).parent))

from insights.config import get
from insights.core import ModuleLoader
from insights.db import init_db

logger = logging.getLogger(__name__)


def setup_logging():
    """Configure root logging from the logging section of the config."""
    handlers = [logging.StreamHandler()]
    log_file = get("logging.file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=get("logging.level", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def main():
    """Run the API server."""
    setup_logging()

    # Initialize database
    init_db(get("database.url"))

    # Import here so the app module is only loaded once the store is ready
    import uvicorn
    from insights.api import app, configure

    configure(
        registry=ModuleLoader(get("modules.config_file", "config/modules.yaml")).load_registry(),
        timezone=get("dashboard.timezone", "UTC"),
        per_module_limit=get("activity.per_module_limit", 5),
        max_records=get("activity.max_records", 20),
    )

    # Get API configuration
    host = get("api.host", "127.0.0.1")
    port = get("api.port", 8000)

    logger.info(f"Starting ERP Insights API on {host}:{port}")
    logger.info("API documentation available at:")
    logger.info(f"  - Swagger UI: http://{host}:{port}/docs")
    logger.info(f"  - ReDoc: http://{host}:{port}/redoc")

    # Run server
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info",
        access_log=True,
    )


if __name__ == "__main__":
    main()
