#!/usr/bin/env python
"""Start the StockStream API under uvicorn; PORT and LOG_LEVEL come from the environment."""
import logging
import os

import uvicorn

from stockstream.core import logging_config  # noqa: F401  configures logging on import
from stockstream.core.config import get_settings

logger = logging.getLogger(__name__)


def main():
    settings = get_settings()
    port = int(os.environ.get("PORT", 8000))
    log_level = os.environ.get("LOG_LEVEL", "info").lower()

    logger.info("Starting StockStream on port %s (environment: %s)", port, settings.ENVIRONMENT)

    uvicorn.run(
        "stockstream.main:app",
        host="0.0.0.0",
        port=port,
        log_level=log_level,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    main()
