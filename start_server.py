#!/usr/bin/env python3
"""
Run the Paniyal Task API under uvicorn

HOST, PORT and RELOAD come from the environment (or .env).
"""

import logging
import os

import uvicorn

from paniyal.config.settings import settings

logger = logging.getLogger(__name__)


def main():
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "true").lower() == "true"

    logging.basicConfig(level=settings.LOG_LEVEL)
    logger.info(f"Serving Paniyal Task API on {host}:{port} (reload={reload})")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
