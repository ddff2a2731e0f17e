"""Application entry point for the bookkeeping OCR API server."""

import os

import uvicorn

from bookkeeping_ocr.api.app import app
from bookkeeping_ocr.utils.config import load_config
from bookkeeping_ocr.utils.logger import setup_logging


def main() -> None:
    """Start the FastAPI application server."""
    config = load_config()
    setup_logging(config.log_level)
    uvicorn.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
