#!/usr/bin/env python3
"""
Run script for the Restaurant Guide API.
"""
import sys
import uvicorn
from restaurant_guide.utils.config import get_settings
from restaurant_guide.utils.logger import app_logger


def check_python_version():
    """Check if Python version is compatible."""
    if sys.version_info < (3, 9):
        print("Error: Python 3.9 or higher is required")
        print(f"Current version: {sys.version}")
        sys.exit(1)


def main():
    """Start the FastAPI application."""
    check_python_version()

    settings = get_settings()
    app_logger.info(f"Serving Restaurant Guide API on {settings.api_host}:{settings.api_port} ({settings.environment})")

    uvicorn.run(
        "restaurant_guide.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
