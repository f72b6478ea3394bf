"""
Logging configuration for the Restaurant Guide client.
"""
import sys
import os
import logging

from pydantic import ValidationError

from restaurant_guide.utils.config import get_settings


def setup_logger():
    """Configure the application logger using Python's standard logging."""
    try:
        settings = get_settings()
        level_name = settings.log_level
        environment = settings.environment
    except ValidationError:
        # Credentials are not needed to log; fall back to the raw environment
        level_name = os.getenv("LOG_LEVEL", "INFO")
        environment = os.getenv("ENVIRONMENT", "development")

    log_level = getattr(logging, str(level_name).upper(), logging.INFO)

    logger = logging.getLogger("restaurant_guide")
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplicate logs
    logger.handlers.clear()
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    # File handler for production
    if environment == "production":
        os.makedirs("logs", exist_ok=True)
        file_handler = logging.FileHandler("logs/app.log")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(console_formatter)
        logger.addHandler(file_handler)

    return logger


# Initialize logger
app_logger = setup_logger()
