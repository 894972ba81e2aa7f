"""
Logging configuration for the photo organizer.
"""

import datetime
import logging
import os
import sys
from typing import Optional
from .config import AppConfig


def setup_logging(config: AppConfig, log_prefix: Optional[str] = None) -> None:
    """
    Configure logging based on settings.

    Args:
        config: Application configuration
        log_prefix: Optional prefix for the log file name
    """
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    log_file = config.log_file

    # Create a timestamp-based log file if prefix provided but no specific file
    if not log_file and log_prefix and config.debug_mode:
        timestamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
        log_file = f"{log_prefix}_{timestamp}.log"

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

        logging.basicConfig(
            filename=log_file,
            level=log_level,
            format=log_format
        )

        # Also log to console if debug mode is enabled
        if config.debug_mode:
            console = logging.StreamHandler(sys.stderr)
            console.setLevel(log_level)
            console.setFormatter(logging.Formatter(log_format))
            logging.getLogger('').addHandler(console)
    else:
        logging.basicConfig(
            level=log_level,
            format=log_format,
            stream=sys.stderr
        )

    # Set level for third-party loggers to reduce noise
    logging.getLogger('PIL').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)

    provider_type = getattr(config.provider, 'provider_type', 'none')
    logging.debug(f"Logging initialized. Caption provider: {provider_type}")

    if config.debug_mode:
        logging.debug("Debug mode enabled")
        logging.debug(f"Python version: {sys.version}")
        logging.debug(f"Platform: {sys.platform}")
        logging.debug("Configuration summary:")
        logging.debug(f"  Storage directory: {config.resolved_storage_dir}")
        logging.debug(f"  Thumbnail bounds: {config.thumbnail_max_width}x{config.thumbnail_max_height}")
        logging.debug(f"  Thumbnail format: {config.thumbnail_format} @ {config.thumbnail_quality}")
        logging.debug(f"  Max retries: {config.max_retries}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: Name for the logger

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
