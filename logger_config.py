"""
Logging setup shared by the API handlers, services and CLI.

Everything goes to stdout so the same configuration works under Lambda
(CloudWatch picks up stdout) and when running the CLI locally.
"""
import logging
import os
import sys

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger writing to stdout at the LOG_LEVEL level.

    Args:
        name: Logger name, usually ``__name__`` of the calling module

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name or 'lightsail_control')

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    # Set log level from environment variable, default to INFO
    level_name = os.environ.get('LOG_LEVEL', 'INFO').upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    # Console handler (Lambda sends stdout to CloudWatch, the CLI to the terminal)
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logger.level)

    # Format that works well with CloudWatch Logs and local shells
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    # Add handler to logger
    logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate logs
    logger.propagate = False

    return logger
