"""Logging configuration for the Agentic RAG workflow."""

import logging
import logging.handlers
import os
from pathlib import Path

CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"


def setup_logging(
    log_level: str = "INFO",
    log_dir: str = "logs",
    log_file: str = "agentic_rag.log",
    console_output: bool = True,
    file_output: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the root logger with console and rotating file handlers.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files
        log_file: Name of the log file
        console_output: Whether to log to the console
        file_output: Whether to log to a rotating file
        max_bytes: Maximum size of a log file before rotation
        backup_count: Number of rotated files to keep

    Returns:
        The configured root logger
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(numeric_level)

    # Reconfiguring must not stack handlers
    logger.handlers.clear()

    if console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(console_handler)

    log_file_path = None
    if file_output:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        log_file_path = log_path / log_file

        file_handler = logging.handlers.RotatingFileHandler(
            filename=str(log_file_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(
            logging.Formatter(fmt=FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        logger.addHandler(file_handler)

    # Third-party HTTP clients are chatty at INFO
    for noisy in ("httpx", "httpcore", "chromadb"):
        logging.getLogger(noisy).setLevel(max(numeric_level, logging.WARNING))

    logger.debug(f"Logging initialized - Level: {log_level}, File: {log_file_path or 'N/A'}")

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def setup_logging_from_env() -> logging.Logger:
    """Configure logging from the LOG_* environment variables."""
    return setup_logging(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=os.getenv("LOG_DIR", "logs"),
        log_file=os.getenv("LOG_FILE", "agentic_rag.log"),
        console_output=os.getenv("LOG_CONSOLE", "true").lower() == "true",
        file_output=os.getenv("LOG_FILE_OUTPUT", "true").lower() == "true",
    )
