"""Logging configuration shared by the CLI and the HTTP app."""

import logging
from pathlib import Path

LOG_FILE_NAME = "classroom_ai.log"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

NOISY_LOGGERS = ("httpx", "openai", "pdfminer", "PIL")


def configure_logging(log_dir: Path = Path("logs")) -> Path:
    """Configure logging with both console and file output.

    Sets up:
      - Root logger at DEBUG level
      - Console handler at INFO level for user-facing messages
      - File handler at DEBUG level for detailed troubleshooting
      - Reduced verbosity for HTTP client, SDK and PDF library loggers

    Returns:
        Path of the log file
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    # Root logger
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Clear existing handlers to avoid duplicates if run multiple times
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(console_handler)
    logger.addHandler(file_handler)
    return log_file
