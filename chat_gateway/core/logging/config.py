"""
Logging configuration and setup for the chat gateway.

Plain text formatting with Unicode un-escaping, a file handler that is
always on, a debug file handler when LOG_LEVEL=DEBUG and a console handler.
"""

import logging
import os
import re


LOGGER_NAME = "ollama-chat-gateway"


class UnicodeFormatter(logging.Formatter):
    """Renders backslash-u escapes left by JSON-encoded prompts and bodies as characters."""

    unicode_pattern = re.compile(r'\\u([0-9a-fA-F]{4})')

    def format(self, record):
        formatted = super().format(record)
        return self.unicode_pattern.sub(lambda match: chr(int(match.group(1), 16)), formatted)


def setup_logging():
    """
    Единая настройка логирования для всего проекта.

    Returns:
        logging.Logger: Configured logger instance
    """
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if not isinstance(getattr(logging, log_level, None), int):
        log_level = "INFO"

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level))

    # Очищаем существующие обработчики
    logger.handlers.clear()

    log_dir = os.environ.get("LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)

    formatter = UnicodeFormatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z"
    )

    file_handler = logging.FileHandler(os.path.join(log_dir, "app.log"))
    file_handler.setFormatter(formatter)
    file_handler.setLevel(logging.INFO)
    logger.addHandler(file_handler)

    if log_level == "DEBUG":
        debug_handler = logging.FileHandler(os.path.join(log_dir, "debug.log"))
        debug_handler.setFormatter(formatter)
        debug_handler.setLevel(logging.DEBUG)
        logger.addHandler(debug_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG if log_level == "DEBUG" else logging.INFO)
    logger.addHandler(console_handler)

    return logger
