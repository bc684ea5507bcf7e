"""
Logging infrastructure for the chat gateway.

Exposes a single shared Logger instance.
"""

from .config import setup_logging
from .logger import Logger

_logger_instance = None


def get_logger():
    """Получить единый экземпляр логгера."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = Logger()
    return _logger_instance


logger = get_logger()

__all__ = ['logger', 'Logger', 'setup_logging', 'get_logger']
