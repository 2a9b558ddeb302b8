"""Utility modules for chatmath.

Provides:
- text: collapse_whitespace, describe_error for log sanitizing
- logger: get_logger for logging
"""

from chatmath.utils.logger import get_logger
from chatmath.utils.text import collapse_whitespace, describe_error

__all__ = [
    "collapse_whitespace",
    "describe_error",
    "get_logger",
]
