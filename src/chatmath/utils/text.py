"""Text processing utilities for chatmath.

Example:
    >>> from chatmath.utils.text import collapse_whitespace
    >>> collapse_whitespace("  missing\\n  brace ")
    'missing brace'
"""

from __future__ import annotations

import re

_WHITESPACE_RUN = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run to a single space and trim the ends.

    Used to keep log records on one line when they embed messages from
    third-party libraries (matplotlib parse errors span several lines).

    Args:
        text: Text to normalize

    Returns:
        Single-line text

    Examples:
        >>> collapse_whitespace("a\\tb\\n\\nc")
        'a b c'
        >>> collapse_whitespace("")
        ''
    """
    if not text:
        return ""
    return _WHITESPACE_RUN.sub(" ", text).strip()


def describe_error(error: BaseException) -> str:
    """Format an exception as a single-line message for logs.

    Falls back to the exception class name when the message is empty.

    Examples:
        >>> describe_error(ValueError("bad\\n  formula"))
        'bad formula'
        >>> describe_error(RuntimeError())
        'RuntimeError'
    """
    message = collapse_whitespace(str(error))
    return message or type(error).__name__
