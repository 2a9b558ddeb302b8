"""Exception classes for chatmath.

Provides standardized exceptions for error handling throughout chatmath.
None of these escape build_math_segments(): render failures are absorbed
into plain-text fallback segments.
"""

from __future__ import annotations


class ChatMathError(Exception):
    """Base exception for all chatmath errors.

    Subclass this for specific error categories.
    """

    pass


class FormulaRenderError(ChatMathError):
    """Error while turning a formula into an image.

    Raised by the default renderer when an expression is empty, cannot be
    typeset, or the rasterized output cannot be produced.
    """

    def __init__(self, expression: str, message: str) -> None:
        """Initialize render error.

        Args:
            expression: The expression that failed (without delimiters)
            message: Description of the failure
        """
        self.expression = expression
        self.message = message

        preview = expression if len(expression) <= 40 else expression[:37] + "..."
        super().__init__(f"Cannot render {preview!r}: {message}")
