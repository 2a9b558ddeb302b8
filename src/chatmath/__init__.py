"""
chatmath: Math Image Segments for Chat Messages

Finds $$...$$ and \\[...\\] formulas in a chat message, renders each one to a
PNG, and returns the message as an ordered list of text and image segments.
Formulas inside inline or fenced code are left alone; formulas that cannot
be rendered, or exceed the configured limits, stay as their literal text.

Quick Start:
    >>> import asyncio
    >>> from chatmath import build_math_segments
    >>> result = asyncio.run(build_math_segments("Area: $$\\\\pi r^2$$"))
    >>> [segment.kind for segment in result.segments]
    ['text', 'math-image']
    >>> result.segments[1].file_name
    'equation-1.png'

Configuration:
    >>> result = asyncio.run(build_math_segments(
    ...     "$$a$$ $$b$$",
    ...     {"maxExpressionsPerReply": 1, "delimiters": ["double-dollar"]},
    ... ))
    >>> result.segments[1].text
    ' $$b$$'

Lower-level pieces (tokenize, build_code_span_index, find_next_opening) are
exported for callers that need only part of the pipeline.
"""

from chatmath.builder import (
    build_math_segments,
    build_segments_from_tokens,
    math_image_file_name,
)
from chatmath.codespans import CodeSpan, CodeSpanIndex, build_code_span_index
from chatmath.config import (
    MathImageConfig,
    ResolvedMathImageConfig,
    resolve_math_image_config,
)
from chatmath.delimiters import (
    DELIMITER_SPECS,
    DelimiterKind,
    DelimiterSpec,
    OpeningMatch,
    active_delimiters,
    find_closing_index,
    find_next_opening,
)
from chatmath.errors import ChatMathError, FormulaRenderError
from chatmath.render import FormulaRenderer, render_formula_png, render_formula_png_sync
from chatmath.segments import MathImageSegment, MathSegment, MathSegmentResult, TextSegment
from chatmath.tokenizer import tokenize
from chatmath.tokens import FormulaToken, MathToken, TextToken

__version__ = "0.1.0"

__all__ = [  # noqa: RUF022 (grouped by category)
    # Version
    "__version__",
    # Core API
    "build_math_segments",
    "build_segments_from_tokens",
    "math_image_file_name",
    "tokenize",
    # Configuration
    "MathImageConfig",
    "ResolvedMathImageConfig",
    "resolve_math_image_config",
    # Delimiters
    "DELIMITER_SPECS",
    "DelimiterKind",
    "DelimiterSpec",
    "OpeningMatch",
    "active_delimiters",
    "find_closing_index",
    "find_next_opening",
    # Code spans
    "CodeSpan",
    "CodeSpanIndex",
    "build_code_span_index",
    # Tokens
    "FormulaToken",
    "MathToken",
    "TextToken",
    # Segments
    "MathImageSegment",
    "MathSegment",
    "MathSegmentResult",
    "TextSegment",
    # Rendering
    "FormulaRenderer",
    "render_formula_png",
    "render_formula_png_sync",
    # Errors
    "ChatMathError",
    "FormulaRenderError",
]
