"""Turn a chat message into text and math-image segments.

Pipeline:

    text + config -> tokenize() -> tokens -> build_segments_from_tokens() -> result

Per formula token, in source order:

1. Per-reply limit reached -> literal text, no render attempt
2. Expression longer than max_chars_per_expression -> literal text, no render attempt
3. Otherwise render; success -> MathImageSegment ``equation-<n>.png``,
   failure -> literal text (logged at DEBUG, never raised)

Only successful renders count toward the per-reply limit and the file
name ordinal.

Example:
    >>> import asyncio
    >>> async def fake_render(expression, max_width_px):
    ...     return b"png:" + expression.encode()
    >>> result = asyncio.run(build_math_segments("A $$x^2$$", render=fake_render))
    >>> [segment.kind for segment in result.segments]
    ['text', 'math-image']

"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from chatmath.config import (
    MathImageConfig,
    ResolvedMathImageConfig,
    resolve_math_image_config,
)
from chatmath.render import FormulaRenderer, render_formula_png
from chatmath.segments import (
    MathImageSegment,
    MathSegment,
    MathSegmentResult,
    TextSegment,
    append_text_segment,
)
from chatmath.tokenizer import has_formula, tokenize
from chatmath.tokens import MathToken, TextToken
from chatmath.utils.logger import get_logger
from chatmath.utils.text import describe_error

logger = get_logger(__name__)

MATH_IMAGE_NAME_PREFIX = "equation"
MATH_IMAGE_EXTENSION = "png"


def math_image_file_name(ordinal: int) -> str:
    """Attachment name for the ``ordinal``-th (1-based) image of a reply."""
    return f"{MATH_IMAGE_NAME_PREFIX}-{ordinal}.{MATH_IMAGE_EXTENSION}"


def _plain_result(text: str, config: ResolvedMathImageConfig) -> MathSegmentResult:
    return MathSegmentResult(
        segments=(TextSegment(text),),
        has_math_images=False,
        config=config,
    )


async def build_segments_from_tokens(
    text: str,
    config: ResolvedMathImageConfig,
    tokens: list[MathToken],
    render: FormulaRenderer,
) -> MathSegmentResult:
    """Apply limits and rendering to already-tokenized text.

    Formulas are rendered one at a time; each render completes before the
    next starts, so file names follow source order.

    Args:
        text: The original message (used when nothing was produced)
        config: Resolved configuration
        tokens: Output of tokenize(text, config)
        render: Async renderer; exceptions it raises become text fallbacks

    Returns:
        MathSegmentResult
    """
    segments: list[MathSegment] = []
    image_count = 0

    for token in tokens:
        if isinstance(token, TextToken):
            append_text_segment(segments, token.content)
            continue
        if image_count >= config.max_expressions_per_reply:
            append_text_segment(segments, token.raw)
            continue
        if len(token.expression) > config.max_chars_per_expression:
            append_text_segment(segments, token.raw)
            continue

        try:
            image = await render(token.expression, config.max_image_width_px)
        except Exception as exc:
            append_text_segment(segments, token.raw)
            logger.debug(
                "math render failed; sent plain text fallback: %s",
                describe_error(exc),
            )
            continue

        image_count += 1
        segments.append(
            MathImageSegment(
                formula_text=token.raw,
                expression=token.expression,
                image=image,
                file_name=math_image_file_name(image_count),
            )
        )

    if not segments:
        return _plain_result(text, config)

    return MathSegmentResult(
        segments=tuple(segments),
        has_math_images=image_count > 0,
        config=config,
    )


async def build_math_segments(
    text: str,
    config: MathImageConfig | Mapping[str, Any] | None = None,
    *,
    render: FormulaRenderer | None = None,
) -> MathSegmentResult:
    """Split ``text`` into text and rendered math-image segments.

    Never raises for render failures: formulas that cannot be rendered are
    kept as their literal delimited text.

    Args:
        text: Raw message text
        config: Partial configuration (MathImageConfig or mapping); None for defaults
        render: Renderer override; defaults to render_formula_png()

    Returns:
        MathSegmentResult with segments, has_math_images and the resolved config
    """
    resolved = resolve_math_image_config(config)
    if not resolved.enabled or not text:
        return _plain_result(text, resolved)

    tokens = tokenize(text, resolved)
    if not has_formula(tokens):
        return _plain_result(text, resolved)

    return await build_segments_from_tokens(
        text,
        resolved,
        tokens,
        render if render is not None else render_formula_png,
    )


__all__ = [
    "MATH_IMAGE_EXTENSION",
    "MATH_IMAGE_NAME_PREFIX",
    "build_math_segments",
    "build_segments_from_tokens",
    "math_image_file_name",
]
