"""Default formula renderer: TeX expression -> PNG bytes.

Typesets with matplotlib's built-in mathtext engine (no TeX installation
required) and post-processes with Pillow:

- white glyphs on a transparent background, for chat dark themes
- rasterized at 300 dpi
- scaled down (never up) to fit ``max_width_px``, aspect ratio kept

Any failure raises FormulaRenderError; an empty image is never returned.

Custom renderers:
    Anything matching the FormulaRenderer protocol can be passed to
    build_math_segments(render=...), e.g. a stub in tests:

    >>> async def fake_render(expression: str, max_width_px: int) -> bytes:
    ...     return b"png:" + expression.encode()

Thread Safety:
    The mathtext runtime is a process-wide singleton, created on first use
    under a lock and never torn down. matplotlib is not thread-safe, so
    typesetting is serialized by the runtime's lock. The async entry point
    runs the blocking work in a worker thread.

"""

from __future__ import annotations

import asyncio
import io
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from PIL import Image

from chatmath.errors import FormulaRenderError
from chatmath.utils.logger import get_logger

if TYPE_CHECKING:
    from matplotlib.font_manager import FontProperties
    from matplotlib.mathtext import MathTextParser

logger = get_logger(__name__)

TEXT_COLOR = "#FFFFFF"
RENDER_DPI = 300
FONT_SIZE = 14
MATH_FONT_FAMILY = "cm"


class FormulaRenderer(Protocol):
    """Protocol for formula renderers.

    Renderers take an expression (without delimiters) and a maximum width
    and return encoded image bytes. Failures must be raised, not returned.
    """

    async def __call__(self, expression: str, max_width_px: int) -> bytes:
        """Render ``expression`` to an image no wider than ``max_width_px``."""
        ...


@dataclass(slots=True)
class MathtextRuntime:
    """Shared mathtext parser, font and the lock serializing their use."""

    parser: MathTextParser
    font: FontProperties
    lock: threading.Lock = field(default_factory=threading.Lock)


_runtime: MathtextRuntime | None = None
_runtime_lock = threading.Lock()


def get_mathtext_runtime() -> MathtextRuntime:
    """Return the process-wide mathtext runtime, creating it on first use.

    The first call imports matplotlib and may build its font cache, which
    can take seconds.
    """
    global _runtime
    runtime = _runtime
    if runtime is not None:
        return runtime

    with _runtime_lock:
        if _runtime is None:
            from matplotlib.font_manager import FontProperties
            from matplotlib.mathtext import MathTextParser

            _runtime = MathtextRuntime(
                parser=MathTextParser("path"),
                font=FontProperties(size=FONT_SIZE, math_fontfamily=MATH_FONT_FAMILY),
            )
            logger.debug("mathtext runtime initialized")
        return _runtime


def _typeset_png(expression: str, color: str, dpi: int) -> bytes:
    """Typeset ``expression`` in math mode and return the PNG bytes."""
    from matplotlib.backends.backend_agg import FigureCanvasAgg
    from matplotlib.figure import Figure

    # Whitespace is insignificant in math mode; mathtext rejects newlines
    tex = " ".join(expression.split())
    if not tex:
        raise FormulaRenderError(expression, "empty expression")
    source = f"${tex}$"

    runtime = get_mathtext_runtime()
    with runtime.lock:
        try:
            parsed = runtime.parser.parse(source, dpi=72, prop=runtime.font)
        except ValueError as exc:
            raise FormulaRenderError(expression, str(exc)) from exc

        if parsed.width <= 0 or parsed.height <= 0:
            raise FormulaRenderError(expression, "expression has no visible output")

        figure = Figure(figsize=(parsed.width / 72, parsed.height / 72))
        FigureCanvasAgg(figure)
        figure.text(
            0,
            parsed.depth / parsed.height,
            source,
            fontproperties=runtime.font,
            color=color,
        )
        buffer = io.BytesIO()
        try:
            figure.savefig(buffer, dpi=dpi, format="png", transparent=True)
        except (ValueError, RuntimeError) as exc:
            raise FormulaRenderError(expression, str(exc)) from exc

    return buffer.getvalue()


def fit_width(png: bytes, max_width_px: int) -> bytes:
    """Scale a PNG down so it is at most ``max_width_px`` wide.

    Images already narrow enough are returned unchanged (never upscaled).
    """
    with Image.open(io.BytesIO(png)) as image:
        if image.width <= max_width_px:
            return png
        height = max(1, round(image.height * max_width_px / image.width))
        resized = image.resize((max_width_px, height), Image.Resampling.LANCZOS)

    buffer = io.BytesIO()
    resized.save(buffer, format="PNG")
    return buffer.getvalue()


def render_formula_png_sync(
    expression: str,
    max_width_px: int,
    *,
    color: str = TEXT_COLOR,
    dpi: int = RENDER_DPI,
) -> bytes:
    """Blocking version of render_formula_png().

    Args:
        expression: TeX math expression, without delimiters
        max_width_px: Maximum image width in pixels
        color: Glyph color
        dpi: Rasterization resolution

    Returns:
        PNG bytes

    Raises:
        FormulaRenderError: Empty or invalid expression, or rasterization failure
    """
    png = _typeset_png(expression, color, dpi)
    try:
        png = fit_width(png, max_width_px)
    except OSError as exc:
        raise FormulaRenderError(expression, f"cannot resize image: {exc}") from exc
    if not png:
        raise FormulaRenderError(expression, "renderer produced no image data")
    return png


async def render_formula_png(expression: str, max_width_px: int) -> bytes:
    """Render a TeX expression to PNG bytes without blocking the event loop.

    Example:
        >>> png = asyncio.run(render_formula_png("x^2", 2048))
        >>> png[:8]
        b'\\x89PNG\\r\\n\\x1a\\n'
    """
    return await asyncio.to_thread(render_formula_png_sync, expression, max_width_px)


__all__ = [
    "FormulaRenderer",
    "MathtextRuntime",
    "fit_width",
    "get_mathtext_runtime",
    "render_formula_png",
    "render_formula_png_sync",
]
