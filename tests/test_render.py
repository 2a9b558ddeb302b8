"""Tests for the default matplotlib + Pillow renderer."""

import asyncio
import io

import pytest
from PIL import Image

from chatmath import build_math_segments
from chatmath.errors import ChatMathError, FormulaRenderError
from chatmath.render import (
    fit_width,
    get_mathtext_runtime,
    render_formula_png,
    render_formula_png_sync,
)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _png(width: int, height: int) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), (255, 255, 255, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestFitWidth:
    """Pillow downscaling."""

    def test_downscales_keeping_aspect(self) -> None:
        resized = fit_width(_png(100, 40), 50)
        with Image.open(io.BytesIO(resized)) as image:
            assert image.size == (50, 20)

    def test_never_upscales(self) -> None:
        png = _png(100, 40)
        assert fit_width(png, 200) is png
        assert fit_width(png, 100) is png

    def test_minimum_height_is_one(self) -> None:
        resized = fit_width(_png(1000, 1), 10)
        with Image.open(io.BytesIO(resized)) as image:
            assert image.size == (10, 1)


class TestRuntime:
    """Lazy mathtext runtime."""

    def test_singleton(self) -> None:
        assert get_mathtext_runtime() is get_mathtext_runtime()


class TestRenderFormula:
    """Rendering real formulas."""

    def test_png_output(self) -> None:
        png = asyncio.run(render_formula_png("x^2", 2048))
        assert png.startswith(PNG_SIGNATURE)
        with Image.open(io.BytesIO(png)) as image:
            assert 0 < image.width <= 2048
            assert image.height > 0

    def test_white_glyphs_on_transparent_background(self) -> None:
        png = render_formula_png_sync("x^2 + y^2", 2048)
        with Image.open(io.BytesIO(png)) as image:
            rgba = image.convert("RGBA")
            pixels = list(rgba.getdata())

        assert any(alpha == 0 for *_, alpha in pixels)
        brightest = max(max(r, g, b) for r, g, b, alpha in pixels if alpha > 0)
        assert brightest > 170

    def test_respects_max_width(self) -> None:
        png = render_formula_png_sync("\\sum_{i=1}^{n} i^2 = \\frac{n(n+1)(2n+1)}{6}", 64)
        with Image.open(io.BytesIO(png)) as image:
            assert image.width == 64

    def test_multiline_expression(self) -> None:
        png = render_formula_png_sync("\n  a +\n  b\n", 2048)
        assert png.startswith(PNG_SIGNATURE)

    def test_unknown_command_raises(self) -> None:
        with pytest.raises(FormulaRenderError) as exc_info:
            render_formula_png_sync("\\badcommand", 2048)
        assert exc_info.value.expression == "\\badcommand"
        assert isinstance(exc_info.value, ChatMathError)

    @pytest.mark.parametrize("expression", ["", "   ", "\n"])
    def test_empty_expression_raises(self, expression: str) -> None:
        with pytest.raises(FormulaRenderError, match="empty expression"):
            render_formula_png_sync(expression, 2048)


class TestDefaultRendererIntegration:
    """build_math_segments() with the real renderer."""

    def test_renders_formula(self) -> None:
        result = asyncio.run(build_math_segments("$$x^2$$"))

        assert result.has_math_images is True
        assert len(result.segments) == 1
        segment = result.segments[0]
        assert segment.kind == "math-image"
        assert segment.formula_text == "$$x^2$$"
        assert segment.file_name == "equation-1.png"
        assert segment.image.startswith(PNG_SIGNATURE)

    def test_bad_formula_falls_back(self) -> None:
        text = "$$\\badcommand$$"
        result = asyncio.run(build_math_segments(text))
        assert result.has_math_images is False
        assert result.to_text() == text
        assert [s.kind for s in result.segments] == ["text"]
