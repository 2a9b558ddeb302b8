"""Tests for build_math_segments() and the segment policy.

Most tests use a stub renderer so they do not depend on matplotlib.
"""

import asyncio
import logging

import pytest

from chatmath import build_math_segments, build_segments_from_tokens, tokenize
from chatmath.builder import math_image_file_name
from chatmath.config import MathImageConfig, resolve_math_image_config
from chatmath.segments import MathImageSegment, TextSegment


async def fake_render(expression: str, max_width_px: int) -> bytes:
    return f"png:{expression}".encode()


async def failing_render(expression: str, max_width_px: int) -> bytes:
    raise ValueError("bad formula")


class RecordingRenderer:
    """Stub renderer that records calls and fails for chosen expressions."""

    def __init__(self, fail: set[str] | None = None) -> None:
        self.calls: list[tuple[str, int]] = []
        self.fail = fail or set()

    async def __call__(self, expression: str, max_width_px: int) -> bytes:
        self.calls.append((expression, max_width_px))
        if expression in self.fail:
            raise RuntimeError(f"cannot render {expression}")
        return f"png:{expression}".encode()


def build(text: str, config=None, render=fake_render):
    return asyncio.run(build_math_segments(text, config, render=render))


class TestScenarios:
    """End-to-end scenarios."""

    def test_both_delimiter_kinds(self) -> None:
        result = build("A $$x^2$$ B \\[y+1\\] C")

        assert result.has_math_images is True
        assert [s.kind for s in result.segments] == [
            "text",
            "math-image",
            "text",
            "math-image",
            "text",
        ]
        first, second = result.images
        assert first.formula_text == "$$x^2$$"
        assert first.expression == "x^2"
        assert first.image == b"png:x^2"
        assert second.formula_text == "\\[y+1\\]"
        assert second.expression == "y+1"

    def test_single_formula(self) -> None:
        result = build("$$x^2$$")
        assert result.has_math_images is True
        assert result.segments == (
            MathImageSegment("$$x^2$$", "x^2", b"png:x^2", "equation-1.png"),
        )

    def test_fenced_code_excluded(self) -> None:
        text = "```latex\n$$x^2$$\n```\n\n$$y^2$$"
        result = build(text)

        assert result.has_math_images is True
        assert len(result.segments) == 2
        assert result.segments[0] == TextSegment("```latex\n$$x^2$$\n```\n\n")
        assert isinstance(result.segments[1], MathImageSegment)
        assert result.segments[1].formula_text == "$$y^2$$"

    def test_inline_code_excluded(self) -> None:
        text = "Inline `\\[x+1\\]` and \\[y+1\\]"
        result = build(text)

        assert len(result.segments) == 2
        assert result.segments[0] == TextSegment("Inline `\\[x+1\\]` and ")
        assert result.segments[1].formula_text == "\\[y+1\\]"

    def test_render_failure_falls_back(self) -> None:
        text = "$$\\badcommand$$"
        result = build(text, render=failing_render)

        assert result.has_math_images is False
        assert result.segments == (TextSegment(text),)

    def test_max_expressions_per_reply(self) -> None:
        result = build("$$a$$ $$b$$", {"maxExpressionsPerReply": 1})

        assert result.has_math_images is True
        assert len(result.segments) == 2
        assert result.segments[0].kind == "math-image"
        assert result.segments[0].formula_text == "$$a$$"
        assert result.segments[1] == TextSegment(" $$b$$")

    def test_max_chars_per_expression(self) -> None:
        result = build("$$abcd$$", MathImageConfig(max_chars_per_expression=3))

        assert result.has_math_images is False
        assert result.segments == (TextSegment("$$abcd$$"),)

    def test_disabled(self) -> None:
        renderer = RecordingRenderer()
        result = build("$$x^2$$", {"enabled": False}, render=renderer)

        assert result.has_math_images is False
        assert result.segments == (TextSegment("$$x^2$$"),)
        assert renderer.calls == []


class TestShortCircuits:
    """Inputs that never reach the renderer."""

    def test_empty_text(self) -> None:
        renderer = RecordingRenderer()
        result = build("", render=renderer)
        assert result.segments == (TextSegment(""),)
        assert result.has_math_images is False
        assert renderer.calls == []

    def test_no_formulas(self) -> None:
        renderer = RecordingRenderer()
        result = build("hello `$$x$$`", render=renderer)
        assert result.segments == (TextSegment("hello `$$x$$`"),)
        assert renderer.calls == []

    def test_config_is_returned(self) -> None:
        result = build("text", {"maxImageWidthPx": 300})
        assert result.config == resolve_math_image_config({"maxImageWidthPx": 300})


class TestLimits:
    """Per-reply and per-expression limits."""

    def test_length_limit_skips_render(self) -> None:
        renderer = RecordingRenderer()
        result = build("$$abcd$$ $$ab$$", {"maxCharsPerExpression": 3}, render=renderer)

        assert renderer.calls == [("ab", 2048)]
        assert result.segments[0] == TextSegment("$$abcd$$ ")
        assert result.segments[1].file_name == "equation-1.png"

    def test_length_limit_is_strict(self) -> None:
        result = build("$$abc$$", {"maxCharsPerExpression": 3})
        assert result.has_math_images is True

    def test_length_counts_code_points(self) -> None:
        # U+1D465 is one code point (two UTF-16 units)
        result = build("$$\U0001d465\U0001d465$$", {"maxCharsPerExpression": 2})
        assert result.has_math_images is True
        assert result.images[0].expression == "\U0001d465\U0001d465"

    @pytest.mark.parametrize("value", [5, 3.5, True, object()])
    def test_invalid_delimiters_setting_uses_defaults(self, value: object) -> None:
        result = build("$$x$$ \\[y\\]", {"delimiters": value})
        assert [image.expression for image in result.images] == ["x", "y"]

    def test_over_limit_formulas_not_rendered(self) -> None:
        renderer = RecordingRenderer()
        result = build("$$a$$$$b$$$$c$$", {"maxExpressionsPerReply": 2}, render=renderer)

        assert [call[0] for call in renderer.calls] == ["a", "b"]
        assert [s.kind for s in result.segments] == ["math-image", "math-image", "text"]
        assert result.segments[2] == TextSegment("$$c$$")

    def test_failures_do_not_consume_the_limit(self) -> None:
        renderer = RecordingRenderer(fail={"a"})
        result = build("$$a$$ $$b$$ $$c$$", {"maxExpressionsPerReply": 1}, render=renderer)

        assert [call[0] for call in renderer.calls] == ["a", "b"]
        assert result.segments == (
            TextSegment("$$a$$ "),
            MathImageSegment("$$b$$", "b", b"png:b", "equation-1.png"),
            TextSegment(" $$c$$"),
        )

    def test_max_width_passed_to_renderer(self) -> None:
        renderer = RecordingRenderer()
        build("$$x$$", {"maxImageWidthPx": 512}, render=renderer)
        assert renderer.calls == [("x", 512)]

    @pytest.mark.parametrize(("n", "k"), [(1, 1), (3, 1), (2, 5), (8, 8), (10, 8)])
    def test_count_limit(self, n: int, k: int) -> None:
        text = " ".join(f"$$x_{i}$$" for i in range(n))
        result = build(text, {"maxExpressionsPerReply": k})

        assert len(result.images) == min(n, k)
        literal = "".join(s.text for s in result.segments if isinstance(s, TextSegment))
        for i in range(min(n, k), n):
            assert f"$$x_{i}$$" in literal


class TestFileNames:
    """Attachment names."""

    def test_names_follow_successful_renders(self) -> None:
        renderer = RecordingRenderer(fail={"b"})
        result = build("$$a$$ $$b$$ $$c$$", render=renderer)
        assert [image.file_name for image in result.images] == [
            "equation-1.png",
            "equation-2.png",
        ]
        assert [image.expression for image in result.images] == ["a", "c"]

    def test_file_name_helper(self) -> None:
        assert math_image_file_name(3) == "equation-3.png"

    def test_renders_are_sequential(self) -> None:
        active = 0
        order: list[str] = []

        async def slow_render(expression: str, max_width_px: int) -> bytes:
            nonlocal active
            active += 1
            assert active == 1
            # Earlier formulas take longer; output order must not change
            await asyncio.sleep(0.01 * (3 - len(order)))
            order.append(expression)
            active -= 1
            return expression.encode()

        result = build("$$a$$ $$b$$ $$c$$", render=slow_render)
        assert order == ["a", "b", "c"]
        assert [(i.expression, i.file_name) for i in result.images] == [
            ("a", "equation-1.png"),
            ("b", "equation-2.png"),
            ("c", "equation-3.png"),
        ]


class TestFailureLogging:
    """Render failures are logged, never raised."""

    def test_failure_logged_on_one_line(self, caplog: pytest.LogCaptureFixture) -> None:
        async def multiline_error(expression: str, max_width_px: int) -> bytes:
            raise ValueError("Unknown symbol:\n   \\badcommand\n")

        with caplog.at_level(logging.DEBUG, logger="chatmath"):
            build("$$\\badcommand$$", render=multiline_error)

        messages = [r.getMessage() for r in caplog.records if r.name == "chatmath.builder"]
        assert messages == [
            "math render failed; sent plain text fallback: Unknown symbol: \\badcommand"
        ]

    def test_any_exception_is_absorbed(self) -> None:
        async def broken(expression: str, max_width_px: int) -> bytes:
            raise KeyError(expression)

        result = build("x $$y$$ z", render=broken)
        assert result.segments == (TextSegment("x $$y$$ z"),)


class TestBuildSegmentsFromTokens:
    """The policy stage on its own."""

    def test_reuses_tokens(self) -> None:
        config = resolve_math_image_config()
        text = "a $$b$$"
        tokens = tokenize(text, config)
        result = asyncio.run(build_segments_from_tokens(text, config, tokens, fake_render))
        assert result.segments == (
            TextSegment("a "),
            MathImageSegment("$$b$$", "b", b"png:b", "equation-1.png"),
        )

    def test_no_tokens_gives_whole_text(self) -> None:
        config = resolve_math_image_config()
        result = asyncio.run(build_segments_from_tokens("abc", config, [], fake_render))
        assert result.segments == (TextSegment("abc"),)
        assert result.has_math_images is False


class TestResult:
    """MathSegmentResult helpers."""

    def test_to_text_reconstructs_input(self) -> None:
        text = "A $$x^2$$ B \\[y+1\\] C"
        assert build(text).to_text() == text

    def test_image_repr_hides_bytes(self) -> None:
        segment = MathImageSegment("$$x$$", "x", b"\x89PNG" * 100, "equation-1.png")
        assert "400 bytes" in repr(segment)
