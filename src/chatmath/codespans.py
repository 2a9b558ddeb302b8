"""Code-span locator: which offsets of a message sit inside code.

Math markers inside code are literal. This module finds the two kinds of
Markdown code regions and answers "is offset N inside code?" in O(log n):

- Fenced code blocks: ``` or ~~~ fences (3+ characters, 0-3 spaces of
  indent). An unclosed fence runs to the end of the text.
- Inline code spans: a run of N backticks closed by the next run of exactly
  N backticks. A run without a matching closer is literal text.

Usage:
    >>> index = build_code_span_index("Inline `$$x$$` and $$y$$")
    >>> index.is_inside(8)
    True
    >>> index.is_inside(19)
    False

Thread Safety:
CodeSpanIndex is immutable after construction and safe to share.

"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Literal

type CodeSpanKind = Literal["fenced", "inline"]


@dataclass(frozen=True, slots=True)
class CodeSpan:
    """A half-open ``[start, end)`` region of code.

    Fenced spans run from the first character of the opening fence line to
    the end of the closing fence line (excluding its newline).

    """

    start: int
    end: int
    kind: CodeSpanKind

    def __contains__(self, offset: int) -> bool:
        return self.start <= offset < self.end


class CodeSpanIndex:
    """Sorted, non-overlapping code spans with binary-search lookup."""

    __slots__ = ("_ends", "_spans", "_starts")

    def __init__(self, spans: list[CodeSpan]) -> None:
        ordered = sorted(spans, key=lambda span: span.start)
        self._spans: tuple[CodeSpan, ...] = tuple(ordered)
        self._starts: list[int] = [span.start for span in ordered]
        self._ends: list[int] = [span.end for span in ordered]

    @property
    def spans(self) -> tuple[CodeSpan, ...]:
        return self._spans

    def span_at(self, offset: int) -> CodeSpan | None:
        """Return the span containing ``offset``, if any."""
        i = bisect_right(self._starts, offset) - 1
        if i >= 0 and offset < self._ends[i]:
            return self._spans[i]
        return None

    def is_inside(self, offset: int) -> bool:
        """True if ``offset`` falls inside a fenced block or inline code span."""
        i = bisect_right(self._starts, offset) - 1
        return i >= 0 and offset < self._ends[i]

    def __len__(self) -> int:
        return len(self._spans)

    def __repr__(self) -> str:
        return f"CodeSpanIndex({list(self._spans)!r})"


def build_code_span_index(text: str) -> CodeSpanIndex:
    """Locate every fenced and inline code span in ``text``.

    Args:
        text: Raw message text (Markdown)

    Returns:
        CodeSpanIndex over all code regions
    """
    if not text or ("`" not in text and "~~~" not in text):
        return CodeSpanIndex([])

    fences = CodeSpanIndex(_scan_fences(text))
    inline = _scan_inline_spans(text, fences)
    return CodeSpanIndex([*fences.spans, *inline])


def _match_fence_open(line: str) -> tuple[str, int] | None:
    """Return (fence_char, count) if ``line`` opens a fenced code block."""
    indent = 0
    while indent < len(line) and line[indent] == " ":
        indent += 1
    # 4+ spaces is indented code, not a fence
    if indent >= 4:
        return None

    content = line[indent:]
    if not content or content[0] not in "`~":
        return None

    fence_char = content[0]
    count = 0
    while count < len(content) and content[count] == fence_char:
        count += 1
    if count < 3:
        return None

    # Backtick fences cannot have backticks in the info string
    info = content[count:].strip()
    if fence_char == "`" and "`" in info:
        return None
    return fence_char, count


def _is_closing_fence(line: str, fence_char: str, fence_count: int) -> bool:
    """Check if ``line`` closes a fence opened with ``fence_count`` x ``fence_char``."""
    indent = 0
    while indent < len(line) and line[indent] == " ":
        indent += 1
    if indent >= 4:
        return False

    content = line[indent:]
    count = 0
    while count < len(content) and content[count] == fence_char:
        count += 1
    if count < fence_count:
        return False

    # Rest must be whitespace only
    return content[count:].strip() == ""


def _scan_fences(text: str) -> list[CodeSpan]:
    spans: list[CodeSpan] = []
    text_len = len(text)
    pos = 0
    fence_char = ""
    fence_count = 0
    fence_start = 0

    while pos < text_len:
        newline = text.find("\n", pos)
        line_end = text_len if newline == -1 else newline
        line = text[pos:line_end]

        if fence_char:
            if _is_closing_fence(line, fence_char, fence_count):
                spans.append(CodeSpan(fence_start, line_end, "fenced"))
                fence_char = ""
        else:
            opened = _match_fence_open(line)
            if opened is not None:
                fence_char, fence_count = opened
                fence_start = pos

        pos = line_end + 1

    if fence_char:
        spans.append(CodeSpan(fence_start, text_len, "fenced"))
    return spans


def _next_fence_start(fences: CodeSpanIndex, offset: int, default: int) -> int:
    for span in fences.spans:
        if span.start > offset:
            return span.start
    return default


def _find_code_span_close(text: str, start: int, backtick_count: int, limit: int) -> int:
    """Find a run of exactly ``backtick_count`` backticks before ``limit``."""
    pos = start
    while True:
        idx = text.find("`", pos, limit)
        if idx == -1:
            return -1
        count = 0
        check_pos = idx
        while check_pos < limit and text[check_pos] == "`":
            count += 1
            check_pos += 1
        if count == backtick_count:
            return idx
        pos = check_pos


def _scan_inline_spans(text: str, fences: CodeSpanIndex) -> list[CodeSpan]:
    spans: list[CodeSpan] = []
    text_len = len(text)
    pos = 0

    while pos < text_len:
        idx = text.find("`", pos)
        if idx == -1:
            break

        fence = fences.span_at(idx)
        if fence is not None:
            pos = fence.end
            continue

        run_end = idx
        while run_end < text_len and text[run_end] == "`":
            run_end += 1
        count = run_end - idx

        # Inline spans never cross into a fenced block
        limit = _next_fence_start(fences, idx, text_len)
        close = _find_code_span_close(text, run_end, count, limit)
        if close == -1:
            pos = run_end
            continue

        spans.append(CodeSpan(idx, close + count, "inline"))
        pos = close + count

    return spans


__all__ = [
    "CodeSpan",
    "CodeSpanIndex",
    "CodeSpanKind",
    "build_code_span_index",
]
