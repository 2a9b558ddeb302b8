"""Output segments of the math segment builder.

A message becomes an ordered list of segments: TextSegment for literal text
(including formulas that fell back to text) and MathImageSegment for
formulas rendered to a PNG. A chat client sends text segments as message
body and image segments as attachments, in order.

Thread Safety:
Segments and results are frozen dataclasses, safe to share across threads.

"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from chatmath.config import ResolvedMathImageConfig


@dataclass(frozen=True, slots=True)
class TextSegment:
    """Literal message text."""

    text: str

    @property
    def kind(self) -> Literal["text"]:
        return "text"


@dataclass(frozen=True, slots=True)
class MathImageSegment:
    """A formula rendered to an image.

    Attributes:
        formula_text: The delimited source (``$$x^2$$``)
        expression: The expression between the markers (``x^2``)
        image: Encoded PNG bytes
        file_name: Attachment name, unique within one result
            (``equation-1.png``, ``equation-2.png``, ...)

    """

    formula_text: str
    expression: str
    image: bytes
    file_name: str

    @property
    def kind(self) -> Literal["math-image"]:
        return "math-image"

    def __repr__(self) -> str:
        # Summarize image bytes
        return (
            f"MathImageSegment(formula_text={self.formula_text!r}, "
            f"expression={self.expression!r}, image=<{len(self.image)} bytes>, "
            f"file_name={self.file_name!r})"
        )


type MathSegment = TextSegment | MathImageSegment


@dataclass(frozen=True, slots=True)
class MathSegmentResult:
    """Segments for one message plus the configuration that produced them."""

    segments: tuple[MathSegment, ...]
    has_math_images: bool
    config: ResolvedMathImageConfig

    @property
    def images(self) -> tuple[MathImageSegment, ...]:
        """Math-image segments in message order."""
        return tuple(s for s in self.segments if isinstance(s, MathImageSegment))

    def to_text(self) -> str:
        """Concatenate segment text, using the delimited source for images.

        Equals the original message for any input.
        """
        return "".join(
            s.formula_text if isinstance(s, MathImageSegment) else s.text
            for s in self.segments
        )


def append_text_segment(segments: list[MathSegment], text: str) -> None:
    """Append ``text``, merging it into a trailing TextSegment if there is one."""
    if not text:
        return
    if segments and isinstance(segments[-1], TextSegment):
        segments[-1] = TextSegment(segments[-1].text + text)
        return
    segments.append(TextSegment(text))


__all__ = [
    "MathImageSegment",
    "MathSegment",
    "MathSegmentResult",
    "TextSegment",
    "append_text_segment",
]
