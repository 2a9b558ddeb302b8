"""Typed tokens produced by the math tokenizer.

Uses NamedTuples, matching on the ``type`` property or the class:

    match token:
        case FormulaToken(raw=raw, expression=expression):
            ...
        case TextToken(content=content):
            ...

Concatenating ``content`` / ``raw`` of every token, in order, reproduces the
tokenized text exactly.

Thread Safety:
All tokens are immutable and safe to share across threads.

"""

from __future__ import annotations

from typing import Literal, NamedTuple


class TextToken(NamedTuple):
    """Plain text token.

    Attributes:
        content: The text content.

    """

    content: str

    @property
    def type(self) -> Literal["text"]:
        """Token type identifier for dispatch."""
        return "text"

    @property
    def source_text(self) -> str:
        return self.content


class FormulaToken(NamedTuple):
    """Delimited math expression token.

    Attributes:
        raw: The full delimited substring, markers included (``$$x^2$$``).
        expression: The substring strictly between the markers (``x^2``).

    """

    raw: str
    expression: str

    @property
    def type(self) -> Literal["formula"]:
        """Token type identifier for dispatch."""
        return "formula"

    @property
    def source_text(self) -> str:
        return self.raw


type MathToken = TextToken | FormulaToken


def append_text_token(tokens: list[MathToken], text: str) -> None:
    """Append ``text``, merging it into a trailing TextToken if there is one."""
    if not text:
        return
    if tokens and isinstance(tokens[-1], TextToken):
        tokens[-1] = TextToken(tokens[-1].content + text)
        return
    tokens.append(TextToken(text))


__all__ = [
    "FormulaToken",
    "MathToken",
    "TextToken",
    "append_text_token",
]
