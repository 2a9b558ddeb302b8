"""Split a chat message into text and formula tokens.

Walks the message with a cursor, asking the delimiter scanner for the next
opening marker and then for its matching closer:

    "A $$x^2$$ B"  ->  [TextToken("A "), FormulaToken("$$x^2$$", "x^2"), TextToken(" B")]

Rules:
- Markers inside inline or fenced code are ignored (when exclude_code is on).
- Leftmost opening wins across delimiter kinds.
- An opening marker without a closer turns the rest of the message, from that
  marker on, into literal text. Nothing after it is scanned again.
- Adjacent text merges into one token.
- ``$$$$`` is a formula with an empty expression.

Thread Safety:
tokenize() is a pure function; all state is local to one call.

"""

from __future__ import annotations

from chatmath.codespans import build_code_span_index
from chatmath.config import ResolvedMathImageConfig
from chatmath.delimiters import (
    InsidePredicate,
    active_delimiters,
    find_closing_index,
    find_next_opening,
)
from chatmath.tokens import FormulaToken, MathToken, TextToken, append_text_token


def tokenize(text: str, config: ResolvedMathImageConfig) -> list[MathToken]:
    """Tokenize ``text`` into an ordered list of TextToken / FormulaToken.

    Args:
        text: Raw message text
        config: Resolved configuration (delimiters, exclude_code)

    Returns:
        Tokens whose ``content`` / ``raw`` concatenate back to ``text``.
    """
    delimiters = active_delimiters(config.delimiters)
    if not delimiters or not text:
        return [TextToken(text)]

    is_inside_code: InsidePredicate | None = None
    if config.exclude_code:
        is_inside_code = build_code_span_index(text).is_inside

    tokens: list[MathToken] = []
    cursor = 0
    text_len = len(text)

    while cursor < text_len:
        opening = find_next_opening(text, cursor, delimiters, is_inside_code)
        if opening is None:
            append_text_token(tokens, text[cursor:])
            break

        append_text_token(tokens, text[cursor : opening.index])

        delimiter = opening.delimiter
        expression_start = opening.expression_start
        close_index = find_closing_index(text, expression_start, delimiter, is_inside_code)
        if close_index == -1:
            # Unmatched opener: the rest of the message stays literal
            append_text_token(tokens, text[opening.index :])
            break

        cursor = close_index + len(delimiter.close)
        tokens.append(
            FormulaToken(
                raw=text[opening.index : cursor],
                expression=text[expression_start:close_index],
            )
        )

    if not tokens:
        return [TextToken(text)]
    return tokens


def has_formula(tokens: list[MathToken]) -> bool:
    """True if any token is a FormulaToken."""
    return any(isinstance(token, FormulaToken) for token in tokens)


__all__ = ["has_formula", "tokenize"]
