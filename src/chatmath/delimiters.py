"""Delimiter specs and the forward scanner for math markers.

Two marker pairs are supported:

    double-dollar   $$ ... $$
    bracket         \\[ ... \\]

The scanner is re-entrant: a marker that sits inside an excluded region
(inline or fenced code) is stepped over and the search resumes right after
it, so an excluded candidate early in the text never hides a valid one later.

Thread Safety:
DelimiterSpec and OpeningMatch are immutable. Scanner functions are pure.

"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import NamedTuple

type InsidePredicate = Callable[[int], bool]


class DelimiterKind(StrEnum):
    """Recognized delimiter kind names (as written in configuration)."""

    DOUBLE_DOLLAR = "double-dollar"
    BRACKET = "bracket"


@dataclass(frozen=True, slots=True)
class DelimiterSpec:
    """An immutable open/close marker pair.

    Attributes:
        kind: Configuration name of this pair
        open: Opening marker
        close: Closing marker (equal to ``open`` for symmetric pairs)

    """

    kind: DelimiterKind
    open: str
    close: str

    @property
    def symmetric(self) -> bool:
        return self.open == self.close


# Table order is the tie-break order for openings found at the same offset.
DELIMITER_SPECS: tuple[DelimiterSpec, ...] = (
    DelimiterSpec(DelimiterKind.DOUBLE_DOLLAR, "$$", "$$"),
    DelimiterSpec(DelimiterKind.BRACKET, "\\[", "\\]"),
)


class OpeningMatch(NamedTuple):
    """Position and spec of an opening marker.

    Attributes:
        index: Offset of the first character of the opening marker.
        delimiter: The spec whose opening marker matched.

    """

    index: int
    delimiter: DelimiterSpec

    @property
    def expression_start(self) -> int:
        """Offset just past the opening marker."""
        return self.index + len(self.delimiter.open)


def active_delimiters(kinds: Iterable[DelimiterKind | str]) -> tuple[DelimiterSpec, ...]:
    """Select the fixed specs whose kind is named in ``kinds``.

    Result keeps table order regardless of the order of ``kinds``.

    Example:
        >>> [d.kind.value for d in active_delimiters(["bracket"])]
        ['bracket']
    """
    wanted = {str(kind) for kind in kinds}
    return tuple(spec for spec in DELIMITER_SPECS if spec.kind.value in wanted)


def _find_marker(
    text: str,
    marker: str,
    from_index: int,
    is_inside_code: InsidePredicate | None,
) -> int:
    """Find the first occurrence of ``marker`` at or after ``from_index``
    that is not inside an excluded region. Returns -1 if there is none."""
    search_from = from_index
    text_len = len(text)
    while search_from < text_len:
        index = text.find(marker, search_from)
        if index == -1:
            return -1
        if is_inside_code is None or not is_inside_code(index):
            return index
        # Excluded candidate: step one character and keep scanning
        search_from = index + 1
    return -1


def find_next_opening(
    text: str,
    from_index: int,
    delimiters: Iterable[DelimiterSpec],
    is_inside_code: InsidePredicate | None = None,
) -> OpeningMatch | None:
    """Find the leftmost valid opening marker among ``delimiters``.

    Args:
        text: Text to scan
        from_index: Offset to start scanning at (inclusive)
        delimiters: Active delimiter specs
        is_inside_code: Optional predicate; offsets for which it returns True
            are never accepted as marker positions

    Returns:
        OpeningMatch for the smallest valid index, or None when no active
        delimiter opens anywhere in the rest of the text. When two specs
        open at the same offset the one listed first wins.

    Example:
        >>> find_next_opening("a \\\\[x\\\\] $$y$$", 0, DELIMITER_SPECS).index
        2
    """
    best: OpeningMatch | None = None
    for delimiter in delimiters:
        index = _find_marker(text, delimiter.open, from_index, is_inside_code)
        if index == -1:
            continue
        if best is None or index < best.index:
            best = OpeningMatch(index, delimiter)
    return best


def find_closing_index(
    text: str,
    from_index: int,
    delimiter: DelimiterSpec,
    is_inside_code: InsidePredicate | None = None,
) -> int:
    """Find the first valid closing marker of ``delimiter``.

    Uses the same exclusion rule as find_next_opening().

    Returns:
        Offset of the closing marker, or -1 if not found.
    """
    return _find_marker(text, delimiter.close, from_index, is_inside_code)


__all__ = [
    "DELIMITER_SPECS",
    "DelimiterKind",
    "DelimiterSpec",
    "InsidePredicate",
    "OpeningMatch",
    "active_delimiters",
    "find_closing_index",
    "find_next_opening",
]
