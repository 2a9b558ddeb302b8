"""Math image configuration for chatmath.

Two frozen records:

- MathImageConfig: partial, user-supplied settings. Every field may be None
  (meaning "not set"); values are kept as given, valid or not.
- ResolvedMathImageConfig: the fully-defaulted record the tokenizer and
  segment builder read.

resolve_math_image_config() turns the first into the second. It never raises
and never logs: anything missing or invalid silently falls back to a default.

Usage:
    >>> config = resolve_math_image_config({"maxExpressionsPerReply": 2})
    >>> config.max_expressions_per_reply
    2
    >>> config.max_chars_per_expression
    1200

"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from typing import Any, Literal

from chatmath.delimiters import DelimiterKind

DEFAULT_DELIMITERS: tuple[DelimiterKind, ...] = (
    DelimiterKind.DOUBLE_DOLLAR,
    DelimiterKind.BRACKET,
)
DEFAULT_MAX_EXPRESSIONS = 8
DEFAULT_MAX_CHARS = 1200
DEFAULT_MAX_IMAGE_WIDTH_PX = 2048

# Chat platform config files use camelCase keys
_CAMEL_CASE_ALIASES: dict[str, str] = {
    "excludeCode": "exclude_code",
    "maxExpressionsPerReply": "max_expressions_per_reply",
    "maxCharsPerExpression": "max_chars_per_expression",
    "maxImageWidthPx": "max_image_width_px",
}


@dataclass(frozen=True, slots=True)
class MathImageConfig:
    """Partial math image configuration.

    Attributes:
        enabled: Turn formula rendering on or off (default on)
        delimiters: Delimiter kind names to recognize ("double-dollar",
            "bracket"); unknown names are ignored
        exclude_code: Ignore markers inside inline/fenced code (default on)
        max_expressions_per_reply: Images rendered per message at most
        max_chars_per_expression: Longer expressions are sent as text. Length
            is counted in code points, so an astral character such as
            U+1D465 counts once
        max_image_width_px: Wider images are scaled down to this width

    """

    enabled: bool | None = None
    delimiters: Iterable[DelimiterKind | str] | None = None
    exclude_code: bool | None = None
    max_expressions_per_reply: int | float | None = None
    max_chars_per_expression: int | float | None = None
    max_image_width_px: int | float | None = None

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> MathImageConfig:
        """Create MathImageConfig from a dictionary.

        Accepts snake_case field names and the camelCase names used by chat
        platform config files. Unknown keys are silently ignored.

        Example:
            >>> MathImageConfig.from_dict({"excludeCode": False, "x": 1}).exclude_code
            False

        """
        valid_fields = {f.name for f in fields(cls)}
        filtered: dict[str, Any] = {}
        for key, value in config_dict.items():
            name = _CAMEL_CASE_ALIASES.get(key, key)
            if name in valid_fields:
                filtered[name] = value
        return cls(**filtered)


@dataclass(frozen=True, slots=True)
class ResolvedMathImageConfig:
    """Fully-defaulted math image configuration.

    Invariant: all numeric fields are positive integers and ``delimiters``
    holds at least one kind, without duplicates.

    """

    enabled: bool = True
    delimiters: tuple[DelimiterKind, ...] = DEFAULT_DELIMITERS
    exclude_code: bool = True
    formula_text_format: Literal["plain"] = "plain"
    max_expressions_per_reply: int = DEFAULT_MAX_EXPRESSIONS
    max_chars_per_expression: int = DEFAULT_MAX_CHARS
    max_image_width_px: int = DEFAULT_MAX_IMAGE_WIDTH_PX


# Module-level default config (reused, never recreated)
_DEFAULT_RESOLVED: ResolvedMathImageConfig = ResolvedMathImageConfig()


def normalize_positive_int(value: object, fallback: int) -> int:
    """Floor a finite number to an int; fall back unless the result is > 0.

    Examples:
        >>> normalize_positive_int(3.9, 8)
        3
        >>> normalize_positive_int(0, 8)
        8
        >>> normalize_positive_int("5", 8)
        8
    """
    # bool is an int subclass but never a meaningful limit
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    if isinstance(value, float):
        if not math.isfinite(value):
            return fallback
        value = math.floor(value)
    return value if value > 0 else fallback


def normalize_delimiters(
    values: Iterable[DelimiterKind | str] | None,
) -> tuple[DelimiterKind, ...]:
    """Keep recognized delimiter kinds in order, dropping duplicates.

    Falls back to both kinds when nothing recognized remains.

    Examples:
        >>> [k.value for k in normalize_delimiters(["bracket", "dollar"])]
        ['bracket']
        >>> len(normalize_delimiters(["nope"]))
        2
    """
    if values is None or isinstance(values, str) or not isinstance(values, Iterable):
        return DEFAULT_DELIMITERS

    kinds: list[DelimiterKind] = []
    for value in values:
        if not isinstance(value, str):
            continue
        try:
            kind = DelimiterKind(value)
        except ValueError:
            continue
        if kind not in kinds:
            kinds.append(kind)
    return tuple(kinds) if kinds else DEFAULT_DELIMITERS


def _normalize_bool(value: object, fallback: bool) -> bool:
    return value if isinstance(value, bool) else fallback


def resolve_math_image_config(
    config: MathImageConfig | Mapping[str, Any] | None = None,
) -> ResolvedMathImageConfig:
    """Normalize partial configuration into a fully-defaulted record.

    Args:
        config: MathImageConfig, a plain mapping (see MathImageConfig.from_dict),
            or None for all defaults

    Returns:
        ResolvedMathImageConfig
    """
    if config is None:
        return _DEFAULT_RESOLVED
    if isinstance(config, ResolvedMathImageConfig):
        # Directly constructed records are normalized like any other input
        config = MathImageConfig(
            enabled=config.enabled,
            delimiters=config.delimiters,
            exclude_code=config.exclude_code,
            max_expressions_per_reply=config.max_expressions_per_reply,
            max_chars_per_expression=config.max_chars_per_expression,
            max_image_width_px=config.max_image_width_px,
        )
    if not isinstance(config, MathImageConfig):
        config = MathImageConfig.from_dict(config)

    return ResolvedMathImageConfig(
        enabled=_normalize_bool(config.enabled, True),
        delimiters=normalize_delimiters(config.delimiters),
        exclude_code=_normalize_bool(config.exclude_code, True),
        formula_text_format="plain",
        max_expressions_per_reply=normalize_positive_int(
            config.max_expressions_per_reply, DEFAULT_MAX_EXPRESSIONS
        ),
        max_chars_per_expression=normalize_positive_int(
            config.max_chars_per_expression, DEFAULT_MAX_CHARS
        ),
        max_image_width_px=normalize_positive_int(
            config.max_image_width_px, DEFAULT_MAX_IMAGE_WIDTH_PX
        ),
    )


__all__ = [
    "DEFAULT_DELIMITERS",
    "DEFAULT_MAX_CHARS",
    "DEFAULT_MAX_EXPRESSIONS",
    "DEFAULT_MAX_IMAGE_WIDTH_PX",
    "MathImageConfig",
    "ResolvedMathImageConfig",
    "normalize_delimiters",
    "normalize_positive_int",
    "resolve_math_image_config",
]
