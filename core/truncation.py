"""Length clipping for rendered field values and assembled names."""

from __future__ import annotations

from typing import Optional

DEFAULT_TRUNCATION_INDICATOR = "..."


def effective_indicator(indicator: Optional[str]) -> str:
    if indicator is None or not indicator.strip():
        return DEFAULT_TRUNCATION_INDICATOR
    return indicator


def truncate(value: str, max_length: int, indicator: Optional[str] = None) -> str:
    """Clip ``value`` to ``max_length`` characters, ending with ``indicator``.

    The function always truncates; callers only invoke it once ``value`` is
    known to be longer than ``max_length``.
    """

    if max_length <= 0:
        return ""

    marker = effective_indicator(indicator)
    if max_length <= len(marker):
        return marker[:max_length]

    return value[: max_length - len(marker)] + marker


__all__ = ["DEFAULT_TRUNCATION_INDICATOR", "effective_indicator", "truncate"]
