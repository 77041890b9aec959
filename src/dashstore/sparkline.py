"""Block-character sparklines for series snapshots.

A single-row renderer used by the watch dashboard. Values are scaled into
eight levels (▁ to █); when there are more values than columns, each column
summarizes an equal-sized chunk of the data.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from rich.text import Text

BLOCKS = " ▁▂▃▄▅▆▇█"
LEVELS = len(BLOCKS) - 1


def _scale_value(value: float, low: float, high: float) -> int:
    """Scale a value to 0..LEVELS, clamping outside [low, high]."""
    if high <= low:
        # Flat series: draw a mid-height line rather than nothing
        return LEVELS // 2
    normalized = (value - low) / (high - low)
    normalized = max(0.0, min(1.0, normalized))
    return max(1, round(normalized * LEVELS))


def _bucket(
    values: Sequence[float],
    width: int,
    summary_func: Callable[[Sequence[float]], float],
) -> list[float]:
    """Reduce values to at most width points, newest last."""
    if len(values) <= width:
        return list(values)
    size = len(values) / width
    return [
        summary_func(values[int(i * size) : max(int((i + 1) * size), int(i * size) + 1)])
        for i in range(width)
    ]


def render_sparkline(
    values: Sequence[float],
    width: int,
    min_value: float | None = None,
    max_value: float | None = None,
    summary_func: Callable[[Sequence[float]], float] = max,
) -> str:
    """Render values as a sparkline string of exactly width characters.

    Args:
        values: Samples oldest first.
        width: Number of output columns.
        min_value: Bottom of the scale. None for auto-scale from the data.
        max_value: Top of the scale. None for auto-scale from the data.
        summary_func: Reduces a chunk of values to one column when the data
                      is wider than the output.

    Returns:
        Right-aligned sparkline padded with spaces on the left.
    """
    if width <= 0:
        return ""
    points = _bucket(values, width, summary_func)
    if not points:
        return " " * width

    low = min(points) if min_value is None else min_value
    high = max(points) if max_value is None else max_value
    chars = "".join(BLOCKS[_scale_value(v, low, high)] for v in points)
    return chars.rjust(width)


def sparkline_text(
    values: Sequence[float],
    width: int,
    color_func: Callable[[float], str] | None = None,
    **kwargs,
) -> Text:
    """Render a sparkline as Rich Text, colored by the latest value."""
    text = Text(render_sparkline(values, width, **kwargs))
    if color_func is not None and values:
        text.stylize(color_func(values[-1]))
    return text
