"""
Temperature trend curves for the high/low charts.

layout_trend() is plain geometry in widget pixel coordinates (y grows downward):
each day sits at its anchor's x, shifted vertically from the chart's middle by
three pixels per degree away from the six-day average.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Sequence, Tuple

from weather_model import DAYS_SHOWN, to_int

PIXELS_PER_DEGREE = 3
LABEL_OFFSET = (-10, -10)
POINT_RADIUS = 3

HIGH_COLOR = "yellow"
LOW_COLOR = "blue"


@dataclass(frozen=True)
class Point:
    x: int
    y: int


def _trunc_div(a: int, b: int) -> int:
    # integer division rounding toward zero, not toward -inf
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def layout_trend(temps: Sequence[int], anchors: Sequence[Point], chart_height: int) -> List[Point]:
    if len(temps) != DAYS_SHOWN or len(anchors) != DAYS_SHOWN:
        raise ValueError(f"trend layout needs {DAYS_SHOWN} temperatures and anchors")

    average = _trunc_div(sum(temps), DAYS_SHOWN)
    middle = _trunc_div(chart_height, 2)
    return [
        Point(anchor.x, middle - (t - average) * PIXELS_PER_DEGREE)
        for t, anchor in zip(temps, anchors)
    ]


@dataclass
class TrendCurve:
    points: List[Point]
    labels: List[Tuple[str, Point]] = field(default_factory=list)
    color: str = HIGH_COLOR

    @property
    def segments(self) -> Iterator[Tuple[Point, Point]]:
        """Consecutive point pairs; the polyline is open."""
        return zip(self.points, self.points[1:])


def build_trend_curve(texts: Sequence[str], anchors: Sequence[Point], chart_height: int,
                      color: str = HIGH_COLOR) -> TrendCurve:
    """Lay out temperatures sent as text and label each point with 'N°'."""
    points = layout_trend([to_int(t) for t in texts], anchors, chart_height)
    dx, dy = LABEL_OFFSET
    labels = [(f"{t}°", Point(p.x + dx, p.y + dy)) for t, p in zip(texts, points)]
    return TrendCurve(points=points, labels=labels, color=color)


def draw_trend_curve(ax, curve: TrendCurve, width: int, height: int) -> None:
    """Render onto a matplotlib Axes whose data units are the chart's pixels."""
    ax.clear()
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    ax.axis("off")

    xs = [p.x for p in curve.points]
    ys = [p.y for p in curve.points]
    ax.plot(xs, ys, marker="o", markersize=POINT_RADIUS * 2, linewidth=1.5, color=curve.color)
    for text, pos in curve.labels:
        ax.text(pos.x, pos.y, text, color=curve.color, fontsize=9)
