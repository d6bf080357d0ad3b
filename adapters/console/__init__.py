"""Rich terminal rendering for the health tracker."""

from .display import METRIC_DISPLAY, MetricDisplay
from .report import render_dashboard, render_history, render_insights

__all__ = [
    "METRIC_DISPLAY",
    "MetricDisplay",
    "render_dashboard",
    "render_history",
    "render_insights",
]
