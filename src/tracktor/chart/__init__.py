"""Chart projection and multi-resolution downscaling."""

from tracktor.chart.downscale import (
    SMOOTHING_FACTOR,
    Sample,
    downscale,
    downscale_distance,
    downscale_time,
    smooth_backward,
    smooth_forward,
    smoothing_alpha,
)
from tracktor.chart.projector import (
    CHART_PADDING,
    calc_tick_interval,
    convert_ratio,
    crisp,
    cursor_index,
    domain_index,
    point_index_by_distance,
    project_axis,
    project_y,
    zoom_window,
)

__all__ = [
    "CHART_PADDING",
    "SMOOTHING_FACTOR",
    "Sample",
    "calc_tick_interval",
    "convert_ratio",
    "crisp",
    "cursor_index",
    "domain_index",
    "downscale",
    "downscale_distance",
    "downscale_time",
    "point_index_by_distance",
    "project_axis",
    "project_y",
    "smooth_backward",
    "smooth_forward",
    "smoothing_alpha",
    "zoom_window",
]
