"""Public API for Mandelbrot band rendering utilities."""

from .renderer import (
    BufferSizeError,
    RenderParameters,
    Viewport,
    escape_time,
    intensity,
    pixel_to_point,
    render_band,
)
from .bands import Band, partition_rows, plan_bands, render_frame, render_pass
from .navigation import (
    DEFAULT_VIEWPORT,
    KEY_BINDINGS,
    Command,
    ViewportController,
    apply_command,
    pan,
    zoom,
)
from .parsing import parse_complex, parse_dimensions, parse_pair

__all__ = [
    "Band",
    "BufferSizeError",
    "Command",
    "DEFAULT_VIEWPORT",
    "KEY_BINDINGS",
    "RenderParameters",
    "Viewport",
    "ViewportController",
    "apply_command",
    "escape_time",
    "intensity",
    "pan",
    "parse_complex",
    "parse_dimensions",
    "parse_pair",
    "partition_rows",
    "pixel_to_point",
    "plan_bands",
    "render_band",
    "render_frame",
    "render_pass",
    "zoom",
]
