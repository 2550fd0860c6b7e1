"""Rendering primitives for grayscale Mandelbrot bands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

HORIZON = 4.0
MAX_INTENSITY = 255
DEFAULT_ITERATION_LIMIT = 255
DEFAULT_WORKER_COUNT = 16
KERNELS = ("numpy", "python", "tensorflow")


class BufferSizeError(ValueError):
    """Raised when a pixel buffer does not match the bounds it is rendered with."""


def check_pixel_format(bytes_per_pixel: int, limit: int) -> None:
    """Reject pixel layouts other than 1 or 4 bytes and limits whose counts overflow a byte."""

    if bytes_per_pixel not in (1, 4):
        raise ValueError(f"bytes_per_pixel must be 1 or 4, got {bytes_per_pixel}.")
    # Escape counts stay below the limit, so a limit of 256 still maps to a byte.
    if not 1 <= limit <= MAX_INTENSITY + 1:
        raise ValueError(f"iteration limit must be between 1 and {MAX_INTENSITY + 1}, got {limit}.")


@dataclass(frozen=True)
class Viewport:
    """Rectangle of the complex plane spanned by two opposite corners."""

    upper_left: complex
    lower_right: complex

    def __post_init__(self) -> None:
        if not self.upper_left.real < self.lower_right.real:
            raise ValueError(
                f"upper-left real part {self.upper_left.real} must be less than "
                f"lower-right real part {self.lower_right.real}."
            )
        if not self.upper_left.imag > self.lower_right.imag:
            raise ValueError(
                f"upper-left imaginary part {self.upper_left.imag} must be greater than "
                f"lower-right imaginary part {self.lower_right.imag}."
            )

    @property
    def width(self) -> float:
        return self.lower_right.real - self.upper_left.real

    @property
    def height(self) -> float:
        return self.upper_left.imag - self.lower_right.imag

    @property
    def center(self) -> complex:
        return complex(
            (self.upper_left.real + self.lower_right.real) / 2.0,
            (self.upper_left.imag + self.lower_right.imag) / 2.0,
        )


@dataclass(frozen=True)
class RenderParameters:
    """Parameters that describe a single render pass of the Mandelbrot set."""

    width: int
    height: int
    upper_left: complex
    lower_right: complex
    iteration_limit: int = DEFAULT_ITERATION_LIMIT
    worker_count: int = DEFAULT_WORKER_COUNT
    bytes_per_pixel: int = 1
    kernel: str = "numpy"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"image bounds must be positive, got {self.width}x{self.height}.")
        check_pixel_format(self.bytes_per_pixel, self.iteration_limit)
        if self.worker_count < 1:
            raise ValueError(f"worker_count must be at least 1, got {self.worker_count}.")
        if self.kernel not in KERNELS:
            raise ValueError(f"Unknown kernel '{self.kernel}'. Valid choices: {', '.join(KERNELS)}.")
        Viewport(self.upper_left, self.lower_right)

    @property
    def bounds(self) -> tuple[int, int]:
        return (self.width, self.height)

    @property
    def viewport(self) -> Viewport:
        return Viewport(self.upper_left, self.lower_right)

    @property
    def buffer_size(self) -> int:
        return self.width * self.height * self.bytes_per_pixel


def pixel_to_point(
    bounds: tuple[int, int],
    pixel: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
) -> complex:
    """Map a ``(column, row)`` pixel of an image with ``bounds`` onto the complex plane."""

    plane_width = lower_right.real - upper_left.real
    plane_height = upper_left.imag - lower_right.imag
    column, row = pixel
    # Rows grow downwards while the imaginary axis grows upwards.
    return complex(
        upper_left.real + column * plane_width / bounds[0],
        upper_left.imag - row * plane_height / bounds[1],
    )


def escape_time(c: complex, limit: int) -> Optional[int]:
    """Return the iteration at which ``z -> z**2 + c`` leaves the radius-2 disc, or None."""

    cr = c.real
    ci = c.imag
    zr = 0.0
    zi = 0.0
    for i in range(limit):
        zr2 = zr * zr
        zi2 = zi * zi
        if zr2 + zi2 > HORIZON:
            return i
        zr, zi = zr2 - zi2 + cr, 2.0 * zr * zi + ci
    return None


def intensity(count: Optional[int]) -> int:
    if count is None:
        return 0
    return MAX_INTENSITY - count


def _sample_grid(
    bounds: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
    top: int = 0,
    rows: Optional[int] = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Evaluate ``pixel_to_point`` for rows ``top .. top + rows`` of an image with ``bounds``."""

    width, height = bounds
    if rows is None:
        rows = height - top
    plane_width = np.float64(lower_right.real - upper_left.real)
    plane_height = np.float64(upper_left.imag - lower_right.imag)

    columns = np.arange(width, dtype=np.float64)
    row_numbers = np.arange(top, top + rows, dtype=np.float64)
    re = np.float64(upper_left.real) + columns * plane_width / np.float64(width)
    im = np.float64(upper_left.imag) - row_numbers * plane_height / np.float64(height)
    return np.meshgrid(re, im)


def _escape_counts_numpy(cr: np.ndarray, ci: np.ndarray, limit: int) -> np.ndarray:
    """Vectorized ``escape_time``; points that never escape report ``limit``."""

    zr = np.zeros_like(cr)
    zi = np.zeros_like(ci)
    counts = np.full(cr.shape, limit, dtype=np.int64)
    active = np.ones(cr.shape, dtype=bool)

    for i in range(limit):
        zr2 = zr * zr
        zi2 = zi * zi
        escaped = active & (zr2 + zi2 > HORIZON)
        counts[escaped] = i
        active &= ~escaped
        if not active.any():
            break
        next_zi = 2.0 * zr * zi + ci
        zr = np.where(active, zr2 - zi2 + cr, zr)
        zi = np.where(active, next_zi, zi)

    return counts


def _escape_counts(cr: np.ndarray, ci: np.ndarray, limit: int, kernel: str) -> np.ndarray:
    if kernel == "tensorflow":
        from .tensor_kernel import escape_counts

        return escape_counts(cr, ci, limit)
    return _escape_counts_numpy(cr, ci, limit)


def _byte_view(buffer) -> memoryview:
    view = memoryview(buffer)
    if view.ndim != 1 or view.format != "B":
        view = view.cast("B")
    return view


def render_band(
    buffer,
    bounds: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
    *,
    bytes_per_pixel: int = 1,
    limit: int = DEFAULT_ITERATION_LIMIT,
    kernel: str = "numpy",
    image_bounds: Optional[tuple[int, int]] = None,
    row_offset: int = 0,
) -> None:
    """Fill ``buffer`` with the grayscale escape-time image of a band.

    ``buffer`` must hold exactly ``width * height * bytes_per_pixel`` bytes for
    ``bounds``. With four bytes per pixel every pixel is written as
    ``[0, shade, shade, shade]``.

    By default the corners span the band itself. When the band is part of a
    larger image, pass that image's ``image_bounds`` and corners together with
    the band's first row as ``row_offset``; every pixel is then sampled exactly
    where the whole image samples it.
    """

    check_pixel_format(bytes_per_pixel, limit)
    view = _byte_view(buffer)
    width, height = bounds
    expected = width * height * bytes_per_pixel
    if view.nbytes != expected:
        raise BufferSizeError(
            f"buffer holds {view.nbytes} bytes but {width}x{height} pixels at "
            f"{bytes_per_pixel} bytes per pixel need {expected}."
        )
    if image_bounds is None:
        image_bounds = bounds
    if image_bounds[0] != width or not 0 <= row_offset <= image_bounds[1] - height:
        raise ValueError(
            f"a {width}x{height} band at row {row_offset} does not fit a "
            f"{image_bounds[0]}x{image_bounds[1]} image."
        )
    if kernel == "python":
        _render_band_python(view, image_bounds, upper_left, lower_right, row_offset, height,
                            bytes_per_pixel, limit)
        return
    if kernel not in KERNELS:
        raise ValueError(f"Unknown kernel '{kernel}'. Valid choices: {', '.join(KERNELS)}.")

    cr, ci = _sample_grid(image_bounds, upper_left, lower_right, row_offset, height)
    counts = _escape_counts(cr, ci, limit, kernel)
    shades = np.where(counts < limit, MAX_INTENSITY - counts, 0).astype(np.uint8)

    pixels = np.frombuffer(view, dtype=np.uint8).reshape(height, width, bytes_per_pixel)
    if bytes_per_pixel == 1:
        pixels[..., 0] = shades
    else:
        pixels[..., 0] = 0
        pixels[..., 1:] = shades[..., np.newaxis]


def _render_band_python(
    view: memoryview,
    image_bounds: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
    top: int,
    rows: int,
    bytes_per_pixel: int,
    limit: int,
) -> None:
    width = image_bounds[0]
    for row in range(rows):
        for column in range(width):
            point = pixel_to_point(image_bounds, (column, top + row), upper_left, lower_right)
            shade = intensity(escape_time(point, limit))
            start = (row * width + column) * bytes_per_pixel
            if bytes_per_pixel == 1:
                view[start] = shade
            else:
                view[start:start + bytes_per_pixel] = bytes((0,) + (shade,) * (bytes_per_pixel - 1))
