"""Split a render pass into horizontal bands and render them on a thread pool."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from .renderer import (
    DEFAULT_ITERATION_LIMIT,
    DEFAULT_WORKER_COUNT,
    RenderParameters,
    check_pixel_format,
    pixel_to_point,
    render_band,
)
from .verbosity import log


@dataclass(frozen=True)
class Band:
    """A contiguous range of image rows together with the plane region it covers.

    At deep zoom a band can be thinner than the spacing of doubles, so its
    corners may coincide and are not checked the way a ``Viewport`` is.
    """

    index: int
    top: int
    rows: int
    upper_left: complex
    lower_right: complex

    @property
    def bottom(self) -> int:
        return self.top + self.rows


def partition_rows(height: int, worker_count: int) -> list[tuple[int, int]]:
    """Return ``(top, rows)`` pairs covering ``range(height)`` without overlap.

    Every band holds ``ceil(height / worker_count)`` rows except the last one,
    which receives whatever remains.
    """

    if worker_count < 1:
        raise ValueError(f"worker_count must be at least 1, got {worker_count}.")
    if height <= 0:
        return []
    rows_per_band = -(-height // worker_count)
    return [(top, min(rows_per_band, height - top)) for top in range(0, height, rows_per_band)]


def plan_bands(
    bounds: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
    worker_count: int,
) -> list[Band]:
    """Derive each band's corners by mapping its edge pixels against the full image."""

    width, height = bounds
    if width <= 0 or height <= 0:
        raise ValueError(f"image bounds must be positive, got {width}x{height}.")
    bands = []
    for index, (top, rows) in enumerate(partition_rows(height, worker_count)):
        band_upper_left = pixel_to_point(bounds, (0, top), upper_left, lower_right)
        band_lower_right = pixel_to_point(bounds, (width, top + rows), upper_left, lower_right)
        bands.append(Band(index, top, rows, band_upper_left, band_lower_right))
    return bands


def render_pass(
    buffer,
    bounds: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
    worker_count: int = DEFAULT_WORKER_COUNT,
    *,
    bytes_per_pixel: int = 1,
    limit: int = DEFAULT_ITERATION_LIMIT,
    kernel: str = "numpy",
) -> None:
    """Render the whole image into ``buffer``, one thread-pool task per band.

    Each band samples its pixels against the full image, so the result does
    not depend on ``worker_count``. Returns once every band has finished. If
    any band fails, the first failure is raised after the remaining bands have
    been joined and the contents of ``buffer`` are undefined.
    """

    check_pixel_format(bytes_per_pixel, limit)
    log(
        "Rendering between {},{} and {},{}".format(
            upper_left.real, upper_left.imag, lower_right.real, lower_right.imag
        )
    )
    started = time.perf_counter()

    width = bounds[0]
    bands = plan_bands(bounds, upper_left, lower_right, worker_count)
    view = memoryview(buffer)
    if view.ndim != 1 or view.format != "B":
        view = view.cast("B")
    stride = width * bytes_per_pixel

    with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="band") as executor:
        futures = []
        for band in bands:
            log("Band {}: rows {}..{} between {} and {}".format(
                band.index, band.top, band.bottom, band.upper_left, band.lower_right))
            start = band.top * stride
            # The last band owns the tail of the buffer, so a mis-sized buffer fails there.
            stop = band.bottom * stride if band.index < len(bands) - 1 else len(view)
            futures.append(
                executor.submit(
                    render_band,
                    view[start:stop],
                    (width, band.rows),
                    upper_left,
                    lower_right,
                    bytes_per_pixel=bytes_per_pixel,
                    limit=limit,
                    kernel=kernel,
                    image_bounds=bounds,
                    row_offset=band.top,
                )
            )
    for future in futures:
        future.result()

    log("Rendered {} bands in {:.3f}s".format(len(bands), time.perf_counter() - started))


def render_frame(params: RenderParameters) -> bytearray:
    """Allocate a buffer for ``params`` and fill it with one render pass."""

    buffer = bytearray(params.buffer_size)
    render_pass(
        buffer,
        params.bounds,
        params.upper_left,
        params.lower_right,
        params.worker_count,
        bytes_per_pixel=params.bytes_per_pixel,
        limit=params.iteration_limit,
        kernel=params.kernel,
    )
    return buffer
