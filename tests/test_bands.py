import numpy as np
import pytest

from mandelbrot_explorer import (
    BufferSizeError,
    Command,
    RenderParameters,
    ViewportController,
    Viewport,
    escape_time,
    intensity,
    partition_rows,
    pixel_to_point,
    plan_bands,
    render_band,
    render_frame,
    render_pass,
)
from mandelbrot_explorer import verbosity

UPPER_LEFT = complex(-2.0, 1.5)
LOWER_RIGHT = complex(1.0, -1.5)

# Decimal corners whose band edges are not exactly representable.
DECIMAL_VIEWS = [
    ((1000, 750), complex(-1.2, 0.35), complex(-1.0, 0.2)),
    ((160, 120), complex(-2.0, 1.2), complex(1.0, -1.2)),
    ((101, 67), complex(-0.1, 0.9), complex(0.05, 0.75)),
    ((37, 23), complex(-0.7454, 0.113), complex(-0.7452, 0.1128)),
]
@pytest.mark.parametrize("height", [1, 2, 7, 10, 64, 1000])
@pytest.mark.parametrize("worker_count", [1, 3, 8, 16, 2000])
def test_partition_covers_every_row_once(height, worker_count):
    bands = partition_rows(height, worker_count)
    covered = [row for top, rows in bands for row in range(top, top + rows)]
    assert covered == list(range(height))
    assert len(bands) <= worker_count

    rows_per_band = -(-height // worker_count)
    assert all(rows == rows_per_band for _, rows in bands[:-1])
    assert 0 < bands[-1][1] <= rows_per_band


def test_last_band_takes_the_remainder():
    assert partition_rows(10, 4) == [(0, 3), (3, 3), (6, 3), (9, 1)]
    assert partition_rows(16, 16) == [(row, 1) for row in range(16)]


def test_partition_requires_a_worker():
    with pytest.raises(ValueError):
        partition_rows(10, 0)


def test_band_corners_follow_the_full_image():
    bands = plan_bands((40, 64), UPPER_LEFT, LOWER_RIGHT, 5)
    assert bands[0].upper_left == UPPER_LEFT
    assert bands[-1].lower_right == LOWER_RIGHT
    for upper, lower in zip(bands, bands[1:]):
        assert upper.bottom == lower.top
        assert upper.lower_right.imag == lower.upper_left.imag
        assert upper.upper_left.real == lower.upper_left.real
    assert [band.index for band in bands] == list(range(len(bands)))


def test_band_corners_may_coincide_at_deep_zoom():
    upper_left = complex(-0.5, 1.0)
    lower_right = complex(-0.5 + 1e-15, 1.0 - 1e-15)
    bands = plan_bands((100, 1000), upper_left, lower_right, 16)
    assert len(bands) == 16
    assert any(band.upper_left.imag == band.lower_right.imag for band in bands)


def test_plan_bands_rejects_empty_images():
    with pytest.raises(ValueError):
        plan_bands((0, 10), UPPER_LEFT, LOWER_RIGHT, 4)


@pytest.mark.parametrize("bytes_per_pixel", [1, 4])
@pytest.mark.parametrize("worker_count", [2, 3, 5, 8, 16, 64, 100])
def test_parallel_render_matches_single_band(bytes_per_pixel, worker_count):
    bounds = (40, 64)
    serial = bytearray(40 * 64 * bytes_per_pixel)
    parallel = bytearray(40 * 64 * bytes_per_pixel)
    render_pass(serial, bounds, UPPER_LEFT, LOWER_RIGHT, 1, bytes_per_pixel=bytes_per_pixel, limit=96)
    render_pass(parallel, bounds, UPPER_LEFT, LOWER_RIGHT, worker_count,
                bytes_per_pixel=bytes_per_pixel, limit=96)
    assert parallel == serial


@pytest.mark.parametrize("bounds, upper_left, lower_right", DECIMAL_VIEWS)
@pytest.mark.parametrize("worker_count", [3, 7, 16])
def test_parallel_render_matches_single_band_on_decimal_views(bounds, upper_left, lower_right,
                                                              worker_count):
    width, height = bounds
    serial = bytearray(width * height)
    parallel = bytearray(width * height)
    render_pass(serial, bounds, upper_left, lower_right, 1, limit=96)
    render_pass(parallel, bounds, upper_left, lower_right, worker_count, limit=96)
    assert parallel == serial


def test_banded_pixels_match_escape_time_on_decimal_view():
    bounds = (61, 47)
    upper_left, lower_right = complex(-1.2, 0.35), complex(-1.0, 0.2)
    pixels = bytearray(61 * 47)
    render_pass(pixels, bounds, upper_left, lower_right, 16, limit=80, kernel="python")
    for row in range(47):
        for column in range(61):
            point = pixel_to_point(bounds, (column, row), upper_left, lower_right)
            assert pixels[row * 61 + column] == intensity(escape_time(point, 80))


def test_single_worker_pass_is_one_band():
    bounds = (33, 21)
    whole = bytearray(33 * 21)
    banded = bytearray(33 * 21)
    render_band(whole, bounds, UPPER_LEFT, LOWER_RIGHT)
    render_pass(banded, bounds, UPPER_LEFT, LOWER_RIGHT, 1)
    assert banded == whole


def test_render_pass_survives_bands_thinner_than_a_double():
    bounds = (100, 1000)
    upper_left = complex(-0.5, 1.0)
    lower_right = complex(-0.5 + 1e-15, 1.0 - 1e-15)
    parallel = bytearray(100 * 1000)
    serial = bytearray(100 * 1000)
    render_pass(parallel, bounds, upper_left, lower_right, 16, limit=32)
    render_pass(serial, bounds, upper_left, lower_right, 1, limit=32)
    assert parallel == serial


def test_render_after_repeated_zoom_in():
    controller = ViewportController(Viewport(complex(-0.8, 0.3), complex(-0.6, 0.1)))
    for _ in range(400):
        controller.apply(Command.ZOOM_IN)
    viewport = controller.viewport
    assert viewport.upper_left.real < viewport.lower_right.real
    assert viewport.upper_left.imag > viewport.lower_right.imag

    frame = bytearray(32 * 24 * 4)
    render_pass(frame, (32, 24), viewport.upper_left, viewport.lower_right, 16,
                bytes_per_pixel=4, limit=32)
    assert not any(frame[0::4])


@pytest.mark.parametrize("limit", [0, 257, 1000])
def test_render_pass_rejects_limits_beyond_a_byte(limit):
    buffer = bytearray(64 * 64)
    with pytest.raises(ValueError):
        render_pass(buffer, (64, 64), complex(-0.7454, 0.113), complex(-0.7452, 0.1128), 4,
                    limit=limit)
    assert not any(buffer)


@pytest.mark.parametrize("bytes_per_pixel", [2, 3])
def test_render_pass_rejects_unsupported_pixel_layouts(bytes_per_pixel):
    buffer = bytearray(8 * 8 * bytes_per_pixel)
    with pytest.raises(ValueError):
        render_pass(buffer, (8, 8), UPPER_LEFT, LOWER_RIGHT, 2, bytes_per_pixel=bytes_per_pixel)
    assert not any(buffer)


@pytest.mark.parametrize("size", [40 * 64 - 1, 40 * 64 + 1, 40 * 64 * 4, 0])
def test_render_pass_fails_on_mis_sized_buffer(size):
    with pytest.raises(BufferSizeError):
        render_pass(bytearray(size), (40, 64), UPPER_LEFT, LOWER_RIGHT, 8)


def test_render_pass_requires_a_worker():
    with pytest.raises(ValueError):
        render_pass(bytearray(16), (4, 4), UPPER_LEFT, LOWER_RIGHT, 0)


def test_render_pass_fills_numpy_frames():
    frame = np.zeros((64, 40, 4), dtype=np.uint8)
    render_pass(frame, (40, 64), UPPER_LEFT, LOWER_RIGHT, 6, bytes_per_pixel=4)
    expected = bytearray(40 * 64 * 4)
    render_pass(expected, (40, 64), UPPER_LEFT, LOWER_RIGHT, 1, bytes_per_pixel=4)
    assert frame.tobytes() == bytes(expected)


def test_render_frame_allocates_the_buffer():
    params = RenderParameters(width=40, height=64, upper_left=UPPER_LEFT, lower_right=LOWER_RIGHT,
                              worker_count=4, iteration_limit=96)
    pixels = render_frame(params)
    assert isinstance(pixels, bytearray)
    assert len(pixels) == 40 * 64

    expected = bytearray(40 * 64)
    render_pass(expected, (40, 64), UPPER_LEFT, LOWER_RIGHT, 1, limit=96)
    assert pixels == expected


def test_render_pass_logs_when_verbose(monkeypatch, capsys):
    monkeypatch.setattr(verbosity, "VERBOSE", True)
    render_pass(bytearray(16), (4, 4), complex(-1.0, 1.0), complex(1.0, -1.0), 2)
    out = capsys.readouterr().out
    assert "Rendering between -1.0,1.0 and 1.0,-1.0" in out
    assert "Rendered 2 bands" in out


def test_render_pass_is_silent_by_default(capsys):
    render_pass(bytearray(16), (4, 4), complex(-1.0, 1.0), complex(1.0, -1.0), 2)
    assert capsys.readouterr().out == ""
