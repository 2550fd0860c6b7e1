"""Encoders that hand rendered buffers to files, windows and animations."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import imageio
import numpy as np
import PIL.Image


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def resolve_image_format(output_path: Path, image_format: Optional[str] = None) -> str:
    """Pick the file format from ``image_format`` or the path suffix, PNG otherwise."""

    ext = (image_format or output_path.suffix or "png").lower().lstrip(".")
    return ext or "png"


def write_grayscale_image(
    output_path: Path,
    pixels,
    bounds: tuple[int, int],
    image_format: Optional[str] = None,
) -> Path:
    """Write a one-byte-per-pixel intensity buffer as a grayscale image."""

    width, height = bounds
    data = bytes(pixels)
    if len(data) != width * height:
        raise ValueError(f"expected {width * height} grayscale bytes for {width}x{height}, got {len(data)}.")

    output_path = Path(output_path).expanduser()
    pil_format = _pil_format_name(resolve_image_format(output_path, image_format))
    image = PIL.Image.frombytes("L", (width, height), data)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)
    return output_path


def frame_to_rgb(frame, bounds: tuple[int, int]) -> np.ndarray:
    """View a ``[unused, i, i, i]`` display frame as an ``(height, width, 3)`` array."""

    width, height = bounds
    pixels = np.frombuffer(frame, dtype=np.uint8).reshape(height, width, 4)
    return pixels[..., 1:]


class GifRecorder:
    """Append presented frames to an animated GIF."""

    def __init__(self, gif_path: Path, duration: float = 0.1) -> None:
        self.gif_path = Path(gif_path).expanduser()
        self.gif_path.parent.mkdir(parents=True, exist_ok=True)
        self.frames_written = 0
        self._writer = imageio.get_writer(str(self.gif_path), mode='I', duration=duration, loop=0)

    def append(self, rgb: np.ndarray) -> None:
        if self._writer is None:
            raise RuntimeError(f"{self.gif_path} is already closed.")
        self._writer.append_data(np.ascontiguousarray(rgb))
        self.frames_written += 1

    def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None

    def __enter__(self) -> "GifRecorder":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
