"""Viewport state and the pan/zoom commands that update it."""

from __future__ import annotations

import enum
from dataclasses import replace
from typing import Callable, Optional

from .renderer import Viewport
from .verbosity import log

DEFAULT_VIEWPORT = Viewport(upper_left=complex(-1.0, 1.0), lower_right=complex(1.0, -1.0))
PAN_FRACTION = 0.05
ZOOM_FRACTION = 0.10


class Command(enum.Enum):
    PAN_UP = "pan-up"
    PAN_DOWN = "pan-down"
    PAN_LEFT = "pan-left"
    PAN_RIGHT = "pan-right"
    ZOOM_IN = "zoom-in"
    ZOOM_OUT = "zoom-out"
    RESET = "reset"


KEY_BINDINGS = {
    "w": Command.PAN_UP,
    "s": Command.PAN_DOWN,
    "a": Command.PAN_LEFT,
    "d": Command.PAN_RIGHT,
    "z": Command.ZOOM_IN,
    "x": Command.ZOOM_OUT,
    " ": Command.RESET,
}


def _move(viewport: Viewport, upper_left: complex, lower_right: complex) -> Viewport:
    # Below double precision the corners meet; stay on the last distinct viewport.
    if not (upper_left.real < lower_right.real and upper_left.imag > lower_right.imag):
        log("Viewport {} .. {} is at the limit of double precision".format(
            viewport.upper_left, viewport.lower_right))
        return viewport
    return replace(viewport, upper_left=upper_left, lower_right=lower_right)


def pan(viewport: Viewport, dx: float, dy: float) -> Viewport:
    """Shift ``viewport`` by fractions of its own width and height.

    Positive ``dx`` moves right and positive ``dy`` moves up the imaginary axis.
    """

    shift = complex(dx * viewport.width, dy * viewport.height)
    return _move(viewport, viewport.upper_left + shift, viewport.lower_right + shift)


def zoom(viewport: Viewport, factor: float) -> Viewport:
    """Scale ``viewport`` about its midpoint; ``factor < 1`` zooms in.

    Once the span can no longer shrink in double precision the viewport is
    returned unchanged.
    """

    if factor <= 0:
        raise ValueError(f"zoom factor must be positive, got {factor}.")
    center = viewport.center
    half_width = viewport.width * factor / 2.0
    half_height = viewport.height * factor / 2.0
    return _move(
        viewport,
        complex(center.real - half_width, center.imag + half_height),
        complex(center.real + half_width, center.imag - half_height),
    )


def apply_command(
    viewport: Viewport,
    command: Command,
    *,
    pan_fraction: float = PAN_FRACTION,
    zoom_fraction: float = ZOOM_FRACTION,
) -> Viewport:
    if command is Command.PAN_UP:
        return pan(viewport, 0.0, pan_fraction)
    if command is Command.PAN_DOWN:
        return pan(viewport, 0.0, -pan_fraction)
    if command is Command.PAN_LEFT:
        return pan(viewport, -pan_fraction, 0.0)
    if command is Command.PAN_RIGHT:
        return pan(viewport, pan_fraction, 0.0)
    # Zooming out divides by the factor zooming in multiplies by, so the pair cancels.
    if command is Command.ZOOM_IN:
        return zoom(viewport, 1.0 - zoom_fraction)
    if command is Command.ZOOM_OUT:
        return zoom(viewport, 1.0 / (1.0 - zoom_fraction))
    if command is Command.RESET:
        return DEFAULT_VIEWPORT
    raise ValueError(f"Unknown command {command!r}.")


class ViewportController:
    """Own the current viewport and request one render for every change."""

    def __init__(
        self,
        viewport: Viewport = DEFAULT_VIEWPORT,
        on_change: Optional[Callable[[Viewport], None]] = None,
        *,
        pan_fraction: float = PAN_FRACTION,
        zoom_fraction: float = ZOOM_FRACTION,
    ) -> None:
        if not 0.0 < zoom_fraction < 1.0:
            raise ValueError(f"zoom_fraction must be between 0 and 1, got {zoom_fraction}.")
        self._viewport = viewport
        self.on_change = on_change
        self.pan_fraction = pan_fraction
        self.zoom_fraction = zoom_fraction

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    def apply(self, command: Command) -> Viewport:
        self._viewport = apply_command(
            self._viewport,
            command,
            pan_fraction=self.pan_fraction,
            zoom_fraction=self.zoom_fraction,
        )
        log("{}: {} .. {}".format(command.value, self._viewport.upper_left, self._viewport.lower_right))
        if self.on_change is not None:
            self.on_change(self._viewport)
        return self._viewport

    def handle_key(self, key: Optional[str]) -> Optional[Viewport]:
        """Apply the command bound to ``key``; unbound keys are ignored."""

        command = KEY_BINDINGS.get(key) if key else None
        if command is None:
            return None
        return self.apply(command)
