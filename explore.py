import sys
from argparse import ArgumentParser
from pathlib import Path

import matplotlib.pyplot as plt

from mandelbrot_explorer import (
    DEFAULT_VIEWPORT,
    KEY_BINDINGS,
    RenderParameters,
    Viewport,
    ViewportController,
    parse_dimensions,
    render_pass,
)
from mandelbrot_explorer import verbosity
from mandelbrot_explorer.output import GifRecorder, frame_to_rgb
from mandelbrot_explorer.renderer import DEFAULT_ITERATION_LIMIT, DEFAULT_WORKER_COUNT, KERNELS
from mandelbrot_explorer.verbosity import log

QUIT_KEYS = {"escape"}

HELP_TEXT = "w/a/s/d pan   z/x zoom   space reset   esc quit"


def build_parser():
    parser = ArgumentParser(description='Explore the Mandelbrot set with the keyboard.',
                            epilog=HELP_TEXT)

    parser.add_argument('--size', type=str,
                        dest='size', help='window size in pixels as <width>x<height>',
                        metavar='SIZE', default='1000x1000')

    parser.add_argument('--workers', type=int,
                        dest='workers', help='number of horizontal bands rendered in parallel',
                        metavar='WORKERS', default=DEFAULT_WORKER_COUNT)

    parser.add_argument('--limit', type=int,
                        dest='limit', help='iteration limit of the escape-time test (at most 256)',
                        metavar='LIMIT', default=DEFAULT_ITERATION_LIMIT)

    parser.add_argument('--kernel', choices=KERNELS, default='numpy',
                        help='escape-time implementation used for each band.')

    parser.add_argument('--record', type=str,
                        dest='record', help='append every presented frame to this animated GIF',
                        metavar='GIF', default=None)

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging of the render passes.')

    return parser


def release_navigation_keys():
    """Stop matplotlib's toolbar shortcuts from reacting to the explorer keys."""

    bound = set(KEY_BINDINGS)
    for name in [name for name in plt.rcParams if name.startswith("keymap.")]:
        plt.rcParams[name] = [key for key in plt.rcParams[name] if key not in bound]


class ExplorerWindow:
    """Show a 4-byte-per-pixel frame in a matplotlib figure and redraw it on key presses."""

    def __init__(self, params: RenderParameters, recorder=None, figure=None):
        if params.bytes_per_pixel != 4:
            raise ValueError("the explorer renders 4 bytes per pixel.")
        self.params = params
        self.recorder = recorder
        self.frame = bytearray(params.buffer_size)
        self.running = True
        self.controller = ViewportController(params.viewport, on_change=self.redraw)

        self.figure = figure if figure is not None else plt.figure(
            figsize=(params.width / 100.0, params.height / 100.0), dpi=100)
        self.axes = self.figure.add_axes([0.0, 0.0, 1.0, 1.0])
        self.axes.set_axis_off()
        self.image = self.axes.imshow(frame_to_rgb(self.frame, params.bounds), interpolation='nearest')
        self.figure.canvas.mpl_connect('key_press_event', self.on_key)
        self.figure.canvas.mpl_connect('close_event', self.on_close)

    @property
    def viewport(self) -> Viewport:
        return self.controller.viewport

    def render(self, viewport: Viewport) -> None:
        render_pass(
            self.frame,
            self.params.bounds,
            viewport.upper_left,
            viewport.lower_right,
            self.params.worker_count,
            bytes_per_pixel=4,
            limit=self.params.iteration_limit,
            kernel=self.params.kernel,
        )

    def present(self) -> None:
        rgb = frame_to_rgb(self.frame, self.params.bounds)
        self.image.set_data(rgb)
        self.figure.canvas.draw_idle()
        if self.recorder is not None:
            self.recorder.append(rgb)

    def redraw(self, viewport: Viewport) -> bool:
        """Render ``viewport`` and show it; a failed presentation closes the window."""

        if not self.running:
            return False
        self.render(viewport)
        try:
            self.present()
        except (OSError, RuntimeError, ValueError) as exc:
            verbosity.error(f"Failed to present frame: {exc}")
            self.quit()
            return False
        return True

    def on_key(self, event) -> None:
        if event.key in QUIT_KEYS:
            self.quit()
            return
        self.controller.handle_key(event.key)

    def on_close(self, event) -> None:
        self.running = False

    def quit(self) -> None:
        self.running = False
        plt.close(self.figure)


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    verbosity.set_verbose(opt.verbose)

    try:
        width, height = parse_dimensions(opt.size)
        params = RenderParameters(
            width=width,
            height=height,
            upper_left=DEFAULT_VIEWPORT.upper_left,
            lower_right=DEFAULT_VIEWPORT.lower_right,
            iteration_limit=opt.limit,
            worker_count=opt.workers,
            bytes_per_pixel=4,
            kernel=opt.kernel,
        )
    except ValueError as exc:
        parser.error(str(exc))

    release_navigation_keys()

    try:
        recorder = GifRecorder(Path(opt.record)) if opt.record else None
    except OSError as exc:
        verbosity.error(f"Failed to open {opt.record}: {exc}")
        return 1

    try:
        window = ExplorerWindow(params, recorder=recorder)
        log(HELP_TEXT)
        if window.redraw(window.viewport):
            plt.show()
    finally:
        if recorder is not None:
            recorder.close()
            log("Recorded {} frames to {}".format(recorder.frames_written, recorder.gif_path))
    return 0


if __name__ == '__main__':
    sys.exit(main())
