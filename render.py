import re
import sys
import time
from argparse import ArgumentParser
from pathlib import Path

from mandelbrot_explorer import (
    RenderParameters,
    parse_complex,
    parse_dimensions,
    render_frame,
)
from mandelbrot_explorer import verbosity
from mandelbrot_explorer.output import write_grayscale_image
from mandelbrot_explorer.renderer import DEFAULT_ITERATION_LIMIT, DEFAULT_WORKER_COUNT, KERNELS
from mandelbrot_explorer.verbosity import log

_NEGATIVE_POINT = re.compile(r"^-\.?\d")


def build_parser():
    parser = ArgumentParser(
        description='Render a grayscale image of the Mandelbrot set.',
        epilog='Example: %(prog)s mandel.png 1000x750 x -1.20,0.35 -1,0.20',
    )

    parser.add_argument('file', metavar='FILE',
                        help='image file to write; the suffix selects the format unless --format is given')

    parser.add_argument('pixels', metavar='PIXELS',
                        help='image size as <width><SEPARATOR><height>, e.g. 1000x750')

    parser.add_argument('separator', metavar='SEPARATOR',
                        help='single character separating width and height in PIXELS')

    parser.add_argument('upper_left', metavar='UPPERLEFT',
                        help='upper-left corner of the plane as <real>,<imag>')

    parser.add_argument('lower_right', metavar='LOWERRIGHT',
                        help='lower-right corner of the plane as <real>,<imag>')

    parser.add_argument('--workers', type=int,
                        dest='workers', help='number of horizontal bands rendered in parallel',
                        metavar='WORKERS', default=DEFAULT_WORKER_COUNT)

    parser.add_argument('--limit', type=int,
                        dest='limit', help='iteration limit of the escape-time test (at most 256)',
                        metavar='LIMIT', default=DEFAULT_ITERATION_LIMIT)

    parser.add_argument('--kernel', choices=KERNELS, default='numpy',
                        help='escape-time implementation used for each band.')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format to write. Can be any extension supported by Pillow. Default: taken from FILE, else "png".',
                        metavar='FORMAT', default=None)

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging of the render passes.')

    return parser


def protect_negative_points(argv):
    # argparse reads "-1.2,0.35" as an option flag; a leading space keeps it positional.
    return [" " + arg if _NEGATIVE_POINT.match(arg) else arg for arg in argv]


def unprotect(arg):
    """Undo ``protect_negative_points`` for arguments that are not parsed as points."""

    if arg.startswith(" ") and _NEGATIVE_POINT.match(arg[1:]):
        return arg[1:]
    return arg


def resolve_parameters(opt, parser: ArgumentParser) -> RenderParameters:
    try:
        width, height = parse_dimensions(opt.pixels, opt.separator)
    except ValueError as exc:
        parser.error(f"invalid PIXELS: {exc}")
    try:
        upper_left = parse_complex(opt.upper_left)
    except ValueError as exc:
        parser.error(f"invalid UPPERLEFT: {exc}")
    try:
        lower_right = parse_complex(opt.lower_right)
    except ValueError as exc:
        parser.error(f"invalid LOWERRIGHT: {exc}")

    try:
        params = RenderParameters(
            width=width,
            height=height,
            upper_left=upper_left,
            lower_right=lower_right,
            iteration_limit=opt.limit,
            worker_count=opt.workers,
            kernel=opt.kernel,
        )
    except ValueError as exc:
        parser.error(str(exc))
    return params


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(protect_negative_points(sys.argv[1:] if argv is None else argv))

    verbosity.set_verbose(opt.verbose)

    params = resolve_parameters(opt, parser)
    log("Rendering {}x{} pixels with {} workers ({} kernel, limit {})".format(
        params.width, params.height, params.worker_count, params.kernel, params.iteration_limit))

    started = time.perf_counter()
    pixels = render_frame(params)

    output_path = Path(unprotect(opt.file))
    try:
        written = write_grayscale_image(output_path, pixels, params.bounds, opt.format)
    except OSError as exc:
        verbosity.error(f"Failed to write {output_path}: {exc}")
        return 1
    except KeyError as exc:
        # Pillow has no save handler for the requested format.
        verbosity.error(f"Failed to write {output_path}: unsupported format {exc}")
        return 1

    log("Wrote {} in {:.3f}s".format(written, time.perf_counter() - started))
    return 0


if __name__ == '__main__':
    sys.exit(main())
