"""Verbose-only console logging shared by the scripts and the renderer."""

from __future__ import annotations

import sys

VERBOSE_FLAGS = {"--verbose", "-v"}

VERBOSE = any(arg in VERBOSE_FLAGS for arg in sys.argv[1:])


def set_verbose(flag: bool) -> None:
    global VERBOSE
    VERBOSE = bool(flag)


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


def error(message: str) -> None:
    print(message, file=sys.stderr)
