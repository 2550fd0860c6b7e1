"""Parsers for the ``<left><sep><right>`` strings accepted on the command line."""

from __future__ import annotations

from typing import Callable, TypeVar

T = TypeVar("T")


def parse_pair(text: str, separator: str, convert: Callable[[str], T] = int) -> tuple[T, T]:
    """Split ``text`` at the first ``separator`` and convert both halves.

    >>> parse_pair("400x600", "x")
    (400, 600)
    >>> parse_pair("0.5,-1.25", ",", float)
    (0.5, -1.25)
    """

    if len(separator) != 1:
        raise ValueError(f"separator must be a single character, got {separator!r}.")
    text = text.strip()
    index = text.find(separator)
    if index < 0:
        raise ValueError(f"'{text}' is missing the '{separator}' separator.")
    left, right = text[:index], text[index + 1:]
    try:
        return convert(left), convert(right)
    except ValueError as exc:
        raise ValueError(f"'{text}' is not a pair of numbers separated by '{separator}'.") from exc


def parse_dimensions(text: str, separator: str = "x") -> tuple[int, int]:
    width, height = parse_pair(text, separator, int)
    if width <= 0 or height <= 0:
        raise ValueError(f"image dimensions must be positive, got '{text}'.")
    return width, height


def parse_complex(text: str) -> complex:
    """Parse ``"<real>,<imag>"`` into a complex number."""

    re, im = parse_pair(text, ",", float)
    return complex(re, im)
