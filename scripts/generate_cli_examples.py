from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
SIZE = ["160x120", "x"]
HOME = ["-2.0,1.2", "1.0,-1.2"]


@dataclass
class Example:
    name: str
    output: Path
    args: list[str]
    options: list[str] | None = None

    def full_args(self) -> list[str]:
        return [sys.executable, "render.py", str(self.output), *self.args, *(self.options or [])]


def _example(name: str, filename: str, args: list[str], options: list[str] | None = None) -> Example:
    return Example(name=name, output=EXAMPLES_ROOT / name / filename, args=args, options=options)


EXAMPLES: list[Example] = [
    _example("default", "mandel.png", [*SIZE, *HOME]),
    _example("separator", "comma-size.png", ["160,120", ",", *HOME]),
    _example("seahorse-valley", "seahorse.png", [*SIZE, "-0.80,0.20", "-0.70,0.10"]),
    _example("elephant-valley", "elephant.png", [*SIZE, "0.25,0.10", "0.35,0.00"]),
    _example("single-worker", "serial.png", [*SIZE, *HOME], ["--workers", "1"]),
    _example("many-workers", "bands.png", [*SIZE, *HOME], ["--workers", "64"]),
    _example("low-limit", "limit-32.png", [*SIZE, *HOME], ["--limit", "32"]),
    _example("python-kernel", "python.png", ["64x48", "x", *HOME], ["--kernel", "python"]),
    _example("format", "mandel.bmp", [*SIZE, *HOME], ["--format", "bmp"]),
    _example("verbose", "diagnostic.png", [*SIZE, *HOME], ["--verbose"]),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _prepare(example: Example) -> None:
    _ensure_clean([example.output.parent])
    example.output.parent.mkdir(parents=True, exist_ok=True)


def _verify(example: Example) -> None:
    if not example.output.is_file():
        raise RuntimeError(f"Expected file {example.output} was not created")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _prepare(example)
        completed = subprocess.run(example.full_args(), check=False)
        if completed.returncode != 0:
            raise RuntimeError(f"Example {example.name} failed with {completed.returncode}")
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
