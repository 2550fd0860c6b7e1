import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pytest

from mandelbrot_explorer import verbosity


@pytest.fixture(autouse=True)
def quiet(monkeypatch):
    monkeypatch.setattr(verbosity, "VERBOSE", False)
    yield
    plt.close("all")
