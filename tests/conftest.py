"""
conftest.py - Shared test fixtures for ppstat

pytest reads this file before running any test. Fixtures defined here are
available to every test module by name:

    def test_something(csr_pattern):   <- pytest injects the fixture
        assert len(csr_pattern) == 50

All random data comes from seeded numpy generators, so every run sees the
same patterns.
"""

import numpy as np
import pytest

from ppstat import PointPattern, Window

# ===========================================================================
# Constants — sizes of the fake plots
# ===========================================================================

PLOT_SIDE = 10.0  # 10 x 10 plot, area 100
N_CSR = 50  # points in the small CSR plot
N_DENSE = 2000  # points in the dense unit-square pattern
N_CLUSTER = 30  # points in the tight cluster


# ===========================================================================
# Fixture 1: the study window
# ===========================================================================


@pytest.fixture
def window():
    """Square 10 x 10 plot with the origin in the lower-left corner."""
    return Window(0.0, PLOT_SIDE, 0.0, PLOT_SIDE)


# ===========================================================================
# Fixture 2: uniformly scattered plants
# ===========================================================================


@pytest.fixture
def csr_pattern(window):
    """
    50 uniform points in the 10 x 10 plot (intensity 0.5).

    Use this for anything that needs a small, realistic, unclustered plot.
    """
    rng = np.random.default_rng(42)
    coords = rng.uniform(0, PLOT_SIDE, size=(N_CSR, 2))
    return PointPattern.create(coords, window, label="csr")


@pytest.fixture
def dense_csr_pattern():
    """
    2000 uniform points in the unit square.

    Large enough that K(r) is close to pi*r^2 at small r, small enough that
    the dense O(n^2) distance path stays fast.
    """
    rng = np.random.default_rng(7)
    coords = rng.uniform(0, 1, size=(N_DENSE, 2))
    return PointPattern.create(coords, Window(0, 1, 0, 1), label="dense")


# ===========================================================================
# Fixture 3: a perfectly clustered plot
# ===========================================================================


@pytest.fixture
def clustered_pattern(window):
    """
    30 points packed into a 0.5 x 0.5 square in the middle of the plot.

    Nearest-neighbour distances are tiny, so G(r) jumps to 1 almost at once.
    """
    rng = np.random.default_rng(3)
    coords = rng.uniform(4.75, 5.25, size=(N_CLUSTER, 2))
    return PointPattern.create(coords, window, label="clustered")


# ===========================================================================
# Fixture 4: marked plants (e.g. plant height)
# ===========================================================================


@pytest.fixture
def marked_pattern(window):
    """100 uniform points with independent gamma-distributed marks."""
    rng = np.random.default_rng(11)
    coords = rng.uniform(0, PLOT_SIDE, size=(100, 2))
    marks = rng.gamma(shape=2.0, scale=1.5, size=100)
    return PointPattern.create(coords, window, marks=marks, label="heights")
