"""
config.py - Configuration and exceptions for ppstat

Contains:
- EstimatorConfig: Defaults shared by all summary-function estimators
- PatternConfig: Column names and validation settings for point patterns
- PointPatternError and its subclasses
"""

from dataclasses import dataclass


@dataclass
class EstimatorConfig:
    """Explicit defaults for estimator calls (radius grid, bandwidth, sampling)."""

    # Radius grid
    rmax_fraction: float = 0.25  # rmax = fraction of the shorter window side
    n_steps: int = 50

    # Pair correlation / mark correlation bandwidth
    stoyan: float = 0.15  # bandwidth = stoyan * mean nearest-neighbour distance

    # Empty-space function query locations
    f_grid_size: int = 128
    f_n_samples: int = 10_000

    # Distance engine
    tree_threshold: int = 10_000  # use a k-d tree above this many points

    # Smallest edge-correction fraction / overlap area accepted
    min_edge_weight: float = 1e-12

    def __post_init__(self):
        if self.rmax_fraction <= 0:
            raise ValueError(f"rmax_fraction must be positive, got {self.rmax_fraction}")
        if self.n_steps < 1:
            raise ValueError(f"n_steps must be >= 1, got {self.n_steps}")
        if self.stoyan <= 0:
            raise ValueError(f"stoyan must be positive, got {self.stoyan}")
        if self.f_grid_size < 1 or self.f_n_samples < 1:
            raise ValueError("f_grid_size and f_n_samples must be >= 1")


@dataclass
class PatternConfig:
    """Column names and validation settings for point patterns."""

    x_col: str = "East"
    y_col: str = "North"
    mark_col: str = "mark"

    # Slack allowed for points sitting on (or just past) the window boundary
    boundary_tolerance: float = 1e-9

    def get_coordinate_columns(self) -> tuple[str, str]:
        """
        Get x, y column names.

        Returns
        -------
        Tuple[str, str]
            (x_column, y_column)
        """
        return self.x_col, self.y_col


class PointPatternError(Exception):
    """Base exception for ppstat errors."""

    pass


class InvalidGeometry(PointPatternError, ValueError):
    """Raised when a point lies outside its window or the window is malformed."""

    pass


class DegenerateWindow(InvalidGeometry):
    """Raised when a window has zero or negative extent."""

    pass


class InsufficientSimulations(PointPatternError, ValueError):
    """Raised when the envelope rank exceeds the number of simulations."""

    pass


class UndefinedEstimatorValue(PointPatternError, ArithmeticError):
    """Raised instead of returning NaN or infinity from an estimator."""

    pass


class SimulationAborted(PointPatternError):
    """Raised when an envelope run is cancelled between batches."""

    pass
