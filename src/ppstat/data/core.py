"""
core.py - Point pattern store

Window and PointPattern are the data structures every estimator works on.
A PointPattern is validated once at construction and is immutable after
that; CSR simulation always produces a fresh instance.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from .config import PatternConfig, InvalidGeometry, DegenerateWindow

SeedLike = Union[None, int, np.random.SeedSequence, np.random.Generator]


@dataclass(frozen=True)
class Window:
    """
    Axis-aligned rectangular observation window.

    Attributes
    ----------
    xmin, xmax, ymin, ymax : float
        Window bounds. Both extents must be strictly positive.
    """

    xmin: float
    xmax: float
    ymin: float
    ymax: float

    def __post_init__(self):
        bounds = (self.xmin, self.xmax, self.ymin, self.ymax)
        if not np.all(np.isfinite(bounds)):
            raise InvalidGeometry(f"Window bounds must be finite, got {bounds}")
        if self.xmax <= self.xmin or self.ymax <= self.ymin:
            raise DegenerateWindow(
                f"Window has zero or negative extent: "
                f"x=[{self.xmin}, {self.xmax}], y=[{self.ymin}, {self.ymax}]"
            )

    @classmethod
    def from_bounds(cls, bounds: Union["Window", Mapping, Sequence[float]]) -> "Window":
        """
        Build a window from a Window, a mapping or a 4-sequence.

        Mappings may use either ``xmin/xmax/ymin/ymax`` or the plot-boundary
        spelling ``Xmin/Xmax/Ymin/Ymax``. Sequences are read as
        ``(xmin, xmax, ymin, ymax)``.
        """
        if isinstance(bounds, Window):
            return bounds
        if isinstance(bounds, Mapping):
            lowered = {str(k).lower(): v for k, v in bounds.items()}
            try:
                values = [lowered[k] for k in ("xmin", "xmax", "ymin", "ymax")]
            except KeyError as err:
                raise ValueError(f"Window bounds mapping is missing {err}") from None
        else:
            values = list(bounds)
            if len(values) != 4:
                raise ValueError(f"Expected 4 window bounds, got {len(values)}")
        return cls(*(float(v) for v in values))

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def shorter_side(self) -> float:
        return min(self.width, self.height)

    def contains(self, coords: np.ndarray, tolerance: float = 0.0) -> np.ndarray:
        """Boolean mask of locations inside the window (with slack)."""
        coords = np.atleast_2d(coords)
        return (
            (coords[:, 0] >= self.xmin - tolerance)
            & (coords[:, 0] <= self.xmax + tolerance)
            & (coords[:, 1] >= self.ymin - tolerance)
            & (coords[:, 1] <= self.ymax + tolerance)
        )

    def boundary_distance(self, coords: np.ndarray) -> np.ndarray:
        """
        Distance from each location to the nearest window edge.

        Locations within the boundary tolerance but outside the window get 0.

        Parameters
        ----------
        coords : np.ndarray (m, 2)

        Returns
        -------
        np.ndarray (m,)
        """
        coords = np.atleast_2d(coords)
        dist = np.minimum.reduce(
            [
                coords[:, 0] - self.xmin,
                self.xmax - coords[:, 0],
                coords[:, 1] - self.ymin,
                self.ymax - coords[:, 1],
            ]
        )
        return np.maximum(dist, 0.0)

    def eroded_area(self, r: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """Area of the window eroded by a disc of radius r."""
        r = np.asarray(r, dtype=float)
        area = np.clip(self.width - 2 * r, 0, None) * np.clip(self.height - 2 * r, 0, None)
        return area if area.ndim else float(area)

    def __repr__(self) -> str:
        return f"Window(x=[{self.xmin:g}, {self.xmax:g}], " f"y=[{self.ymin:g}, {self.ymax:g}])"


@dataclass(frozen=True, eq=False)
class PointPattern:
    """
    Immutable 2D point pattern observed in a rectangular window.

    Attributes
    ----------
    coords : np.ndarray (n, 2)
        Point coordinates (read-only).
    window : Window
        Observation window.
    marks : np.ndarray (n,) or None
        Optional numeric mark per point (read-only).
    label : str
        Description used in reports.
    tolerance : float
        Slack allowed for points on the window boundary.
    """

    coords: np.ndarray
    window: Window
    marks: Optional[np.ndarray] = None
    label: str = ""
    tolerance: float = field(default=PatternConfig.boundary_tolerance, repr=False, compare=False)

    def __post_init__(self):
        coords = np.array(self.coords, dtype=float, copy=True)
        if coords.size == 0:
            coords = coords.reshape(0, 2)
        if coords.ndim != 2 or coords.shape[1] != 2:
            raise ValueError(f"Point coordinates must have shape (n, 2), got {coords.shape}")
        if not np.all(np.isfinite(coords)):
            raise InvalidGeometry("Point coordinates contain NaN or infinite values")

        window = Window.from_bounds(self.window)
        inside = window.contains(coords, tolerance=self.tolerance)
        if not inside.all():
            outside = np.flatnonzero(~inside)
            first = coords[outside[0]]
            raise InvalidGeometry(
                f"{len(outside)} point(s) lie outside {window} "
                f"(tolerance={self.tolerance:g}); first at index {outside[0]}: "
                f"({first[0]:g}, {first[1]:g})"
            )
        coords.setflags(write=False)
        object.__setattr__(self, "coords", coords)
        object.__setattr__(self, "window", window)

        if self.marks is not None:
            marks = np.array(self.marks, dtype=float, copy=True).ravel()
            if len(marks) != len(coords):
                raise ValueError(f"Got {len(marks)} marks for {len(coords)} points")
            if not np.all(np.isfinite(marks)):
                raise ValueError("Marks contain NaN or infinite values")
            marks.setflags(write=False)
            object.__setattr__(self, "marks", marks)

    @classmethod
    def create(
        cls,
        points,
        window,
        marks=None,
        label: str = "",
        tolerance: Optional[float] = None,
    ) -> "PointPattern":
        """
        Create a validated point pattern.

        Parameters
        ----------
        points : array-like (n, 2)
            Point coordinates.
        window : Window, mapping or sequence
            Window bounds, see ``Window.from_bounds``.
        marks : array-like (n,), optional
            Numeric mark per point.
        label : str
            Description used in reports.
        tolerance : float, optional
            Slack for boundary points. Defaults to
            ``PatternConfig.boundary_tolerance``.

        Raises
        ------
        InvalidGeometry
            If a point lies outside the window beyond the tolerance.
        DegenerateWindow
            If the window has zero or negative extent.
        """
        if tolerance is None:
            tolerance = PatternConfig.boundary_tolerance
        if tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {tolerance}")
        return cls(
            coords=points,
            window=Window.from_bounds(window),
            marks=marks,
            label=label,
            tolerance=tolerance,
        )

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        window,
        config: Optional[PatternConfig] = None,
        with_marks: bool = False,
        label: str = "",
    ) -> "PointPattern":
        """
        Create from a DataFrame of point coordinates.

        Parameters
        ----------
        df : pd.DataFrame
            Table with coordinate columns (``East``/``North`` by default).
        window : Window, mapping or sequence
            Window bounds.
        config : PatternConfig, optional
            Column names and boundary tolerance.
        with_marks : bool
            If True, read marks from ``config.mark_col``.
        label : str
            Description used in reports.

        Returns
        -------
        PointPattern
        """
        config = config or PatternConfig()
        x_col, y_col = config.get_coordinate_columns()
        missing = [c for c in (x_col, y_col) if c not in df.columns]
        if with_marks and config.mark_col not in df.columns:
            missing.append(config.mark_col)
        if missing:
            raise ValueError(f"Columns not found in DataFrame: {missing}")

        marks = df[config.mark_col].to_numpy(dtype=float) if with_marks else None
        return cls.create(
            df[[x_col, y_col]].to_numpy(dtype=float),
            window,
            marks=marks,
            label=label,
            tolerance=config.boundary_tolerance,
        )

    def __len__(self) -> int:
        return len(self.coords)

    @property
    def n_points(self) -> int:
        return len(self.coords)

    @property
    def x(self) -> np.ndarray:
        return self.coords[:, 0]

    @property
    def y(self) -> np.ndarray:
        return self.coords[:, 1]

    @property
    def is_marked(self) -> bool:
        return self.marks is not None

    def intensity(self) -> float:
        """
        Points per unit area, n / |W|.

        Raises
        ------
        DegenerateWindow
            If the window area is not positive.
        """
        area = self.window.area
        if not area > 0:
            raise DegenerateWindow(f"Window area must be positive, got {area}")
        return self.n_points / area

    def with_marks(self, marks) -> "PointPattern":
        """Return a copy of this pattern carrying the given marks."""
        return PointPattern(
            coords=self.coords,
            window=self.window,
            marks=marks,
            label=self.label,
            tolerance=self.tolerance,
        )

    def unmark(self) -> "PointPattern":
        """Return a copy of this pattern without marks."""
        return PointPattern(
            coords=self.coords,
            window=self.window,
            label=self.label,
            tolerance=self.tolerance,
        )

    def to_dataframe(self, config: Optional[PatternConfig] = None) -> pd.DataFrame:
        """Convert to a DataFrame using the configured column names."""
        config = config or PatternConfig()
        x_col, y_col = config.get_coordinate_columns()
        df = pd.DataFrame({x_col: self.x, y_col: self.y})
        if self.marks is not None:
            df[config.mark_col] = self.marks
        return df

    def summary(self) -> dict:
        return {
            "label": self.label,
            "n_points": self.n_points,
            "window": self.window,
            "area": self.window.area,
            "intensity": self.intensity(),
            "marked": self.is_marked,
        }

    def __repr__(self) -> str:
        s = self.summary()
        marked = ", marked" if s["marked"] else ""
        return f"PointPattern({s['n_points']} points in {s['window']}, " f"intensity={s['intensity']:.4g}{marked})"


def simulate_csr(
    window,
    count: int,
    seed: SeedLike = None,
    label: str = "csr",
) -> PointPattern:
    """
    Simulate complete spatial randomness (binomial process) in a window.

    Parameters
    ----------
    window : Window, mapping or sequence
        Window to scatter points in.
    count : int
        Number of independent uniform points.
    seed : int, SeedSequence or Generator, optional
        Random seed or generator.
    label : str
        Label of the new pattern.

    Returns
    -------
    PointPattern
        Fresh immutable pattern with ``count`` points.
    """
    window = Window.from_bounds(window)
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    rng = np.random.default_rng(seed)

    rand_x = rng.uniform(window.xmin, window.xmax, count)
    rand_y = rng.uniform(window.ymin, window.ymax, count)
    return PointPattern(coords=np.column_stack([rand_x, rand_y]), window=window, label=label)
