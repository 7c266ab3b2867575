"""
ripley.py - Ripley's second-order statistics (K, L, pair correlation g)

Classic point process statistics for analysing clustering and dispersion
as a function of distance. Every estimator returns an EstimatorCurve on a
radius grid and takes an explicit edge correction.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Union

import numpy as np
import pandas as pd

from ..data.config import EstimatorConfig, UndefinedEstimatorValue
from .corrections import Correction, border_denominator, pair_weights, resolve
from .distances import close_pairs, nearest_neighbor_distances

if TYPE_CHECKING:
    from ..data.core import PointPattern, Window


@dataclass(frozen=True, eq=False)
class EstimatorCurve:
    """
    Container for a summary function evaluated on a radius grid.

    Attributes
    ----------
    r : np.ndarray
        Distance values where the statistic was evaluated.
    values : np.ndarray
        Estimated function values.
    theoretical : np.ndarray
        Expected values under complete spatial randomness.
    estimator : str
        'K', 'L', 'g', 'G', 'F' or 'kmm'.
    correction : str
        Edge correction actually used (after resolving 'best').
    label : str
        Description (e.g. pattern label).
    params : dict
        Estimator parameters such as the kernel bandwidth.
    """

    r: np.ndarray
    values: np.ndarray
    theoretical: np.ndarray
    estimator: str
    correction: str
    label: str = ""
    params: dict = field(default_factory=dict)

    def __post_init__(self):
        for name in ("r", "values", "theoretical"):
            arr = np.array(getattr(self, name), dtype=float, copy=True)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)
        if not (len(self.r) == len(self.values) == len(self.theoretical)):
            raise ValueError("r, values and theoretical must have the same length")

    def __len__(self) -> int:
        return len(self.r)

    @property
    def deviation(self) -> np.ndarray:
        """Difference from CSR expectation."""
        return self.values - self.theoretical

    def to_dataframe(self) -> pd.DataFrame:
        """Ordered (r, value) table for an external plotting collaborator."""
        return pd.DataFrame({"r": self.r, "value": self.values, "theo": self.theoretical})

    def summary(self) -> dict:
        dev = self.deviation
        return {
            "function": self.estimator,
            "label": self.label,
            "correction": self.correction,
            "max_r": self.r.max() if len(self.r) else 0.0,
            "n_distances": len(self.r),
            "max_deviation": dev.max() if len(dev) else 0.0,
            "min_deviation": dev.min() if len(dev) else 0.0,
        }

    def __repr__(self) -> str:
        s = self.summary()
        return (
            f"EstimatorCurve({s['function']}, correction={s['correction']}, "
            f"label={s['label']}, max_r={s['max_r']:.3g}, "
            f"max_dev={s['max_deviation']:.3g})"
        )


def radius_grid(
    window: Window,
    rmax: Optional[float] = None,
    n_steps: Optional[int] = None,
    include_zero: bool = True,
    config: Optional[EstimatorConfig] = None,
) -> np.ndarray:
    """
    Evenly spaced radius grid from 0 to rmax.

    Parameters
    ----------
    window : Window
    rmax : float, optional
        Maximum radius. If None, uses ``config.rmax_fraction`` (25%) of the
        shorter window side (standard rule of thumb to avoid severe edge
        effects).
    n_steps : int, optional
        Number of intervals. Defaults to ``config.n_steps``.
    include_zero : bool
        If False, drop r = 0 (needed by the pair correlation function).

    Returns
    -------
    np.ndarray
    """
    config = config or EstimatorConfig()
    if rmax is None:
        rmax = window.shorter_side * config.rmax_fraction
    if n_steps is None:
        n_steps = config.n_steps
    if rmax <= 0:
        raise ValueError(f"rmax must be positive, got {rmax}")
    if n_steps < 1:
        raise ValueError(f"n_steps must be >= 1, got {n_steps}")

    r_values = np.linspace(0, rmax, n_steps + 1)
    return r_values if include_zero else r_values[1:]


def check_radii(r) -> np.ndarray:
    """Validate a user radius grid: finite, non-negative, non-decreasing."""
    r = np.atleast_1d(np.asarray(r, dtype=float))
    if r.ndim != 1 or len(r) == 0:
        raise ValueError("Radius grid must be a non-empty 1D sequence")
    if not np.all(np.isfinite(r)) or np.any(r < 0):
        raise ValueError("Radius grid must contain finite, non-negative values")
    if np.any(np.diff(r) < 0):
        raise ValueError("Radius grid must be non-decreasing")
    return r


def _require_points(pattern: PointPattern, n_min: int, what: str):
    if pattern.n_points < n_min:
        raise UndefinedEstimatorValue(f"{what} needs at least {n_min} points, got {pattern.n_points}")


def compute_k(
    pattern: PointPattern,
    r: np.ndarray,
    correction: Correction,
    config: Optional[EstimatorConfig] = None,
) -> np.ndarray:
    """
    Compute K(r) values directly from a pattern.

    Used by the public estimators and, without progress output, by the
    envelope simulations. ``correction`` must already be resolved.
    """
    config = config or EstimatorConfig()
    _require_points(pattern, 2, "Ripley's K")

    n = pattern.n_points
    area = pattern.window.area
    rmax = float(r.max())

    if correction is Correction.BORDER:
        pairs = close_pairs(pattern, rmax, config=config)
        b = pattern.window.boundary_distance(pattern.coords)
        n_interior = border_denominator(b, r, "K")
        b_i = b[pairs.i]

        counts = np.zeros(len(r))
        for ri, radius in enumerate(r):
            counts[ri] = np.sum((pairs.d <= radius) & (b_i >= radius))
        return area * counts / (n_interior * (n - 1))

    pairs = close_pairs(pattern, rmax, periodic=correction is Correction.PERIODIC, config=config)
    weights = pair_weights(pairs, pattern.coords, pattern.window, correction, config)

    # Cumulative weight of pairs sorted by distance
    order = np.argsort(pairs.d, kind="stable")
    d_sorted = pairs.d[order]
    cweights = np.concatenate([[0.0], np.cumsum(weights[order])])
    indices = np.searchsorted(d_sorted, r, side="right")

    return area * cweights[indices] / (n * (n - 1))


def compute_g(
    pattern: PointPattern,
    r: np.ndarray,
    correction: Correction,
    bandwidth: float,
    config: Optional[EstimatorConfig] = None,
) -> np.ndarray:
    """
    Compute g(r) values with an Epanechnikov kernel of half-width ``bandwidth``.

    ``correction`` must already be resolved and ``r`` must be strictly
    positive.
    """
    config = config or EstimatorConfig()
    _require_points(pattern, 2, "Pair correlation")
    if np.any(r <= 0):
        raise UndefinedEstimatorValue("Pair correlation g(r) is undefined at r = 0")

    n = pattern.n_points
    area = pattern.window.area
    pairs = close_pairs(
        pattern, float(r.max()) + bandwidth, periodic=correction is Correction.PERIODIC, config=config
    )
    weights = pair_weights(pairs, pattern.coords, pattern.window, correction, config)

    order = np.argsort(pairs.d, kind="stable")
    d_sorted = pairs.d[order]
    w_sorted = weights[order]

    density = np.zeros(len(r))
    for ri, radius in enumerate(r):
        lo = np.searchsorted(d_sorted, radius - bandwidth, side="left")
        hi = np.searchsorted(d_sorted, radius + bandwidth, side="right")
        u = (radius - d_sorted[lo:hi]) / bandwidth
        kernel = 0.75 / bandwidth * (1.0 - u * u)
        density[ri] = np.sum(w_sorted[lo:hi] * kernel)

    return area * density / (n * (n - 1) * 2 * np.pi * r)


def default_bandwidth(pattern: PointPattern, config: Optional[EstimatorConfig] = None) -> float:
    """Kernel bandwidth: stoyan coefficient times the mean nearest-neighbour distance."""
    config = config or EstimatorConfig()
    mean_nnd = float(np.mean(nearest_neighbor_distances(pattern)))
    bandwidth = config.stoyan * mean_nnd
    if not bandwidth > 0:
        raise UndefinedEstimatorValue(
            "Kernel bandwidth is zero (all nearest-neighbour distances are zero); " "pass an explicit bandwidth"
        )
    return bandwidth


def kfunction(
    pattern: PointPattern,
    r=None,
    correction: Union[str, Correction] = "iso",
    config: Optional[EstimatorConfig] = None,
) -> EstimatorCurve:
    """
    Compute Ripley's K function.

    K(r) counts the average number of further points within distance r of
    a typical point, normalized by intensity. Compares to CSR expectation
    (pi*r^2).

    Parameters
    ----------
    pattern : PointPattern
        Observed point pattern.
    r : array-like, optional
        Radius grid. If None, uses ``radius_grid(pattern.window)``.
    correction : str or Correction
        'none', 'iso' (Ripley isotropic), 'trans' (translation),
        'rs' (border), 'periodic' or 'best'.
    config : EstimatorConfig, optional
        Defaults for the radius grid and distance engine.

    Returns
    -------
    EstimatorCurve
        K function values and CSR expectation.
    """
    config = config or EstimatorConfig()
    method = resolve(correction, "K")
    r_values = radius_grid(pattern.window, config=config) if r is None else check_radii(r)

    k_values = compute_k(pattern, r_values, method, config)

    print(f"  ✓ Ripley's K: n={pattern.n_points}, max_r={r_values.max():.3g}, " f"correction={method.value}")

    return EstimatorCurve(
        r=r_values,
        values=k_values,
        theoretical=np.pi * r_values**2,
        estimator="K",
        correction=method.value,
        label=pattern.label,
    )


def lfunction(
    pattern: PointPattern,
    r=None,
    correction: Union[str, Correction] = "iso",
    config: Optional[EstimatorConfig] = None,
) -> EstimatorCurve:
    """
    Compute Ripley's L function (variance-stabilized K).

    L(r) = sqrt(K(r)/pi). Under CSR, L(r) = r; the deviation L(r) - r is
    positive for clustering and negative for dispersion.

    Parameters
    ----------
    pattern : PointPattern
        Observed point pattern.
    r : array-like, optional
        Radius grid.
    correction : str or Correction
        Same choices as ``kfunction``.
    config : EstimatorConfig, optional

    Returns
    -------
    EstimatorCurve
        L function values (CSR expectation = r).
    """
    config = config or EstimatorConfig()
    method = resolve(correction, "L")
    r_values = radius_grid(pattern.window, config=config) if r is None else check_radii(r)

    L_values = np.sqrt(compute_k(pattern, r_values, method, config) / np.pi)

    print(f"  ✓ Ripley's L: max |L - r| = {np.max(np.abs(L_values - r_values)):.4g}")

    return EstimatorCurve(
        r=r_values,
        values=L_values,
        theoretical=r_values.copy(),
        estimator="L",
        correction=method.value,
        label=pattern.label,
    )


def pair_correlation(
    pattern: PointPattern,
    r=None,
    correction: Union[str, Correction] = "iso",
    bandwidth: Optional[float] = None,
    config: Optional[EstimatorConfig] = None,
) -> EstimatorCurve:
    """
    Compute the pair correlation function g(r).

    g is the derivative of K divided by 2*pi*r, estimated by kernel
    smoothing of the pair distances. g = 1 under CSR, g > 1 at distances
    where pairs are more common than under CSR.

    Parameters
    ----------
    pattern : PointPattern
        Observed point pattern.
    r : array-like, optional
        Strictly positive radius grid. If None, the default grid without
        r = 0 is used.
    correction : str or Correction
        'none', 'iso', 'trans', 'periodic' or 'best'.
    bandwidth : float, optional
        Half-width of the Epanechnikov kernel. If None,
        ``config.stoyan`` times the mean nearest-neighbour distance.
        Smaller values give finer resolution, larger values smoother curves.
    config : EstimatorConfig, optional

    Returns
    -------
    EstimatorCurve
        g values (CSR expectation = 1).
    """
    config = config or EstimatorConfig()
    method = resolve(correction, "g")
    if r is None:
        r_values = radius_grid(pattern.window, include_zero=False, config=config)
    else:
        r_values = check_radii(r)
    if bandwidth is None:
        bandwidth = default_bandwidth(pattern, config)
    elif bandwidth <= 0:
        raise ValueError(f"bandwidth must be positive, got {bandwidth}")

    g_values = compute_g(pattern, r_values, method, bandwidth, config)

    print(f"  ✓ Pair correlation g: n={pattern.n_points}, bandwidth={bandwidth:.3g}, " f"correction={method.value}")

    return EstimatorCurve(
        r=r_values,
        values=g_values,
        theoretical=np.ones_like(r_values),
        estimator="g",
        correction=method.value,
        label=pattern.label,
        params={"bandwidth": bandwidth},
    )
