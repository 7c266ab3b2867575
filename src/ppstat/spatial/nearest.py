"""
nearest.py - Nearest-neighbour distance distribution G and empty-space function F

Both are empirical distribution functions of distances: G of the distance
from each point to its nearest neighbour, F of the distance from fixed
query locations in the window to the nearest point of the pattern.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Union

import numpy as np

from ..data.config import EstimatorConfig, UndefinedEstimatorValue
from ..data.core import SeedLike
from .corrections import Correction, border_denominator, resolve
from .distances import nearest_neighbor_distances, nearest_point_distance
from .ripley import EstimatorCurve, check_radii, radius_grid

if TYPE_CHECKING:
    from ..data.core import PointPattern, Window


def _distance_cdf(
    dist: np.ndarray,
    b: np.ndarray,
    r: np.ndarray,
    correction: Correction,
    window: Window,
    config: EstimatorConfig,
    what: str,
) -> np.ndarray:
    """
    Edge-corrected empirical CDF of distances.

    Parameters
    ----------
    dist : np.ndarray (m,)
        Distance from each location to its nearest point.
    b : np.ndarray (m,)
        Distance from each location to the window boundary.
    r : np.ndarray
        Radius grid.
    correction : Correction
        NONE, BORDER (reduced sample) or HANISCH.
    """
    if correction is Correction.NONE:
        return np.searchsorted(np.sort(dist), r, side="right") / len(dist)

    if correction is Correction.BORDER:
        # Locations closer than r to the boundary are left out at that r
        n_interior = border_denominator(b, r, what)
        hits = np.array([np.sum((dist <= radius) & (b >= radius)) for radius in r])
        return hits / n_interior

    if correction is Correction.HANISCH:
        # Uncensored distances, each weighted by 1 / |W eroded by d|
        eligible = dist <= b
        if not eligible.any():
            raise UndefinedEstimatorValue(
                f"Hanisch correction for {what}: no nearest distance is smaller than " f"its boundary distance"
            )
        d_ok = dist[eligible]
        eroded = np.atleast_1d(window.eroded_area(d_ok))
        if np.min(eroded) <= config.min_edge_weight * window.area:
            raise UndefinedEstimatorValue(f"Hanisch correction for {what}: eroded window area is zero")

        order = np.argsort(d_ok, kind="stable")
        weights = 1.0 / eroded[order]
        cweights = np.concatenate([[0.0], np.cumsum(weights)])
        indices = np.searchsorted(d_ok[order], r, side="right")
        return cweights[indices] / cweights[-1]

    raise ValueError(f"Correction '{correction.value}' is not a distance-distribution correction")


def query_locations(
    window: Window,
    sampling: str = "grid",
    seed: SeedLike = None,
    config: Optional[EstimatorConfig] = None,
) -> np.ndarray:
    """
    Query locations for the empty-space function.

    Parameters
    ----------
    window : Window
    sampling : str
        'grid' for the centres of a ``f_grid_size`` x ``f_grid_size``
        lattice of cells, 'random' for ``f_n_samples`` uniform locations.
    seed : int, SeedSequence or Generator, optional
        Used for random sampling only.

    Returns
    -------
    np.ndarray (m, 2)
    """
    config = config or EstimatorConfig()
    if sampling == "grid":
        k = config.f_grid_size
        xs = window.xmin + (np.arange(k) + 0.5) * window.width / k
        ys = window.ymin + (np.arange(k) + 0.5) * window.height / k
        gx, gy = np.meshgrid(xs, ys)
        return np.column_stack([gx.ravel(), gy.ravel()])
    if sampling == "random":
        rng = np.random.default_rng(seed)
        m = config.f_n_samples
        return np.column_stack(
            [rng.uniform(window.xmin, window.xmax, m), rng.uniform(window.ymin, window.ymax, m)]
        )
    raise ValueError(f"Unknown sampling: {sampling}. Use 'grid' or 'random'")


def csr_cdf(pattern: PointPattern, r: np.ndarray) -> np.ndarray:
    return 1.0 - np.exp(-pattern.intensity() * np.pi * r**2)


def compute_gfun(
    pattern: PointPattern,
    r: np.ndarray,
    correction: Correction,
    config: Optional[EstimatorConfig] = None,
) -> np.ndarray:
    """Compute G(r) values. ``correction`` must already be resolved."""
    config = config or EstimatorConfig()
    nnd = nearest_neighbor_distances(pattern)
    b = pattern.window.boundary_distance(pattern.coords)
    return _distance_cdf(nnd, b, r, correction, pattern.window, config, "G")


def compute_ffun(
    pattern: PointPattern,
    r: np.ndarray,
    correction: Correction,
    locations: np.ndarray,
    config: Optional[EstimatorConfig] = None,
) -> np.ndarray:
    """Compute F(r) values from given query locations."""
    config = config or EstimatorConfig()
    if pattern.n_points == 0:
        raise UndefinedEstimatorValue("Empty-space function is undefined for an empty pattern")
    locations = np.asarray(locations, dtype=float).reshape(-1, 2)
    if len(locations) == 0:
        raise UndefinedEstimatorValue("Empty-space function needs at least one query location")

    dist = nearest_point_distance(locations, pattern)
    b = pattern.window.boundary_distance(locations)
    return _distance_cdf(dist, b, r, correction, pattern.window, config, "F")


def gfunction(
    pattern: PointPattern,
    r=None,
    correction: Union[str, Correction] = "best",
    config: Optional[EstimatorConfig] = None,
) -> EstimatorCurve:
    """
    Compute the nearest-neighbour distance distribution G(r).

    G(r) is the fraction of points whose nearest neighbour lies within r.
    A G curve that rises faster than the CSR expectation
    1 - exp(-lambda*pi*r^2) indicates clustering.

    Parameters
    ----------
    pattern : PointPattern
        Observed point pattern (at least two points).
    r : array-like, optional
        Radius grid. If None, uses ``radius_grid(pattern.window)``.
    correction : str or Correction
        'none', 'rs' (reduced sample / border), 'han' (Hanisch) or 'best'.
    config : EstimatorConfig, optional

    Returns
    -------
    EstimatorCurve
    """
    config = config or EstimatorConfig()
    method = resolve(correction, "G")
    r_values = radius_grid(pattern.window, config=config) if r is None else check_radii(r)

    G_values = compute_gfun(pattern, r_values, method, config)

    print(f"  ✓ G function: n={pattern.n_points}, G(max_r)={G_values[-1]:.3f}, " f"correction={method.value}")

    return EstimatorCurve(
        r=r_values,
        values=G_values,
        theoretical=csr_cdf(pattern, r_values),
        estimator="G",
        correction=method.value,
        label=pattern.label,
    )


def ffunction(
    pattern: PointPattern,
    r=None,
    correction: Union[str, Correction] = "best",
    sampling: str = "grid",
    locations=None,
    seed: SeedLike = None,
    config: Optional[EstimatorConfig] = None,
) -> EstimatorCurve:
    """
    Compute the empty-space function F(r).

    F(r) is the probability that an arbitrary location in the window has a
    point within distance r. A curve below the CSR expectation indicates
    large empty gaps, as in clustered patterns.

    Parameters
    ----------
    pattern : PointPattern
        Observed point pattern.
    r : array-like, optional
        Radius grid.
    correction : str or Correction
        'none', 'rs', 'han' (alias 'cs') or 'best'.
    sampling : str
        'grid' or 'random', see ``query_locations``. Ignored if
        ``locations`` is given.
    locations : array-like (m, 2), optional
        Explicit query locations.
    seed : int, SeedSequence or Generator, optional
        Seed for random sampling.
    config : EstimatorConfig, optional

    Returns
    -------
    EstimatorCurve
    """
    config = config or EstimatorConfig()
    method = resolve(correction, "F")
    r_values = radius_grid(pattern.window, config=config) if r is None else check_radii(r)
    given = locations is not None
    if not given:
        locations = query_locations(pattern.window, sampling=sampling, seed=seed, config=config)

    F_values = compute_ffun(pattern, r_values, method, locations, config)

    print(f"  ✓ F function: {len(locations)} query locations, " f"F(max_r)={F_values[-1]:.3f}, correction={method.value}")

    return EstimatorCurve(
        r=r_values,
        values=F_values,
        theoretical=csr_cdf(pattern, r_values),
        estimator="F",
        correction=method.value,
        label=pattern.label,
        params={"sampling": "given" if given else sampling, "n_locations": len(locations)},
    )
