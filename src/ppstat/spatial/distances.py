"""
distances.py - Distance and pairwise geometry engine

Pairwise distances, nearest-neighbour distances and close-pair queries on
PointPattern objects. All estimators are built on these functions. Small
patterns use dense distance matrices; large ones switch to a k-d tree,
which returns the same pairs in the same order.
"""
from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np
from scipy.spatial import KDTree, cKDTree
from scipy.spatial.distance import pdist, squareform

from ..data.config import EstimatorConfig, UndefinedEstimatorValue

if TYPE_CHECKING:
    from ..data.core import PointPattern


@dataclass
class ClosePairs:
    """
    Ordered point pairs (i, j), i != j, closer than a maximum distance.

    Both (i, j) and (j, i) are listed. Rows are sorted by i, then j.

    Attributes
    ----------
    i, j : np.ndarray (m,)
        Point indices.
    d : np.ndarray (m,)
        Distance between the points.
    dx, dy : np.ndarray (m,)
        Displacement from point i to point j.
    rmax : float
        Largest distance included.
    periodic : bool
        Whether toroidal (wrap-around) distances were used.
    """

    i: np.ndarray
    j: np.ndarray
    d: np.ndarray
    dx: np.ndarray
    dy: np.ndarray
    rmax: float
    periodic: bool = False

    def __len__(self) -> int:
        return len(self.d)


def pairwise_distances(pattern: PointPattern) -> np.ndarray:
    """
    Full pairwise Euclidean distance matrix.

    Parameters
    ----------
    pattern : PointPattern

    Returns
    -------
    np.ndarray (n, n)
        Symmetric matrix with zero diagonal.
    """
    if pattern.n_points < 2:
        return np.zeros((pattern.n_points, pattern.n_points))
    return squareform(pdist(pattern.coords))


def nearest_neighbor_distances(pattern: PointPattern) -> np.ndarray:
    """
    Distance from each point to its nearest other point.

    Parameters
    ----------
    pattern : PointPattern

    Returns
    -------
    np.ndarray (n,)

    Raises
    ------
    UndefinedEstimatorValue
        If the pattern has fewer than two points.
    """
    if pattern.n_points < 2:
        raise UndefinedEstimatorValue(
            f"Nearest-neighbour distances need at least 2 points, got {pattern.n_points}"
        )
    tree = KDTree(pattern.coords)
    # k=2 because query includes self
    dists, _ = tree.query(pattern.coords, k=2)
    return dists[:, 1]


def nearest_point_distance(locations, pattern: PointPattern):
    """
    Distance from arbitrary locations to the nearest point of a pattern.

    Parameters
    ----------
    locations : array-like (2,) or (m, 2)
        Query locations, not necessarily points of the pattern.
    pattern : PointPattern

    Returns
    -------
    float or np.ndarray (m,)
        A float for a single location, an array otherwise.
    """
    if pattern.n_points == 0:
        raise UndefinedEstimatorValue("Nearest-point distance is undefined for an empty pattern")
    locations = np.asarray(locations, dtype=float)
    single = locations.ndim == 1
    locations = np.atleast_2d(locations)
    if locations.shape[1] != 2:
        raise ValueError(f"Query locations must have shape (2,) or (m, 2), got {locations.shape}")

    dists, _ = KDTree(pattern.coords).query(locations, k=1)
    return float(dists[0]) if single else dists


def _wrap(delta: np.ndarray, period: float) -> np.ndarray:
    """Shortest signed displacement on a circle of the given period."""
    return delta - period * np.round(delta / period)


def close_pairs(
    pattern: PointPattern,
    rmax: float,
    periodic: bool = False,
    config: Optional[EstimatorConfig] = None,
) -> ClosePairs:
    """
    Find all ordered pairs of distinct points with 0 < d_ij <= rmax.

    Parameters
    ----------
    pattern : PointPattern
    rmax : float
        Largest pair distance to report.
    periodic : bool
        If True, measure distances on the torus obtained by wrapping the
        window at its edges.
    config : EstimatorConfig, optional
        ``tree_threshold`` selects the k-d tree path for large patterns.

    Returns
    -------
    ClosePairs
    """
    config = config or EstimatorConfig()
    if rmax < 0:
        raise ValueError(f"rmax must be non-negative, got {rmax}")

    coords = pattern.coords
    n = len(coords)
    width, height = pattern.window.width, pattern.window.height
    if periodic and rmax > 0.5 * min(width, height):
        raise ValueError(
            f"Periodic distances are ambiguous beyond half the shorter window side "
            f"({0.5 * min(width, height):g}), got rmax={rmax:g}"
        )

    if n < 2:
        i = j = np.array([], dtype=np.intp)
    elif n <= config.tree_threshold:
        i, j = _dense_candidates(coords, rmax, periodic, width, height)
    else:
        i, j = _tree_candidates(pattern, rmax, periodic)

    dx = coords[j, 0] - coords[i, 0]
    dy = coords[j, 1] - coords[i, 1]
    if periodic:
        dx = _wrap(dx, width)
        dy = _wrap(dy, height)
    d = np.hypot(dx, dy)

    n_duplicates = int(np.sum(d == 0)) // 2
    if n_duplicates:
        warnings.warn(
            f"{n_duplicates} pair(s) of coincident points ignored in pair statistics",
            stacklevel=2,
        )

    keep = (d > 0) & (d <= rmax)
    i, j, d, dx, dy = i[keep], j[keep], d[keep], dx[keep], dy[keep]

    order = np.lexsort((j, i))
    return ClosePairs(
        i=i[order],
        j=j[order],
        d=d[order],
        dx=dx[order],
        dy=dy[order],
        rmax=float(rmax),
        periodic=periodic,
    )


def _dense_candidates(coords, rmax, periodic, width, height):
    """All off-diagonal index pairs within rmax, from a dense displacement array."""
    diff = coords[np.newaxis, :, :] - coords[:, np.newaxis, :]
    if periodic:
        diff[..., 0] = _wrap(diff[..., 0], width)
        diff[..., 1] = _wrap(diff[..., 1], height)
    dist = np.hypot(diff[..., 0], diff[..., 1])
    np.fill_diagonal(dist, np.inf)
    i, j = np.nonzero(dist <= rmax)
    return i, j


def _tree_candidates(pattern, rmax, periodic):
    """Index pairs within rmax from a k-d tree (both orders)."""
    window = pattern.window
    # Slightly generous radius; the exact cut is applied by the caller
    radius = rmax * (1 + 1e-9)
    if periodic:
        box = np.array([window.width, window.height])
        shifted = np.mod(pattern.coords - [window.xmin, window.ymin], box)
        shifted[shifted >= box] = 0.0
        tree = cKDTree(shifted, boxsize=box)
    else:
        tree = cKDTree(pattern.coords)

    pairs = tree.query_pairs(radius, output_type="ndarray")
    i = np.concatenate([pairs[:, 0], pairs[:, 1]]).astype(np.intp)
    j = np.concatenate([pairs[:, 1], pairs[:, 0]]).astype(np.intp)
    return i, j
