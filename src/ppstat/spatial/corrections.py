"""
corrections.py - Edge corrections for point pattern summary functions

Points near the window boundary have fewer observable neighbours purely
because the window truncates the pattern. Each correction here is an
explicit function selected through the Correction enum.

Decision rule for Correction.BEST (windows are always rectangles):
- K, L, g, kmm  -> translation
- G, F          -> Hanisch
"""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

import numpy as np

from ..data.config import EstimatorConfig, UndefinedEstimatorValue

if TYPE_CHECKING:
    from ..data.core import Window
    from .distances import ClosePairs


class Correction(str, Enum):
    """Edge-correction methods."""

    NONE = "none"
    ISOTROPIC = "iso"
    TRANSLATION = "trans"
    BORDER = "rs"
    HANISCH = "han"
    PERIODIC = "periodic"
    BEST = "best"

    @classmethod
    def parse(cls, value: Union[str, "Correction", None]) -> "Correction":
        """Parse a correction name, accepting common aliases."""
        if isinstance(value, Correction):
            return value
        if value is None:
            return cls.NONE
        key = str(value).strip().lower()
        if key not in _ALIASES:
            known = sorted(_ALIASES)
            raise ValueError(f"Unknown edge correction: {value!r}. Known: {known}")
        return _ALIASES[key]


_ALIASES = {
    "none": Correction.NONE,
    "iso": Correction.ISOTROPIC,
    "isotropic": Correction.ISOTROPIC,
    "ripley": Correction.ISOTROPIC,
    "trans": Correction.TRANSLATION,
    "translate": Correction.TRANSLATION,
    "translation": Correction.TRANSLATION,
    "rs": Correction.BORDER,
    "border": Correction.BORDER,
    "reduced": Correction.BORDER,
    "han": Correction.HANISCH,
    "hanisch": Correction.HANISCH,
    "cs": Correction.HANISCH,
    "periodic": Correction.PERIODIC,
    "toroidal": Correction.PERIODIC,
    "best": Correction.BEST,
}

# Corrections each estimator accepts, and what BEST resolves to
SUPPORTED = {
    "K": (Correction.NONE, Correction.ISOTROPIC, Correction.TRANSLATION, Correction.BORDER, Correction.PERIODIC),
    "g": (Correction.NONE, Correction.ISOTROPIC, Correction.TRANSLATION, Correction.PERIODIC),
    "G": (Correction.NONE, Correction.BORDER, Correction.HANISCH),
    "F": (Correction.NONE, Correction.BORDER, Correction.HANISCH),
    "kmm": (Correction.NONE, Correction.ISOTROPIC, Correction.TRANSLATION, Correction.PERIODIC),
}
SUPPORTED["L"] = SUPPORTED["K"]

BEST = {
    "K": Correction.TRANSLATION,
    "L": Correction.TRANSLATION,
    "g": Correction.TRANSLATION,
    "kmm": Correction.TRANSLATION,
    "G": Correction.HANISCH,
    "F": Correction.HANISCH,
}


def resolve(correction: Union[str, Correction, None], estimator: str) -> Correction:
    """
    Resolve a correction name to the concrete method used by an estimator.

    Parameters
    ----------
    correction : str or Correction
        Requested correction; 'best' is replaced by the estimator's default.
    estimator : str
        One of 'K', 'L', 'g', 'G', 'F', 'kmm'.

    Returns
    -------
    Correction

    Raises
    ------
    ValueError
        If the estimator is unknown or does not support the correction.
    """
    if estimator not in SUPPORTED:
        raise ValueError(f"Unknown estimator: {estimator}")
    method = Correction.parse(correction)
    if method is Correction.BEST:
        return BEST[estimator]
    if method not in SUPPORTED[estimator]:
        allowed = [c.value for c in SUPPORTED[estimator]] + ["best"]
        raise ValueError(f"Correction '{method.value}' is not available for {estimator}. " f"Use one of {allowed}")
    return method


def isotropic_fraction(coords: np.ndarray, r: np.ndarray, window: Window) -> np.ndarray:
    """
    Fraction of the circumference of circles that lies inside a rectangle.

    Exact for rectangular windows, including circles that reach past a
    corner. The arc outside each edge is 2*arccos(dist_to_edge / r); arcs of
    adjacent edges overlap by a_1 + a_2 - pi/2 when the corner lies inside
    the circle, and arcs of opposite edges never overlap.

    Parameters
    ----------
    coords : np.ndarray (m, 2)
        Circle centres.
    r : np.ndarray (m,)
        Circle radii.
    window : Window

    Returns
    -------
    np.ndarray (m,)
        Values in [0, 1]. 1.0 = entire circle inside the window.
    """
    coords = np.atleast_2d(coords)
    r = np.asarray(r, dtype=float)
    safe_r = np.where(r > 0, r, 1.0)

    edge_dists = [
        coords[:, 0] - window.xmin,  # left
        coords[:, 1] - window.ymin,  # bottom
        window.xmax - coords[:, 0],  # right
        window.ymax - coords[:, 1],  # top
    ]
    # Half-angle of the arc outside each edge (0 when the edge is out of reach)
    half = [np.arccos(np.clip(np.maximum(e, 0.0) / safe_r, 0.0, 1.0)) for e in edge_dists]

    outside = sum(2 * a for a in half)
    for k in range(4):
        a, b = half[k], half[(k + 1) % 4]
        outside = outside - np.clip(a + b - np.pi / 2, 0.0, None)

    fraction = 1.0 - outside / (2 * np.pi)
    fraction = np.where(r > 0, fraction, 1.0)
    return np.clip(fraction, 0.0, 1.0)


def translation_overlap(dx: np.ndarray, dy: np.ndarray, window: Window) -> np.ndarray:
    """Area of the window intersected with its translate by (dx, dy)."""
    return np.clip(window.width - np.abs(dx), 0, None) * np.clip(window.height - np.abs(dy), 0, None)


def pair_weights(
    pairs: ClosePairs,
    coords: np.ndarray,
    window: Window,
    correction: Correction,
    config: Optional[EstimatorConfig] = None,
) -> np.ndarray:
    """
    Edge-correction weight e_ij for each close pair.

    Parameters
    ----------
    pairs : ClosePairs
        Output of ``close_pairs``.
    coords : np.ndarray (n, 2)
        Pattern coordinates the pair indices refer to.
    window : Window
    correction : Correction
        NONE, PERIODIC (weight 1), ISOTROPIC or TRANSLATION.
    config : EstimatorConfig, optional
        ``min_edge_weight`` bounds the accepted denominators.

    Returns
    -------
    np.ndarray (m,)

    Raises
    ------
    UndefinedEstimatorValue
        If a circle fraction or overlap area is at or below
        ``config.min_edge_weight``.
    """
    config = config or EstimatorConfig()

    if correction in (Correction.NONE, Correction.PERIODIC):
        return np.ones(len(pairs))

    if correction is Correction.ISOTROPIC:
        fraction = isotropic_fraction(coords[pairs.i], pairs.d, window)
        _check_denominator(fraction, config, "isotropic circle fraction")
        return 1.0 / fraction

    if correction is Correction.TRANSLATION:
        overlap = translation_overlap(pairs.dx, pairs.dy, window)
        _check_denominator(overlap / window.area, config, "translation overlap")
        return window.area / overlap

    raise ValueError(f"Correction '{correction.value}' does not define pair weights")


def _check_denominator(values: np.ndarray, config: EstimatorConfig, what: str):
    if len(values) and np.min(values) <= config.min_edge_weight:
        raise UndefinedEstimatorValue(
            f"{what} is {np.min(values):.3g}, at or below " f"min_edge_weight={config.min_edge_weight:g}"
        )


def border_denominator(b: np.ndarray, r: np.ndarray, what: str) -> np.ndarray:
    """
    Number of locations at least r from the boundary, for each r.

    Raises UndefinedEstimatorValue when no location qualifies at some r.
    """
    counts = np.sum(b[np.newaxis, :] >= r[:, np.newaxis], axis=1)
    if np.any(counts == 0):
        bad = r[counts == 0][0]
        raise UndefinedEstimatorValue(
            f"Border correction for {what} has no location at distance >= {bad:g} " f"from the window boundary"
        )
    return counts
