"""
envelope.py - Monte Carlo simulation envelopes

Significance bands for any summary function under a null model:
complete spatial randomness (same window, same number of points) for
K, L, g, G and F, and random labelling (marks permuted over fixed
locations) for the mark correlation function.

The observed curve is significant at distance r if it falls outside the
envelope at that r. Simulations run on a joblib worker pool; each one
gets its own child seed, so results do not depend on scheduling.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from ..data.config import EstimatorConfig, InsufficientSimulations, SimulationAborted
from ..data.core import simulate_csr
from .corrections import Correction, resolve
from .marks import compute_kmm, mark_radius_grid
from .nearest import csr_cdf, compute_ffun, compute_gfun, query_locations
from .ripley import EstimatorCurve, check_radii, compute_g, compute_k, default_bandwidth, radius_grid

if TYPE_CHECKING:
    from ..data.core import PointPattern

ESTIMATORS = ("K", "L", "g", "G", "F", "kmm")


@dataclass(frozen=True, eq=False)
class Envelope:
    """
    Observed summary function with simulation envelope.

    Attributes
    ----------
    observed : EstimatorCurve
        Curve of the observed pattern.
    lower, upper : np.ndarray
        Envelope bounds on ``observed.r``.
    centre : np.ndarray
        Mean of the simulated curves.
    simulations : np.ndarray (n_simulations, len(r))
        Every simulated curve, in simulation order.
    n_simulations : int
        Number of simulated patterns.
    rank : int
        Rank of the simulated value used for the bounds (1 = extremes).
    is_global : bool
        True for a global (all-radii) band, False for pointwise bounds.
    null_model : str
        'csr' or 'random_labelling'.
    seed : int or None
        Seed the simulations were generated from.
    """

    observed: EstimatorCurve
    lower: np.ndarray
    upper: np.ndarray
    centre: np.ndarray
    simulations: np.ndarray
    n_simulations: int
    rank: int
    is_global: bool
    null_model: str
    seed: Optional[int] = None

    @property
    def r(self) -> np.ndarray:
        return self.observed.r

    @property
    def estimator(self) -> str:
        return self.observed.estimator

    @property
    def correction(self) -> str:
        return self.observed.correction

    @property
    def alpha(self) -> float:
        """Significance level of the Monte Carlo test (2*rank/(n+1) pointwise, rank/(n+1) global)."""
        if self.is_global:
            return self.rank / (self.n_simulations + 1)
        return 2 * self.rank / (self.n_simulations + 1)

    def above(self) -> np.ndarray:
        """Radii where the observed curve exceeds the upper bound."""
        return self.observed.values > self.upper

    def below(self) -> np.ndarray:
        """Radii where the observed curve falls under the lower bound."""
        return self.observed.values < self.lower

    def outside(self) -> np.ndarray:
        return self.above() | self.below()

    def to_dataframe(self) -> pd.DataFrame:
        """Ordered table with observed, theoretical, centre and bounds per r."""
        return pd.DataFrame(
            {
                "r": self.r,
                "obs": self.observed.values,
                "theo": self.observed.theoretical,
                "centre": self.centre,
                "lo": self.lower,
                "hi": self.upper,
            }
        )

    def summary(self) -> dict:
        return {
            "function": self.estimator,
            "correction": self.correction,
            "null_model": self.null_model,
            "n_simulations": self.n_simulations,
            "rank": self.rank,
            "global": self.is_global,
            "alpha": self.alpha,
            "n_above": int(self.above().sum()),
            "n_below": int(self.below().sum()),
            "n_distances": len(self.r),
        }

    def __repr__(self) -> str:
        s = self.summary()
        kind = "global" if s["global"] else "pointwise"
        return (
            f"Envelope({s['function']}, {kind}, nsim={s['n_simulations']}, "
            f"rank={s['rank']}, above={s['n_above']}, below={s['n_below']})"
        )


def _evaluate(
    pattern: PointPattern,
    estimator: str,
    r: np.ndarray,
    method: Correction,
    params: dict,
    config: EstimatorConfig,
) -> np.ndarray:
    """Compute estimator values without progress output."""
    if estimator == "K":
        return compute_k(pattern, r, method, config)
    if estimator == "L":
        return np.sqrt(compute_k(pattern, r, method, config) / np.pi)
    if estimator == "g":
        return compute_g(pattern, r, method, params["bandwidth"], config)
    if estimator == "G":
        return compute_gfun(pattern, r, method, config)
    if estimator == "F":
        return compute_ffun(pattern, r, method, params["locations"], config)
    if estimator == "kmm":
        return compute_kmm(pattern, r, method, params["bandwidth"], params["test_function"], config)
    raise ValueError(f"Unknown estimator: {estimator}. Use one of {ESTIMATORS}")


def _theoretical(pattern: PointPattern, estimator: str, r: np.ndarray) -> np.ndarray:
    if estimator == "K":
        return np.pi * r**2
    if estimator == "L":
        return r.copy()
    if estimator in ("G", "F"):
        return csr_cdf(pattern, r)
    return np.ones_like(r)


def _simulate_one(
    pattern: PointPattern,
    estimator: str,
    r: np.ndarray,
    method: Correction,
    params: dict,
    config: EstimatorConfig,
    seed: np.random.SeedSequence,
) -> np.ndarray:
    """Generate one null-model realisation and evaluate the estimator on it."""
    if estimator == "kmm":
        rng = np.random.default_rng(seed)
        simulated = pattern.with_marks(rng.permutation(pattern.marks))
    else:
        simulated = simulate_csr(pattern.window, pattern.n_points, seed=seed)
    return _evaluate(simulated, estimator, r, method, params, config)


def pointwise_bounds(simulations: np.ndarray, rank: int) -> tuple[np.ndarray, np.ndarray]:
    """rank-th smallest and rank-th largest simulated value at each radius."""
    ordered = np.sort(simulations, axis=0)
    return ordered[rank - 1], ordered[len(simulations) - rank]


def global_bounds(simulations: np.ndarray, rank: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Band of constant width around the mean simulated curve.

    The width is the rank-th largest of the maximum absolute deviations
    of each simulated curve from the mean curve.
    """
    centre = simulations.mean(axis=0)
    deviations = np.max(np.abs(simulations - centre), axis=1)
    width = np.sort(deviations)[::-1][rank - 1]
    return centre - width, centre + width, centre


def envelope(
    pattern: PointPattern,
    estimator: str = "K",
    correction: Union[str, Correction] = "best",
    n_simulations: int = 99,
    rank: int = 1,
    global_envelope: bool = False,
    r=None,
    seed: Optional[int] = None,
    n_jobs: int = 1,
    batch_size: Optional[int] = None,
    abort=None,
    bandwidth: Optional[float] = None,
    test_function="product",
    sampling: str = "grid",
    config: Optional[EstimatorConfig] = None,
) -> Envelope:
    """
    Compute simulation envelopes for significance testing.

    For K/L/g/G/F: simulates complete spatial randomness (uniform points in
    the same window, same point count).
    For kmm: permutes marks while keeping positions.

    Parameters
    ----------
    pattern : PointPattern
        Observed point pattern.
    estimator : str
        'K', 'L', 'g', 'G', 'F' or 'kmm'.
    correction : str or Correction
        Edge correction, see the individual estimators. 'best' picks
        the default for the estimator.
    n_simulations : int
        Number of simulations for the envelope.
    rank : int
        Rank of the simulated values used as bounds. rank=1 with 99
        simulations gives the min/max envelope (alpha = 0.02 pointwise).
    global_envelope : bool
        If True, build a single band width valid over all radii.
    r : array-like, optional
        Radius grid shared by the observed and simulated curves.
    seed : int, optional
        Random seed. The same seed gives bit-identical bounds.
    n_jobs : int
        Size of the joblib worker pool.
    batch_size : int, optional
        Simulations per batch. ``abort`` is checked between batches.
        Defaults to all simulations in one batch.
    abort : threading.Event-like, optional
        Object with ``is_set()``; when set, the run stops before the next
        batch with SimulationAborted.
    bandwidth : float, optional
        Kernel bandwidth for g and kmm, fixed from the observed pattern if
        not given.
    test_function : str or callable
        Mark test function for kmm.
    sampling : str
        Query location sampling for F ('grid' or 'random').
    config : EstimatorConfig, optional

    Returns
    -------
    Envelope
        Observed curve with lower and upper bounds.

    Raises
    ------
    InsufficientSimulations
        If ``n_simulations`` is smaller than ``rank``.
    """
    config = config or EstimatorConfig()
    if estimator not in ESTIMATORS:
        raise ValueError(f"Unknown estimator: {estimator}. Use one of {ESTIMATORS}")
    if rank < 1:
        raise ValueError(f"rank must be >= 1, got {rank}")
    if n_simulations < rank:
        raise InsufficientSimulations(f"rank={rank} needs at least {rank} simulations, got {n_simulations}")
    if batch_size is None:
        batch_size = n_simulations
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    method = resolve(correction, estimator)
    if estimator == "kmm" and pattern.marks is None:
        raise ValueError("Mark correlation envelopes require a marked point pattern")

    # Step 1: Radius grid and fixed estimator parameters
    if r is not None:
        r_values = check_radii(r)
    elif estimator == "g":
        r_values = radius_grid(pattern.window, include_zero=False, config=config)
    elif estimator == "kmm":
        r_values = mark_radius_grid(pattern, config)
    else:
        r_values = radius_grid(pattern.window, config=config)

    seed_seq = np.random.SeedSequence(seed)
    location_seed, *sim_seeds = seed_seq.spawn(n_simulations + 1)

    params = {"test_function": test_function}
    if estimator in ("g", "kmm"):
        params["bandwidth"] = default_bandwidth(pattern, config) if bandwidth is None else bandwidth
    if estimator == "F":
        params["locations"] = query_locations(pattern.window, sampling=sampling, seed=location_seed, config=config)

    # Step 2: Observed curve
    observed = EstimatorCurve(
        r=r_values,
        values=_evaluate(pattern, estimator, r_values, method, params, config),
        theoretical=_theoretical(pattern, estimator, r_values),
        estimator=estimator,
        correction=method.value,
        label=pattern.label,
        params={k: v for k, v in params.items() if k == "bandwidth"},
    )

    # Step 3: Simulate
    null_model = "random_labelling" if estimator == "kmm" else "csr"
    print(f"  Running {n_simulations} simulations for envelope ({null_model})...")

    results = []
    with Parallel(n_jobs=n_jobs) as parallel:
        for start in range(0, n_simulations, batch_size):
            if abort is not None and abort.is_set():
                raise SimulationAborted(f"Envelope aborted after {len(results)} of {n_simulations} simulations")
            batch = sim_seeds[start : start + batch_size]
            results.extend(
                parallel(
                    delayed(_simulate_one)(pattern, estimator, r_values, method, params, config, child)
                    for child in batch
                )
            )
    sim_stats = np.vstack(results)

    # Step 4: Build envelope
    if global_envelope:
        envelope_lo, envelope_hi, centre = global_bounds(sim_stats, rank)
    else:
        envelope_lo, envelope_hi = pointwise_bounds(sim_stats, rank)
        centre = sim_stats.mean(axis=0)

    result = Envelope(
        observed=observed,
        lower=envelope_lo,
        upper=envelope_hi,
        centre=centre,
        simulations=sim_stats,
        n_simulations=n_simulations,
        rank=rank,
        is_global=global_envelope,
        null_model=null_model,
        seed=seed,
    )

    # Report
    s = result.summary()
    kind = "global" if global_envelope else "pointwise"
    print(
        f"  ✓ Envelope ({estimator}, {kind}, alpha={s['alpha']:.3f}): "
        f"{s['n_above']} distances above, {s['n_below']} below, "
        f"{s['n_distances'] - s['n_above'] - s['n_below']} inside"
    )

    return result
