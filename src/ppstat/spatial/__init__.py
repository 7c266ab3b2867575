"""
spatial - Point pattern summary functions for ppstat

Modules
-------
- distances: Pairwise distances, nearest-neighbour distances, close pairs
- corrections: Edge-correction methods and weights
- ripley: Ripley's K, L and the pair correlation function g
- nearest: Nearest-neighbour distribution G and empty-space function F
- marks: Mark correlation function for marked patterns
- envelope: Monte Carlo simulation envelopes

Quick Start
-----------
>>> import ppstat
>>> from ppstat.spatial import kfunction, envelope
>>>
>>> pp = ppstat.PointPattern.create(coords, (0, 10, 0, 10))
>>> K = kfunction(pp, correction='iso')
>>> env = envelope(pp, estimator='L', correction='trans',
...                n_simulations=99, rank=1, seed=1)
>>> env.to_dataframe()

Summary Functions
-----------------
kfunction
    Ripley's K function
lfunction
    Variance-stabilized L function, sqrt(K/pi)
pair_correlation
    Pair correlation function g
gfunction
    Nearest-neighbour distance distribution G
ffunction
    Empty-space function F
mark_correlation
    Mark correlation function kmm

Edge Corrections
----------------
'none', 'iso' (Ripley isotropic), 'trans' (translation), 'rs' (border /
reduced sample), 'han' (Hanisch), 'periodic' (toroidal) and 'best'.
Which ones an estimator accepts, and what 'best' picks, is listed in
``corrections.SUPPORTED`` and ``corrections.BEST``.
"""

# Distance engine
from .distances import (
    ClosePairs,
    pairwise_distances,
    nearest_neighbor_distances,
    nearest_point_distance,
    close_pairs,
)

# Edge corrections
from .corrections import (
    Correction,
    resolve,
    isotropic_fraction,
    translation_overlap,
)

# Estimators
from .ripley import (
    EstimatorCurve,
    radius_grid,
    kfunction,
    lfunction,
    pair_correlation,
)
from .nearest import (
    gfunction,
    ffunction,
    query_locations,
)
from .marks import mark_correlation

# Simulation envelopes
from .envelope import (
    Envelope,
    envelope,
)

__all__ = [
    # Distance engine
    'ClosePairs',
    'pairwise_distances',
    'nearest_neighbor_distances',
    'nearest_point_distance',
    'close_pairs',

    # Edge corrections
    'Correction',
    'resolve',
    'isotropic_fraction',
    'translation_overlap',

    # Estimators
    'EstimatorCurve',
    'radius_grid',
    'kfunction',
    'lfunction',
    'pair_correlation',
    'gfunction',
    'ffunction',
    'query_locations',
    'mark_correlation',

    # Simulation envelopes
    'Envelope',
    'envelope',
]
