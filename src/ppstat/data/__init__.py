"""
data - Point pattern store and configuration for ppstat
"""

from .config import (
    EstimatorConfig,
    PatternConfig,
    PointPatternError,
    InvalidGeometry,
    DegenerateWindow,
    InsufficientSimulations,
    UndefinedEstimatorValue,
    SimulationAborted,
)
from .core import Window, PointPattern, simulate_csr

__all__ = [
    'EstimatorConfig',
    'PatternConfig',
    'PointPatternError',
    'InvalidGeometry',
    'DegenerateWindow',
    'InsufficientSimulations',
    'UndefinedEstimatorValue',
    'SimulationAborted',
    'Window',
    'PointPattern',
    'simulate_csr',
]
