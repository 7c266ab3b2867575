# src/ppstat/__init__.py

"""
ppstat - Spatial point pattern statistics for plot surveys
"""

# Core data structures
from .data.core import Window, PointPattern, simulate_csr
from .data.config import (
    EstimatorConfig,
    PatternConfig,
    PointPatternError,
    InvalidGeometry,
    DegenerateWindow,
    InsufficientSimulations,
    UndefinedEstimatorValue,
    SimulationAborted,
)

# Import submodules
from . import data
from . import spatial

__version__ = '0.1.0'

__all__ = [
    # Core classes
    'Window',
    'PointPattern',
    'simulate_csr',
    'EstimatorConfig',
    'PatternConfig',

    # Exceptions
    'PointPatternError',
    'InvalidGeometry',
    'DegenerateWindow',
    'InsufficientSimulations',
    'UndefinedEstimatorValue',
    'SimulationAborted',

    # Submodules
    'data',
    'spatial',
]
