"""
Forest Carbon Estimation Component

Estimates above-ground carbon stock and annual sequestration over a polygon
boundary from Sentinel-1, Sentinel-2, SRTM terrain, ESA WorldCover and GEDI
canopy height using Google Earth Engine, including:

- Random forest canopy height regression with accuracy metrics
- Land-cover specific allometric biomass conversion
- Carbon stock, sequestration and CO₂ equivalent per vegetation class
- Forest carbon tier classification

Components:
    core/: Core processing modules
    scripts/: Executable entry points
    config.yaml: Component configuration

Author: Diego Bengochea
"""

from .core.estimation_pipeline import ForestCarbonEstimationPipeline
from .core.earth_engine import EarthEngineSession
from .core.run_options import RunOptions

__version__ = "1.0.0"
__component__ = "carbon_estimation"

__all__ = [
    "ForestCarbonEstimationPipeline",
    "EarthEngineSession",
    "RunOptions",
]
