"""
Core carbon estimation modules.

This package contains the processing logic for carbon estimation:
- Vegetation parameter tables (allometry and sequestration rates)
- Land-cover area aggregation
- Regression accuracy evaluation
- Carbon stock calculation and tier classification
- EarthEngineSession: remote geospatial engine access
- ForestCarbonEstimationPipeline: main processing pipeline

Author: Diego Bengochea
"""

from .exceptions import (
    AuthenticationError,
    CarbonEstimationError,
    ConfigurationError,
    DegenerateInputError,
    RemoteCallError,
)
from .vegetation import (
    LandCoverClass,
    VegetationClass,
    VEGETATION_TABLE,
    SEQUESTRATION_RATES,
    lookup,
    get_sequestration_rate,
)
from .area_aggregation import ClassAreaRecord, aggregate_class_areas, total_area, dense_forest_percent
from .accuracy import (
    AccuracyMetrics,
    HeightSample,
    evaluate_accuracy,
    r_squared,
    rmse,
    split_samples,
)
from .carbon_stock import (
    CarbonRecord,
    CarbonReport,
    ClassHeightStatistics,
    calculate_carbon_record,
    calculate_carbon_report,
    estimate_biomass,
)
from .tier import Tier, TierAssessment, assess_tier, classify_tier
from .run_options import RunOptions
from .results import EstimationResult, HeightStatistics
from .concurrency import run_concurrently
from .earth_engine import EarthEngineSession
from .estimation_pipeline import ForestCarbonEstimationPipeline, load_estimation_config
from .reporting import format_summary

__all__ = [
    # Errors
    "CarbonEstimationError",
    "ConfigurationError",
    "RemoteCallError",
    "AuthenticationError",
    "DegenerateInputError",

    # Vegetation tables
    "LandCoverClass",
    "VegetationClass",
    "VEGETATION_TABLE",
    "SEQUESTRATION_RATES",
    "lookup",
    "get_sequestration_rate",

    # Computation
    "ClassAreaRecord",
    "aggregate_class_areas",
    "total_area",
    "dense_forest_percent",
    "AccuracyMetrics",
    "HeightSample",
    "evaluate_accuracy",
    "r_squared",
    "rmse",
    "split_samples",
    "CarbonRecord",
    "CarbonReport",
    "ClassHeightStatistics",
    "calculate_carbon_record",
    "calculate_carbon_report",
    "estimate_biomass",
    "Tier",
    "TierAssessment",
    "assess_tier",
    "classify_tier",

    # Pipeline
    "RunOptions",
    "EstimationResult",
    "HeightStatistics",
    "run_concurrently",
    "EarthEngineSession",
    "ForestCarbonEstimationPipeline",
    "load_estimation_config",
    "format_summary",
]
