"""
Console summary of an estimation result.

Author: Diego Bengochea
"""

import math
from typing import List, Optional

import pandas as pd

from .results import EstimationResult


def _fmt(value: Optional[float], digits: int = 2) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return 'n/a'
    return f"{value:.{digits}f}"


def vegetation_breakdown(result: EstimationResult) -> pd.DataFrame:
    """Vegetation breakdown table with presentation column names."""
    df = result.carbon_data.to_dataframe()
    table = pd.DataFrame({
        'Vegetation Type': df['name'],
        'Area (ha)': df['area_hectares'].round(2),
        '% of Total': df['area_percent'],
        'Carbon Stock (t)': df['carbon_stock'].round(2),
        'Annual Seq. (t/yr)': df['annual_sequestration'].round(2),
    })
    return table


def format_summary(result: EstimationResult) -> str:
    """Render totals, vegetation breakdown, model statistics and tier."""
    carbon = result.carbon_data
    metrics = result.metrics
    stats = result.regression_stats

    lines: List[str] = [
        '',
        '========= SUMMARY RESULTS =========',
        f"Total Area (ha): {_fmt(carbon.total_area)}",
        f"Total Carbon Stock (tonnes): {_fmt(carbon.total_carbon)}",
        f"Annual Carbon Sequestration (tonnes/year): {_fmt(carbon.total_annual_sequestration)}",
        f"Total CO2 Equivalent (tonnes): {_fmt(carbon.total_co2_equivalent)}",
        f"Model R-squared: {_fmt(metrics.r_squared, 4)}",
        '',
        '------------ Vegetation Breakdown ------------',
        vegetation_breakdown(result).to_string(index=False),
        '',
        '========= MODEL STATISTICS =========',
        f"Training Sample Size: {result.training_sample_size}",
        f"Validation Sample Size: {result.validation_sample_size}",
        f"Training RMSE: {_fmt(metrics.training_rmse, 4)}",
        f"Validation RMSE: {_fmt(metrics.validation_rmse, 4)}",
        f"R-squared: {_fmt(metrics.r_squared, 4)}",
        f"Canopy Height Min (m): {_fmt(stats.min)}",
        f"Canopy Height Max (m): {_fmt(stats.max)}",
        f"Canopy Height Mean (m): {_fmt(stats.mean)}",
        '',
        f"Forest Carbon Tier: {result.tier.value}",
    ]

    if result.visualization:
        lines.append('')
        for name, url in result.visualization.items():
            lines.append(f"{name} visualization URL: {url}")

    return '\n'.join(lines)
