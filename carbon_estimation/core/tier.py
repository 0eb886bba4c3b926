"""
Forest carbon tier classification.

Author: Diego Bengochea
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence

from shared_utils import get_logger

from .area_aggregation import ClassAreaRecord, dense_forest_percent
from .carbon_stock import CarbonReport
from .exceptions import DegenerateInputError


class Tier(str, Enum):
    PLATINUM = 'Platinum'
    GOLD = 'Gold'
    SILVER = 'Silver'
    BRONZE = 'Bronze'
    GREY = 'Grey'


@dataclass(frozen=True)
class TierAssessment:
    """Tier together with the metrics it was derived from."""
    tier: Tier
    dense_forest_percent: float
    co2_per_hectare: float
    sequestration_per_hectare: float
    mean_canopy_height: float

    def to_dict(self) -> Dict:
        return {
            'tier': self.tier.value,
            'denseForestPercent': self.dense_forest_percent,
            'co2PerHectare': self.co2_per_hectare,
            'sequestrationPerHectare': self.sequestration_per_hectare,
            'meanCanopyHeight': self.mean_canopy_height,
        }


def classify_tier(
    dense_forest_percent: float,
    co2_per_hectare: float,
    mean_canopy_height: float
) -> Tier:
    """
    Map aggregate forest metrics to a tier. The first matching rule wins.

    Args:
        dense_forest_percent: Share of the area covered by dense forest (%)
        co2_per_hectare: Total CO₂ equivalent divided by total area
        mean_canopy_height: Mean predicted canopy height over the boundary (m)

    Returns:
        Tier
    """
    if dense_forest_percent > 70 and co2_per_hectare > 3 and mean_canopy_height > 10:
        return Tier.PLATINUM
    if dense_forest_percent >= 30 and co2_per_hectare >= 2 and mean_canopy_height > 7:
        return Tier.GOLD
    if dense_forest_percent >= 10 and co2_per_hectare >= 1 and mean_canopy_height > 5:
        return Tier.SILVER
    if dense_forest_percent >= 1 and co2_per_hectare < 1 and mean_canopy_height < 5:
        return Tier.BRONZE
    return Tier.GREY


def assess_tier(
    carbon_report: CarbonReport,
    area_records: Sequence[ClassAreaRecord],
    mean_canopy_height: Optional[float]
) -> TierAssessment:
    """
    Derive the tier inputs from a carbon report and classify.

    Sequestration per hectare is computed and logged alongside the other
    inputs but does not take part in the decision.

    Raises:
        DegenerateInputError: If the total area is zero or the mean canopy
            height is unavailable
    """
    logger = get_logger('carbon_estimation.tier')

    if carbon_report.total_area <= 0:
        raise DegenerateInputError("Insufficient data: total area is zero")
    if mean_canopy_height is None:
        raise DegenerateInputError("Insufficient data: mean canopy height unavailable")

    forest_percent = dense_forest_percent(area_records)
    co2_per_ha = carbon_report.total_co2_equivalent / carbon_report.total_area
    seq_per_ha = carbon_report.total_annual_sequestration / carbon_report.total_area

    logger.info(
        f"denseForestPercent: {forest_percent:.2f}, co2PerHa: {co2_per_ha:.3f}, "
        f"seqPerHa: {seq_per_ha:.4f}, meanCanopy: {mean_canopy_height:.2f}"
    )

    return TierAssessment(
        tier=classify_tier(forest_percent, co2_per_ha, mean_canopy_height),
        dense_forest_percent=forest_percent,
        co2_per_hectare=co2_per_ha,
        sequestration_per_hectare=seq_per_ha,
        mean_canopy_height=mean_canopy_height,
    )
