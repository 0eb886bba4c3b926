"""
Result payload of a carbon estimation run.

Author: Diego Bengochea
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .accuracy import AccuracyMetrics
from .area_aggregation import ClassAreaRecord
from .carbon_stock import CarbonReport
from .tier import TierAssessment


@dataclass(frozen=True)
class HeightStatistics:
    """Global predicted canopy height statistics over the boundary (m)."""
    min: Optional[float]
    max: Optional[float]
    mean: Optional[float]

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {'min': self.min, 'max': self.max, 'mean': self.mean}


@dataclass(frozen=True)
class EstimationResult:
    """Everything a run produces, returned as a single object."""
    boundary: Dict[str, Any]
    vegetation_areas: List[ClassAreaRecord]
    metrics: AccuracyMetrics
    regression_stats: HeightStatistics
    training_sample_size: int
    validation_sample_size: int
    carbon_data: CarbonReport
    tier_assessment: TierAssessment
    visualization: Dict[str, str] = field(default_factory=dict)

    @property
    def tier(self):
        return self.tier_assessment.tier

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable representation."""
        return {
            'boundary': self.boundary,
            'vegetationAreas': [record.to_dict() for record in self.vegetation_areas],
            'regressionStats': self.regression_stats.to_dict(),
            'metrics': self.metrics.to_dict(),
            'trainingSampleSize': self.training_sample_size,
            'validationSampleSize': self.validation_sample_size,
            'carbonData': self.carbon_data.to_dict(),
            'tier': self.tier_assessment.tier.value,
            'tierInputs': self.tier_assessment.to_dict(),
            'visualization': dict(self.visualization),
        }
