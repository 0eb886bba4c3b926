"""
Carbon stock calculation from predicted canopy height.

For each land-cover class present in the boundary, the mean predicted
canopy height is converted into above-ground biomass with the class power
law, then into carbon stock, annual sequestration and CO₂ equivalent.

Author: Diego Bengochea
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd

from shared_utils import get_logger

from .area_aggregation import ClassAreaRecord, total_area
from .exceptions import DegenerateInputError
from .vegetation import LandCoverClass

CARBON_FRACTION = 0.47
CO2_TO_CARBON_RATIO = 3.67


@dataclass(frozen=True)
class ClassHeightStatistics:
    """Predicted canopy height statistics over one land-cover class."""
    mean: Optional[float] = None
    std_dev: Optional[float] = None


@dataclass(frozen=True)
class CarbonRecord:
    """Carbon accounting for one land-cover class."""
    id: LandCoverClass
    name: str
    area_hectares: float
    area_percent: float
    height_mean: float
    height_std_dev: float
    biomass: float
    carbon_stock: float
    annual_sequestration: float
    co2_equivalent: float
    a: float
    b: float
    sequestration_rate: float

    def to_dict(self) -> Dict:
        return {
            'id': int(self.id),
            'name': self.name,
            'area': self.area_hectares,
            'areaPercent': self.area_percent,
            'carbonParameters': {
                'a': self.a,
                'b': self.b,
                'sequestrationRate': self.sequestration_rate,
            },
            'heightStatistics': {'mean': self.height_mean, 'stdDev': self.height_std_dev},
            'biomass': self.biomass,
            'carbonStock': self.carbon_stock,
            'annualSequestration': self.annual_sequestration,
            'co2Equivalent': self.co2_equivalent,
        }


@dataclass(frozen=True)
class CarbonReport:
    """Carbon records of all classes and their totals."""
    records: List[CarbonRecord] = field(default_factory=list)
    total_area: float = 0.0
    total_carbon: float = 0.0
    total_annual_sequestration: float = 0.0
    total_co2_equivalent: float = 0.0

    def to_dict(self) -> Dict:
        return {
            'vegetationCarbon': [record.to_dict() for record in self.records],
            'totalArea': self.total_area,
            'totalCarbon': self.total_carbon,
            'totalAnnualSeq': self.total_annual_sequestration,
            'totalCO2Eq': self.total_co2_equivalent,
        }

    def to_dataframe(self) -> pd.DataFrame:
        """Vegetation breakdown as a DataFrame, one row per class."""
        columns = [
            'id', 'name', 'area_hectares', 'area_percent', 'height_mean',
            'height_std_dev', 'biomass', 'carbon_stock',
            'annual_sequestration', 'co2_equivalent',
        ]
        rows = [
            {column: getattr(record, column) for column in columns}
            for record in self.records
        ]
        df = pd.DataFrame(rows, columns=columns)
        df['id'] = df['id'].astype(int)
        return df


def _is_missing(value: Optional[float]) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def estimate_biomass(height_mean: Optional[float], a: float, b: float) -> float:
    """
    Power-law allometric biomass: a * height ** b.

    Missing, NaN, zero or negative heights yield zero biomass, as do classes
    without a biomass model (a = 0).
    """
    if _is_missing(height_mean) or height_mean <= 0:
        return 0.0
    return math.pow(height_mean, b) * a


def calculate_carbon_record(
    area_record: ClassAreaRecord,
    height_mean: Optional[float],
    height_std_dev: Optional[float],
    area_total: float
) -> CarbonRecord:
    """
    Carbon accounting for a single class.

    Args:
        area_record: Class area and allometric parameters
        height_mean: Mean predicted canopy height over the class (m)
        height_std_dev: Standard deviation of predicted height (m)
        area_total: Total area of all classes (ha), must be positive

    Returns:
        CarbonRecord
    """
    if area_total <= 0:
        raise DegenerateInputError("Insufficient data: total area is zero")

    params = area_record.params
    mean = 0.0 if _is_missing(height_mean) else float(height_mean)
    std_dev = 0.0 if _is_missing(height_std_dev) else float(height_std_dev)

    biomass = estimate_biomass(mean, params.a, params.b)
    carbon_stock = biomass * CARBON_FRACTION * area_record.area_hectares
    rate = params.sequestration_rate

    return CarbonRecord(
        id=area_record.id,
        name=area_record.name,
        area_hectares=area_record.area_hectares,
        area_percent=round(area_record.area_hectares / area_total * 100, 2),
        height_mean=mean,
        height_std_dev=std_dev,
        biomass=biomass,
        carbon_stock=carbon_stock,
        annual_sequestration=carbon_stock * rate,
        co2_equivalent=carbon_stock * CO2_TO_CARBON_RATIO,
        a=params.a,
        b=params.b,
        sequestration_rate=rate,
    )


def calculate_carbon_report(
    area_records: Sequence[ClassAreaRecord],
    height_statistics: Mapping[int, ClassHeightStatistics]
) -> CarbonReport:
    """
    Carbon report over all classes present in the boundary.

    Args:
        area_records: Ranked class areas from the area aggregator
        height_statistics: Predicted height statistics per class code;
            classes without an entry contribute zero biomass

    Returns:
        CarbonReport with one record per area record, in the same order

    Raises:
        DegenerateInputError: If there are no records or the total area is 0
    """
    logger = get_logger('carbon_estimation.carbon_stock')

    if not area_records:
        raise DegenerateInputError("Insufficient data: no vegetation classes in boundary")

    area_total = total_area(area_records)
    if area_total <= 0:
        raise DegenerateInputError("Insufficient data: total area is zero")

    records = []
    for area_record in area_records:
        stats = height_statistics.get(int(area_record.id), ClassHeightStatistics())
        record = calculate_carbon_record(area_record, stats.mean, stats.std_dev, area_total)
        logger.debug(
            f"{record.name}: height {record.height_mean:.2f} m, "
            f"biomass {record.biomass:.3f}, carbon {record.carbon_stock:.2f} t"
        )
        records.append(record)

    return CarbonReport(
        records=records,
        total_area=area_total,
        total_carbon=sum(r.carbon_stock for r in records),
        total_annual_sequestration=sum(r.annual_sequestration for r in records),
        total_co2_equivalent=sum(r.co2_equivalent for r in records),
    )
