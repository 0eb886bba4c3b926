"""
Area aggregation of land-cover histograms.

Converts the per-class pixel histogram returned by the frequency histogram
reduction into per-class areas in hectares, ranked by area.

Author: Diego Bengochea
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Union

from shared_utils import get_logger

from .vegetation import LandCoverClass, VegetationClass, lookup


@dataclass(frozen=True)
class ClassAreaRecord:
    """Area covered by one land-cover class inside the boundary."""
    id: LandCoverClass
    name: str
    area_hectares: float
    params: VegetationClass

    def to_dict(self) -> Dict:
        return {
            'id': int(self.id),
            'name': self.name,
            'area': self.area_hectares,
            'a': self.params.a,
            'b': self.params.b,
        }


def aggregate_class_areas(
    histogram: Mapping[Union[str, int], float],
    pixel_area_divisor: float = 1.0
) -> List[ClassAreaRecord]:
    """
    Build ranked class area records from a class histogram.

    Args:
        histogram: Mapping from land-cover code (string or integer key) to
            pixel count
        pixel_area_divisor: Number of histogram units per hectare

    Returns:
        List[ClassAreaRecord]: Records sorted by descending area. Codes that
        are not in the vegetation table, and classes with zero count, are
        dropped.
    """
    logger = get_logger('carbon_estimation.areas')

    if pixel_area_divisor <= 0:
        raise ValueError(f"pixel_area_divisor must be positive, got {pixel_area_divisor}")

    areas: Dict[LandCoverClass, float] = {}
    for raw_id, count in (histogram or {}).items():
        params = lookup(raw_id)
        if params is None:
            logger.debug(f"Dropping unknown land-cover class {raw_id!r}")
            continue
        if not count:
            continue
        # "10" and "10.0" may both be present in loosely typed responses
        areas[params.id] = areas.get(params.id, 0.0) + float(count) / pixel_area_divisor

    records = [
        ClassAreaRecord(
            id=code,
            name=lookup(code).name,
            area_hectares=area,
            params=lookup(code),
        )
        for code, area in areas.items()
    ]
    records.sort(key=lambda record: record.area_hectares, reverse=True)
    return records


def total_area(records: Sequence[ClassAreaRecord]) -> float:
    """Sum of areas over all records, 0 for an empty sequence."""
    return sum(record.area_hectares for record in records)


def dense_forest_percent(records: Sequence[ClassAreaRecord]) -> float:
    """
    Share of the total area covered by dense forest (class 10), in percent.

    Returns 0.0 when the total area is zero.
    """
    area = total_area(records)
    if area == 0:
        return 0.0
    dense = sum(
        record.area_hectares for record in records
        if record.id == LandCoverClass.DENSE_FOREST
    )
    return dense / area * 100
