"""
Vegetation parameter tables for land-cover specific allometry.

Land-cover codes follow the ESA WorldCover legend. Two constant tables are
kept side by side and indexed by the same codes:

- ALLOMETRIC_PARAMETERS: power-law coefficients (a, b) of
  biomass = a * height ** b, plus the human-readable class name
- SEQUESTRATION_RATES: annual sequestration fraction of the carbon stock

Classes without a biomass model (built-up, snow and ice, water) carry zero
coefficients. They still count toward area totals.

Author: Diego Bengochea
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional, Tuple, Union


class LandCoverClass(IntEnum):
    """Closed enumeration of supported land-cover codes."""
    DENSE_FOREST = 10
    SHRUBLAND = 20
    GRASSLAND = 30
    CROPLAND = 40
    BUILT_UP = 50
    SPARSE_VEGETATION = 60
    SNOW_AND_ICE = 70
    WATER_BODIES = 80
    WETLAND = 90
    MANGROVES = 95
    MOSS_AND_LICHEN = 100


# (name, a, b)
ALLOMETRIC_PARAMETERS: Dict[LandCoverClass, Tuple[str, float, float]] = {
    LandCoverClass.DENSE_FOREST: ('Dense Forest', 0.0776, 1.58),
    LandCoverClass.SHRUBLAND: ('Shrubland', 0.0500, 1.35),
    LandCoverClass.GRASSLAND: ('Grassland', 0.0350, 1.20),
    LandCoverClass.CROPLAND: ('Cropland', 0.0250, 1.10),
    LandCoverClass.BUILT_UP: ('Built-up', 0.0, 0.0),
    LandCoverClass.SPARSE_VEGETATION: ('Sparse Vegetation', 0.0100, 1.00),
    LandCoverClass.SNOW_AND_ICE: ('Snow and Ice', 0.0, 0.0),
    LandCoverClass.WATER_BODIES: ('Water Bodies', 0.0, 0.0),
    LandCoverClass.WETLAND: ('Wetland', 0.0450, 1.25),
    LandCoverClass.MANGROVES: ('Mangroves', 0.0900, 1.65),
    LandCoverClass.MOSS_AND_LICHEN: ('Moss and Lichen', 0.0200, 1.05),
}

SEQUESTRATION_RATES: Dict[LandCoverClass, float] = {
    LandCoverClass.DENSE_FOREST: 0.025,
    LandCoverClass.SHRUBLAND: 0.020,
    LandCoverClass.GRASSLAND: 0.015,
    LandCoverClass.WETLAND: 0.030,
    LandCoverClass.MANGROVES: 0.035,
}

DEFAULT_SEQUESTRATION_RATE = 0.010


@dataclass(frozen=True)
class VegetationClass:
    """Allometric parameters of a single land-cover class."""
    id: LandCoverClass
    name: str
    a: float
    b: float

    @property
    def sequestration_rate(self) -> float:
        return SEQUESTRATION_RATES.get(self.id, DEFAULT_SEQUESTRATION_RATE)

    @property
    def has_biomass_model(self) -> bool:
        return self.a != 0.0 or self.b != 0.0


VEGETATION_TABLE: Dict[LandCoverClass, VegetationClass] = {
    code: VegetationClass(id=code, name=name, a=a, b=b)
    for code, (name, a, b) in ALLOMETRIC_PARAMETERS.items()
}


def parse_class_id(raw_id: Union[int, float, str]) -> Optional[LandCoverClass]:
    """
    Convert a loosely typed class key into a LandCoverClass.

    Histogram keys returned by the engine are strings ("10") and may carry a
    decimal part ("10.0"). Unknown or malformed keys map to None.
    """
    try:
        numeric = float(raw_id)
    except (TypeError, ValueError):
        return None
    if not numeric.is_integer():
        return None
    try:
        return LandCoverClass(int(numeric))
    except ValueError:
        return None


def lookup(class_id: Union[int, float, str]) -> Optional[VegetationClass]:
    """
    Look up the vegetation parameters of a land-cover class.

    Args:
        class_id: Land-cover code as int, float or string

    Returns:
        VegetationClass or None if the code is not in the table

    Examples:
        >>> lookup(10).name
        'Dense Forest'
        >>> lookup('999') is None
        True
    """
    code = parse_class_id(class_id)
    if code is None:
        return None
    return VEGETATION_TABLE.get(code)


def get_sequestration_rate(class_id: Union[int, float, str]) -> float:
    """Annual sequestration rate for a class, 0.010 for unlisted classes."""
    code = parse_class_id(class_id)
    if code is None:
        return DEFAULT_SEQUESTRATION_RATE
    return SEQUESTRATION_RATES.get(code, DEFAULT_SEQUESTRATION_RATE)
