"""
Run options for a single carbon estimation.

Author: Diego Bengochea
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from shared_utils.config_utils import get_config_value

from .exceptions import ConfigurationError

Coordinate = Tuple[float, float]


def _validate_date(value: str, name: str) -> None:
    try:
        date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an ISO date (YYYY-MM-DD), got {value!r}")


def _as_number(cast, value: Any, name: str):
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")


def normalize_coordinates(coordinates: Sequence[Sequence[float]]) -> List[Coordinate]:
    """
    Validate a boundary ring given as [lon, lat] pairs.

    The ring is closed implicitly; a repeated closing vertex is accepted.

    Raises:
        ConfigurationError: If a pair is malformed, out of range, or fewer than
            three distinct vertices are given
    """
    if not isinstance(coordinates, (list, tuple)):
        raise ConfigurationError(f"Boundary must be a list of [lon, lat] pairs, got {coordinates!r}")

    ring = []
    for index, pair in enumerate(coordinates):
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise ConfigurationError(f"Coordinate {index} must be a [lon, lat] pair, got {pair!r}")
        try:
            lon, lat = float(pair[0]), float(pair[1])
        except (TypeError, ValueError):
            raise ConfigurationError(f"Coordinate {index} is not numeric: {pair!r}")
        if not (-180 <= lon <= 180 and -90 <= lat <= 90):
            raise ConfigurationError(f"Coordinate {index} out of range: {pair!r}")
        ring.append((lon, lat))

    if len(ring) > 1 and ring[0] == ring[-1]:
        ring = ring[:-1]
    if len(set(ring)) < 3:
        raise ConfigurationError("Boundary polygon needs at least three distinct vertices")
    return ring


@dataclass
class RunOptions:
    """User-facing parameters of one estimation run."""
    coordinates: List[Coordinate]
    start_date: str
    end_date: str
    num_samples: int = 2000
    split_ratio: float = 0.7
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.coordinates = normalize_coordinates(self.coordinates)
        _validate_date(self.start_date, 'start_date')
        _validate_date(self.end_date, 'end_date')
        if self.start_date >= self.end_date:
            raise ConfigurationError(
                f"start_date {self.start_date} must be before end_date {self.end_date}"
            )
        self.num_samples = _as_number(int, self.num_samples, 'num_samples')
        if self.num_samples <= 0:
            raise ConfigurationError(f"num_samples must be positive, got {self.num_samples}")
        self.split_ratio = _as_number(float, self.split_ratio, 'split_ratio')
        if not 0 < self.split_ratio < 1:
            raise ConfigurationError(f"split_ratio must be in (0, 1), got {self.split_ratio}")

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        coordinates: Optional[Sequence[Sequence[float]]] = None,
        **overrides: Any
    ) -> 'RunOptions':
        """
        Build run options from configuration defaults and explicit overrides.

        An empty or missing coordinate list falls back to the configured
        default boundary. Overrides set to None are ignored.
        """
        if not coordinates:
            coordinates = get_config_value(config, 'boundary.default_coordinates')
        if not coordinates:
            raise ConfigurationError("No boundary coordinates given and no default configured")

        values = {
            'start_date': get_config_value(config, 'datasets.start_date'),
            'end_date': get_config_value(config, 'datasets.end_date'),
            'num_samples': get_config_value(config, 'sampling.num_samples', 2000),
            'split_ratio': get_config_value(config, 'sampling.split_ratio', 0.7),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(coordinates=coordinates, **values)
