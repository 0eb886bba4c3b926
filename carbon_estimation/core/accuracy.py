"""
Regression accuracy evaluation for canopy height predictions.

Reference heights come from the lidar reference (GEDI rh98) sampled at the
stratified points, predicted heights from the trained regressor. The sample
set is partitioned into training and validation subsets by the per-point
random key drawn when the points were sampled.

Author: Diego Bengochea
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Tuple

import numpy as np

from shared_utils import get_logger

from .exceptions import DegenerateInputError


@dataclass(frozen=True)
class HeightSample:
    """Reference and predicted canopy height at one sample point."""
    reference_height: float
    predicted_height: float
    random_key: float = 0.0


SampleSet = Tuple[HeightSample, ...]


@dataclass(frozen=True)
class AccuracyMetrics:
    """Accuracy of the canopy height regression."""
    training_rmse: float
    validation_rmse: float
    r_squared: float

    def to_dict(self) -> Dict[str, float]:
        return {
            'trainingRMSE': self.training_rmse,
            'validationRMSE': self.validation_rmse,
            'rSquared': self.r_squared,
        }


def split_samples(
    samples: Iterable[HeightSample],
    split_ratio: float
) -> Tuple[SampleSet, SampleSet]:
    """
    Partition samples into training and validation sets.

    A sample goes to training when its random key is strictly below the
    split ratio and to validation otherwise, so the two sets are disjoint
    and together cover the input. Input order is preserved in both.

    Args:
        samples: Height samples carrying a random key in [0, 1)
        split_ratio: Fraction of keys assigned to training

    Returns:
        tuple: (training, validation)
    """
    training = []
    validation = []
    for sample in samples:
        if sample.random_key < split_ratio:
            training.append(sample)
        else:
            validation.append(sample)
    return tuple(training), tuple(validation)


def _as_arrays(samples: Sequence[HeightSample]) -> Tuple[np.ndarray, np.ndarray]:
    reference = np.array([s.reference_height for s in samples], dtype=float)
    predicted = np.array([s.predicted_height for s in samples], dtype=float)
    return reference, predicted


def rmse(samples: Sequence[HeightSample]) -> float:
    """
    Root mean squared error between reference and predicted heights.

    Returns NaN for an empty set.
    """
    if len(samples) == 0:
        return math.nan
    reference, predicted = _as_arrays(samples)
    residuals = reference - predicted
    return float(np.sqrt(np.mean(residuals ** 2)))


def r_squared(samples: Sequence[HeightSample]) -> float:
    """
    Coefficient of determination over a sample set.

    Uses the set's own mean reference height. When all reference heights
    are identical the total sum of squares is zero and 0.0 is returned.
    Returns NaN for an empty set.
    """
    if len(samples) == 0:
        return math.nan
    reference, predicted = _as_arrays(samples)
    residual_ss = float(np.sum((reference - predicted) ** 2))
    total_ss = float(np.sum((reference - reference.mean()) ** 2))
    if total_ss == 0:
        return 0.0
    return 1.0 - residual_ss / total_ss


def evaluate_accuracy(
    training: Sequence[HeightSample],
    validation: Sequence[HeightSample]
) -> AccuracyMetrics:
    """
    Compute training RMSE, validation RMSE and validation R².

    Raises:
        DegenerateInputError: If either sample set is empty
    """
    logger = get_logger('carbon_estimation.accuracy')

    if len(training) == 0 or len(validation) == 0:
        raise DegenerateInputError(
            "Insufficient data: cannot evaluate regression accuracy "
            f"(training samples: {len(training)}, validation samples: {len(validation)})"
        )

    metrics = AccuracyMetrics(
        training_rmse=rmse(training),
        validation_rmse=rmse(validation),
        r_squared=r_squared(validation),
    )
    logger.info(f"  Training RMSE: {metrics.training_rmse:.3f} m")
    logger.info(f"  Validation RMSE: {metrics.validation_rmse:.3f} m")
    logger.info(f"  R²: {metrics.r_squared:.3f}")
    return metrics
