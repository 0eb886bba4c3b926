import copy
import logging

import pytest

from carbon_estimation.core.accuracy import HeightSample
from carbon_estimation.core.carbon_stock import ClassHeightStatistics
from carbon_estimation.core.estimation_pipeline import load_estimation_config


@pytest.fixture(autouse=True)
def restore_root_logging():
    # setup_logging replaces the root handlers; keep tests isolated
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(scope="session")
def packaged_config():
    return load_estimation_config()


@pytest.fixture
def config(packaged_config):
    cfg = copy.deepcopy(packaged_config)
    cfg["earth_engine"]["timeout"] = 30
    cfg["earth_engine"]["max_workers"] = 4
    cfg["earth_engine"]["backoff"] = 0.0
    return cfg


class FakeEarthEngineSession:
    """In-memory stand-in exposing the EarthEngineSession interface.

    Image and collection handles are plain strings; every call is recorded.
    """

    def __init__(
        self,
        histogram=None,
        samples=None,
        class_stats=None,
        height_stats=None,
        training_size=3,
        validation_size=2,
        fail_on=None,
        error=None,
    ):
        self.histogram = {"10": 500, "30": 300, "50": 200} if histogram is None else histogram
        self.samples = samples if samples is not None else [
            HeightSample(20.0, 18.0, 0.10),
            HeightSample(15.0, 16.0, 0.50),
            HeightSample(8.0, 9.0, 0.69),
            HeightSample(22.0, 20.0, 0.70),
            HeightSample(12.0, 13.0, 0.90),
        ]
        self.class_stats = class_stats if class_stats is not None else {
            10: ClassHeightStatistics(20.0, 3.0),
            30: ClassHeightStatistics(5.0, 1.0),
            50: ClassHeightStatistics(None, None),
        }
        self.height_stats = height_stats if height_stats is not None else {
            "min": 0.5, "max": 35.0, "mean": 15.0,
        }
        self.training_size = training_size
        self.validation_size = validation_size
        self.fail_on = fail_on
        self.error = error
        self.calls = []
        self.authenticated = False

    def _record(self, name):
        self.calls.append(name)
        if name == self.fail_on:
            raise self.error

    def authenticate(self):
        self._record("authenticate")
        self.authenticated = True

    def create_boundary(self, coordinates):
        self._record("create_boundary")
        return "boundary"

    def boundary_geometry(self, boundary):
        self._record("boundary_geometry")
        return {"type": "FeatureCollection", "features": []}

    def load_land_cover(self, boundary):
        self._record("load_land_cover")
        return "land_cover"

    def load_radar_composite(self, boundary, start_date, end_date):
        self._record("load_radar_composite")
        return "radar"

    def load_optical_composite(self, boundary, start_date, end_date):
        self._record("load_optical_composite")
        return "optical"

    def load_terrain(self, boundary):
        self._record("load_terrain")
        return {"elevation": "elevation", "slope": "slope"}

    def load_canopy_reference(self, boundary):
        self._record("load_canopy_reference")
        return "reference"

    def stack_predictors(self, boundary, optical, radar, terrain, land_cover):
        self._record("stack_predictors")
        return "predictors"

    def class_histogram(self, land_cover, boundary):
        self._record("class_histogram")
        return dict(self.histogram)

    def stratified_sample(self, reference, land_cover, boundary, num_points):
        self._record("stratified_sample")
        return "samples"

    def split_sample(self, samples, split_ratio):
        self._record("split_sample")
        return "training_points", "validation_points"

    def train_regressor(self, predictors, training_points):
        self._record("train_regressor")
        return "regressor"

    def classify(self, predictors, regressor, boundary):
        self._record("classify")
        return "predicted"

    def sample_heights(self, predicted, points):
        self._record("sample_heights")
        return list(self.samples)

    def height_statistic(self, predicted, boundary, statistic):
        self._record(f"height_{statistic}")
        return self.height_stats[statistic]

    def class_height_statistics(self, predicted, land_cover, class_id, boundary):
        self._record("class_height_statistics")
        return self.class_stats.get(class_id, ClassHeightStatistics())

    def count(self, collection, operation="count"):
        self._record("count")
        return self.training_size if collection == "training_points" else self.validation_size

    def thumbnail_url(self, image, boundary, vis_params, operation="thumbnail"):
        self._record("thumbnail_url")
        return f"https://thumbnails.example/{image}.png"


@pytest.fixture
def fake_session():
    return FakeEarthEngineSession()


@pytest.fixture
def make_session():
    return FakeEarthEngineSession
