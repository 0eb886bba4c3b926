"""
Google Earth Engine session for the carbon estimation pipeline.

Every server-side operation the pipeline needs goes through
EarthEngineSession: dataset loading, spatial reductions, stratified
sampling, random forest training and classification. Image and collection
handles are lazy server-side graphs; only the methods that materialize a
result (getInfo, thumbnail URLs) talk to the service, and those are routed
through a bounded retry with exponential backoff.

The session is authenticated once per run and only read afterwards, so a
single instance can be shared by concurrent requests.

Author: Diego Bengochea
"""

import json
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import ee
from google.auth import exceptions as google_auth_exceptions

from shared_utils import get_logger
from shared_utils.config_utils import get_config_value

from .accuracy import HeightSample
from .carbon_stock import ClassHeightStatistics
from .exceptions import AuthenticationError, ConfigurationError, RemoteCallError

# Substrings identifying rejected service credentials
CREDENTIAL_ERROR_MARKERS = (
    'invalid_grant',
    'invalid jwt',
    'unauthenticated',
    'invalid authentication credentials',
    'not signed up for earth engine',
)

# Substrings identifying failures worth retrying
TRANSIENT_ERROR_MARKERS = (
    'too many concurrent',
    'too many requests',
    'quota',
    'rate limit',
    'internal error',
    'service unavailable',
    'deadline exceeded',
    'connection',
    '429',
    '500',
    '502',
    '503',
    '504',
)

PREDICTED_BAND = 'predicted'
LAND_COVER_BAND = 'landcover'

S2_CLOUD_BIT = 1 << 10
S2_CIRRUS_BIT = 1 << 11
S2_REFLECTANCE_SCALE = 10000


def is_credential_error(error: BaseException) -> bool:
    if isinstance(error, google_auth_exceptions.RefreshError):
        return True
    message = str(error).lower()
    return any(marker in message for marker in CREDENTIAL_ERROR_MARKERS)


def is_transient_error(error: BaseException) -> bool:
    if is_credential_error(error):
        return False
    if isinstance(error, (ConnectionError, TimeoutError)):
        return True
    if isinstance(error, google_auth_exceptions.TransportError):
        return True
    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_ERROR_MARKERS)


class EarthEngineSession:
    """
    Authenticated access to Google Earth Engine.

    Configuration is read from the `earth_engine`, `datasets`, `sampling`,
    `model` and `visualization` sections of the component config.
    """

    def __init__(self, config: Dict[str, Any], credentials_path: Optional[str] = None):
        self.config = config
        self.logger = get_logger('carbon_estimation.earth_engine')

        ee_config = config['earth_engine']
        self.credentials_path = credentials_path or ee_config.get('credentials_path')
        self.credentials_env = ee_config.get('credentials_env', 'GOOGLE_CREDENTIALS')
        self.project = ee_config.get('project')
        self.crs = ee_config['crs']
        self.scale = ee_config['scale']
        self.max_pixels = float(ee_config['max_pixels'])
        self.class_max_pixels = float(ee_config.get('class_max_pixels', ee_config['max_pixels']))
        self.max_retries = int(ee_config.get('max_retries', 3))
        self.backoff = float(ee_config.get('backoff', 2.0))

        self.datasets = config['datasets']
        self.sampling = config['sampling']
        self.model = config['model']

        self.initialized = False

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def _load_service_account_key(self) -> Dict[str, Any]:
        """Read the service account key from the credentials file or environment."""
        raw_key = None
        source = None

        if self.credentials_path:
            key_path = Path(self.credentials_path)
            if key_path.exists():
                raw_key = key_path.read_text(encoding='utf-8')
                source = str(key_path)
            else:
                self.logger.warning(f"Private key file not found at {key_path}")

        if raw_key is None and self.credentials_env:
            raw_key = os.environ.get(self.credentials_env)
            source = f"${self.credentials_env}"

        if not raw_key:
            raise ConfigurationError(
                "Earth Engine credentials not found: set earth_engine.credentials_path "
                f"or the {self.credentials_env} environment variable"
            )

        try:
            key = json.loads(raw_key)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid service account JSON in {source}: {e}")

        for required in ('client_email', 'private_key'):
            if required not in key:
                raise ConfigurationError(f"Service account key in {source} lacks '{required}'")

        self.logger.debug(f"Loaded service account key from {source}")
        return key

    def authenticate(self) -> None:
        """
        Initialize Earth Engine with service account credentials.

        Safe to call more than once; only the first call contacts the service.

        Raises:
            ConfigurationError: Credentials missing or malformed
            AuthenticationError: Credentials rejected by the service
            RemoteCallError: Any other initialization failure
        """
        if self.initialized:
            return

        key = self._load_service_account_key()
        project = self.project or key.get('project_id')

        try:
            credentials = ee.ServiceAccountCredentials(
                key['client_email'], key_data=json.dumps(key)
            )
            ee.Initialize(credentials, project=project)
        except Exception as e:
            if is_credential_error(e):
                raise AuthenticationError(str(e), operation='authenticate') from e
            raise RemoteCallError(str(e), operation='authenticate') from e

        self.initialized = True
        self.logger.info(f"Google Earth Engine initialized (project: {project})")

    # ------------------------------------------------------------------
    # Remote evaluation
    # ------------------------------------------------------------------

    def _fetch(self, operation: str, request: Callable[[], Any]) -> Any:
        """
        Evaluate a server-side request with bounded retry.

        Transient failures are retried up to max_retries times with
        exponential backoff; credential failures are raised immediately.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return request()
            except Exception as e:
                if is_credential_error(e):
                    raise AuthenticationError(str(e), operation=operation) from e
                if not is_transient_error(e) or attempt > self.max_retries:
                    raise RemoteCallError(str(e), operation=operation) from e
                delay = self.backoff ** (attempt - 1)
                self.logger.warning(
                    f"{operation} failed (attempt {attempt}/{self.max_retries + 1}): {e}; "
                    f"retrying in {delay:.1f}s"
                )
                time.sleep(delay)

    def _project(self, image):
        return image.reproject(crs=self.crs, scale=self.scale)

    # ------------------------------------------------------------------
    # Boundary
    # ------------------------------------------------------------------

    def create_boundary(self, coordinates: Sequence[Tuple[float, float]]):
        return ee.Geometry.Polygon([[list(pair) for pair in coordinates]])

    def boundary_geometry(self, boundary) -> Dict[str, Any]:
        """Boundary as a GeoJSON feature collection."""
        collection = ee.FeatureCollection([ee.Feature(boundary)])
        return self._fetch('boundary', collection.getInfo)

    # ------------------------------------------------------------------
    # Datasets
    # ------------------------------------------------------------------

    def load_land_cover(self, boundary):
        image = ee.ImageCollection(self.datasets['land_cover']).first()
        return self._project(image.clip(boundary)).rename(LAND_COVER_BAND)

    def load_radar_composite(self, boundary, start_date: str, end_date: str):
        """
        Sentinel-1 GRD composite: median backscatter and interquartile range.

        Percentiles are computed in dB and converted to linear power.
        """
        collection = (
            ee.ImageCollection(self.datasets['sentinel1'])
            .filterDate(start_date, end_date)
            .filter(ee.Filter.listContains('transmitterReceiverPolarisation', 'VV'))
            .filter(ee.Filter.listContains('transmitterReceiverPolarisation', 'VH'))
            .filter(ee.Filter.eq('instrumentMode', 'IW'))
            .filter(ee.Filter.eq('orbitProperties_pass', self.datasets.get('orbit_pass', 'ASCENDING')))
            .filterBounds(boundary)
        )
        percentile = collection.select(['VV', 'VH']).reduce(ee.Reducer.percentile([25, 50, 75]))
        linear = ee.Image(10).pow(percentile.divide(10))
        features = self._project(linear.select(['VH_p50', 'VV_p50']).clip(boundary))

        vv_iqr = linear.select('VV_p75').subtract(linear.select('VV_p25')).rename('VV_iqr')
        vh_iqr = linear.select('VH_p75').subtract(linear.select('VH_p25')).rename('VH_iqr')
        return features.addBands(vv_iqr).addBands(vh_iqr)

    @staticmethod
    def mask_s2_clouds(image):
        """Mask opaque clouds and cirrus with the QA60 band and scale to reflectance."""
        qa = image.select('QA60')
        mask = qa.bitwiseAnd(S2_CLOUD_BIT).eq(0).And(qa.bitwiseAnd(S2_CIRRUS_BIT).eq(0))
        return image.updateMask(mask).divide(S2_REFLECTANCE_SCALE)

    def load_optical_composite(self, boundary, start_date: str, end_date: str):
        image = (
            ee.ImageCollection(self.datasets['sentinel2'])
            .filterDate(start_date, end_date)
            .filterBounds(boundary)
            .filter(ee.Filter.lt('CLOUDY_PIXEL_PERCENTAGE', self.datasets['max_cloud_percentage']))
            .map(self.mask_s2_clouds)
            .select(self.datasets['sentinel2_bands'])
            .median()
        )
        return self._project(image.clip(boundary))

    def load_terrain(self, boundary) -> Dict[str, Any]:
        elevation = self._project(
            ee.Image(self.datasets['elevation']).clip(boundary)
        ).rename('elevation')
        slope = self._project(ee.Terrain.slope(elevation).clip(boundary)).rename('slope')
        return {'elevation': elevation, 'slope': slope}

    def load_canopy_reference(self, boundary):
        """GEDI L2A monthly canopy height (rh98), quality-filtered."""
        target = self.model['target_property']
        return (
            ee.ImageCollection(self.datasets['canopy_reference'])
            .filterBounds(boundary)
            .filterDate(self.datasets['canopy_reference_start'], self.datasets['canopy_reference_end'])
            .map(lambda image: image.updateMask(image.select('quality_flag').eq(1)))
            .select(target)
        )

    def stack_predictors(self, boundary, optical, radar, terrain, land_cover):
        """Merge all predictor bands into one image restricted to the boundary."""
        return (
            optical
            .addBands(radar)
            .addBands(terrain['elevation'])
            .addBands(terrain['slope'])
            .addBands(land_cover)
            .clip(boundary)
        )

    # ------------------------------------------------------------------
    # Reductions
    # ------------------------------------------------------------------

    def reduce_region(self, image, reducer, region, max_pixels: Optional[float] = None,
                      operation: str = 'reduceRegion') -> Dict[str, Any]:
        """Evaluate a reducer over a region and return the result dictionary."""
        reduced = image.reduceRegion(
            reducer=reducer,
            geometry=region,
            scale=self.scale,
            maxPixels=max_pixels or self.max_pixels,
        )
        return self._fetch(operation, reduced.getInfo) or {}

    def class_histogram(self, land_cover, boundary) -> Dict[str, float]:
        """Pixel count per land-cover code (keys as returned by the service)."""
        result = self.reduce_region(
            land_cover, ee.Reducer.frequencyHistogram(), boundary,
            operation='class histogram'
        )
        return result.get(LAND_COVER_BAND) or {}

    def height_statistic(self, predicted, boundary, statistic: str) -> Optional[float]:
        """Min, max or mean of predicted canopy height over the boundary."""
        reducers = {
            'min': ee.Reducer.min,
            'max': ee.Reducer.max,
            'mean': ee.Reducer.mean,
        }
        result = self.reduce_region(
            predicted.select(PREDICTED_BAND), reducers[statistic](), boundary,
            operation=f'height {statistic}'
        )
        return result.get(PREDICTED_BAND)

    def class_height_statistics(self, predicted, land_cover, class_id: int,
                                boundary) -> ClassHeightStatistics:
        """Mean and standard deviation of predicted height within one class."""
        reducer = ee.Reducer.mean().combine(reducer2=ee.Reducer.stdDev(), sharedInputs=True)
        masked = predicted.select(PREDICTED_BAND).updateMask(land_cover.eq(class_id))
        result = self.reduce_region(
            masked, reducer, boundary, max_pixels=self.class_max_pixels,
            operation=f'height statistics class {class_id}'
        )
        return ClassHeightStatistics(
            mean=result.get(f'{PREDICTED_BAND}_mean'),
            std_dev=result.get(f'{PREDICTED_BAND}_stdDev'),
        )

    # ------------------------------------------------------------------
    # Sampling and regression
    # ------------------------------------------------------------------

    def stratified_sample(self, reference, land_cover, boundary, num_points: int):
        """
        Stratified sample of reference heights, one stratum per land-cover class,
        with a seeded uniform random column used for the train/validation split.
        """
        combined = reference.mosaic().addBands(land_cover)
        return combined.stratifiedSample(
            numPoints=num_points,
            classBand=LAND_COVER_BAND,
            region=boundary,
            scale=self.scale,
            seed=self.sampling['seed'],
            geometries=True,
        ).randomColumn(self.sampling['random_column'], self.sampling['random_column_seed'])

    def split_sample(self, samples, split_ratio: float):
        """Training points have random key < split_ratio, validation the rest."""
        column = self.sampling['random_column']
        training = samples.filter(ee.Filter.lt(column, split_ratio))
        validation = samples.filter(ee.Filter.gte(column, split_ratio))
        return training, validation

    def train_regressor(self, predictors, training_points):
        """Random forest regressor trained on predictor values at the training points."""
        bands = self.model['predictor_bands']
        target = self.model['target_property']
        training = predictors.select(bands).sampleRegions(
            collection=training_points,
            properties=[target],
            scale=self.scale,
        )
        return (
            ee.Classifier.smileRandomForest(self.model['number_of_trees'])
            .setOutputMode('REGRESSION')
            .train(features=training, classProperty=target, inputProperties=bands)
        )

    def classify(self, predictors, regressor, boundary):
        bands = self.model['predictor_bands']
        return predictors.select(bands).classify(regressor, PREDICTED_BAND).clip(boundary)

    def sample_heights(self, predicted, points) -> List[HeightSample]:
        """
        Reference and predicted heights (with random key) at each sample point.

        The columns are reduced to a list of rows on the server, so the
        transfer is not bound by the element limit of collection queries.
        Rows with a missing value are dropped.
        """
        target = self.model['target_property']
        column = self.sampling['random_column']
        selectors = [target, PREDICTED_BAND, column]
        sampled = predicted.select(PREDICTED_BAND).sampleRegions(
            collection=points,
            properties=[target, column],
            scale=self.scale,
        )
        rows = sampled.reduceColumns(ee.Reducer.toList(len(selectors)), selectors).get('list')
        info = self._fetch('sample heights', rows.getInfo) or []

        samples = []
        for row in info:
            if len(row) != len(selectors) or any(value is None for value in row):
                continue
            reference, prediction, key = row
            samples.append(HeightSample(
                reference_height=float(reference),
                predicted_height=float(prediction),
                random_key=float(key),
            ))
        return samples

    def count(self, collection, operation: str = 'count') -> int:
        return int(self._fetch(operation, collection.size().getInfo))

    # ------------------------------------------------------------------
    # Visualization
    # ------------------------------------------------------------------

    def thumbnail_url(self, image, boundary, vis_params: Dict[str, Any],
                      operation: str = 'thumbnail') -> str:
        params = {
            'dimensions': get_config_value(self.config, 'visualization.dimensions', 1000),
            'region': boundary,
            'format': 'png',
        }
        params.update(vis_params)
        return self._fetch(operation, lambda: image.getThumbURL(params))
