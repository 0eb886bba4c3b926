"""
Main execution pipeline for forest carbon estimation.

This module orchestrates the complete estimation workflow:
- Authenticating the Earth Engine session
- Loading land cover, Sentinel-1, Sentinel-2, terrain and GEDI reference data
- Aggregating land-cover class areas inside the boundary
- Stratified sampling and random forest canopy height regression
- Regression accuracy evaluation on training and validation samples
- Per-class carbon stock, sequestration and CO₂ equivalent
- Forest carbon tier classification

Independent remote requests are issued concurrently and joined before the
next stage starts. Any failure aborts the run; no partial result is
returned.

Author: Diego Bengochea
"""

import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from shared_utils import (
    get_config_value,
    get_logger,
    load_config,
    log_pipeline_end,
    log_pipeline_start,
    log_section,
    setup_logging,
    validate_config,
)

from .accuracy import evaluate_accuracy, split_samples
from .area_aggregation import aggregate_class_areas
from .carbon_stock import calculate_carbon_report
from .concurrency import run_concurrently
from .earth_engine import EarthEngineSession
from .exceptions import ConfigurationError, DegenerateInputError
from .results import EstimationResult, HeightStatistics
from .run_options import RunOptions
from .tier import assess_tier

PIPELINE_NAME = 'forest carbon estimation'

REQUIRED_SECTIONS = ['earth_engine', 'datasets', 'sampling', 'model', 'logging']

COMPONENT_DIR = Path(__file__).resolve().parent.parent


def load_estimation_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load and validate the carbon estimation configuration."""
    config = load_config(
        config_path,
        component_name='carbon_estimation',
        package_dir=COMPONENT_DIR,
    )
    validate_config(config, REQUIRED_SECTIONS)
    return config


def _positive_float(value: Any, key: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be a number, got {value!r}")
    if not number > 0:
        raise ConfigurationError(f"{key} must be positive, got {value!r}")
    return number


class ForestCarbonEstimationPipeline:
    """
    Carbon stock estimation over a polygon boundary.

    All server-side work goes through the session object; the pipeline
    itself only sequences requests and runs the local carbon arithmetic.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        config_path: Optional[Union[str, Path]] = None,
        session: Optional[EarthEngineSession] = None,
        configure_logging: bool = False
    ):
        """
        Initialize the carbon estimation pipeline.

        Args:
            config: Configuration dictionary (loaded from config_path if None)
            config_path: Path to a YAML configuration file
            session: Earth Engine session (created from config if None)
            configure_logging: Configure root logging from the config
        """
        self.config = config if config is not None else load_estimation_config(config_path)

        if configure_logging:
            self.logger = setup_logging(
                level=get_config_value(self.config, 'logging.level', 'INFO'),
                component_name='carbon_estimation',
                log_file=get_config_value(self.config, 'logging.log_file'),
            )
        else:
            self.logger = get_logger('carbon_estimation')

        self.session = session if session is not None else EarthEngineSession(self.config)

        ee_config = self.config['earth_engine']
        self.max_workers = ee_config.get('max_workers')
        self.timeout = ee_config.get('timeout')
        self.show_progress = bool(ee_config.get('show_progress', False))
        self.pixel_area_divisor = _positive_float(
            get_config_value(self.config, 'sampling.pixel_area_divisor', 1.0),
            'sampling.pixel_area_divisor',
        )
        self.visualize = bool(get_config_value(self.config, 'visualization.enabled', False))

        self.logger.info("Initialized ForestCarbonEstimationPipeline")

    def _fan_out(self, tasks: Dict[Any, Any], description: str) -> Dict[Any, Any]:
        return run_concurrently(
            tasks,
            max_workers=self.max_workers,
            timeout=self.timeout,
            description=description,
            show_progress=self.show_progress,
        )

    def create_run_options(self, coordinates=None, **overrides) -> RunOptions:
        return RunOptions.from_config(self.config, coordinates, **overrides)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def load_datasets(self, boundary, options: RunOptions) -> Dict[str, Any]:
        """Load all input datasets concurrently."""
        session = self.session
        return self._fan_out({
            'land_cover': lambda: session.load_land_cover(boundary),
            'radar': lambda: session.load_radar_composite(boundary, options.start_date, options.end_date),
            'optical': lambda: session.load_optical_composite(boundary, options.start_date, options.end_date),
            'terrain': lambda: session.load_terrain(boundary),
            'reference': lambda: session.load_canopy_reference(boundary),
        }, description='Loading datasets')

    def calculate_vegetation_areas(self, land_cover, boundary):
        """Ranked class areas; raises DegenerateInputError when nothing is found."""
        histogram = self.session.class_histogram(land_cover, boundary)
        areas = aggregate_class_areas(histogram, self.pixel_area_divisor)
        if not areas:
            raise DegenerateInputError(
                "Insufficient data: no known land-cover classes inside the boundary"
            )
        for record in areas:
            self.logger.info(f"  {record.name}: {record.area_hectares:.2f} ha")
        return areas

    def train_and_predict(self, datasets: Dict[str, Any], boundary, options: RunOptions):
        """Sample, split, train the regressor and predict canopy height."""
        session = self.session

        self.logger.info("Creating sample points...")
        samples = session.stratified_sample(
            datasets['reference'], datasets['land_cover'], boundary, options.num_samples
        )
        training_points, validation_points = session.split_sample(samples, options.split_ratio)

        predictors = session.stack_predictors(
            boundary,
            datasets['optical'],
            datasets['radar'],
            datasets['terrain'],
            datasets['land_cover'],
        )

        self.logger.info("Training model...")
        regressor = session.train_regressor(predictors, training_points)

        self.logger.info("Running regression...")
        predicted = session.classify(predictors, regressor, boundary)
        return predicted, samples, training_points, validation_points

    def evaluate_regression(self, predicted, samples, training_points,
                            validation_points, boundary, split_ratio: float):
        """Accuracy metrics, global height statistics and sample counts."""
        session = self.session
        results = self._fan_out({
            'samples': lambda: session.sample_heights(predicted, samples),
            'min': lambda: session.height_statistic(predicted, boundary, 'min'),
            'max': lambda: session.height_statistic(predicted, boundary, 'max'),
            'mean': lambda: session.height_statistic(predicted, boundary, 'mean'),
            'training_size': lambda: session.count(training_points, 'training sample size'),
            'validation_size': lambda: session.count(validation_points, 'validation sample size'),
        }, description='Evaluating regression')

        training, validation = split_samples(results['samples'], split_ratio)
        metrics = evaluate_accuracy(training, validation)
        height_stats = HeightStatistics(
            min=results['min'], max=results['max'], mean=results['mean']
        )
        return metrics, height_stats, results['training_size'], results['validation_size']

    def calculate_carbon_stocks(self, predicted, land_cover, vegetation_areas, boundary):
        """Per-class height statistics fetched concurrently, then the carbon report."""
        session = self.session
        tasks = {
            int(record.id): (
                lambda class_id=int(record.id):
                session.class_height_statistics(predicted, land_cover, class_id, boundary)
            )
            for record in vegetation_areas
        }
        height_statistics = self._fan_out(tasks, description='Class height statistics')
        return calculate_carbon_report(vegetation_areas, height_statistics)

    def create_visualizations(self, predicted, land_cover, boundary) -> Dict[str, str]:
        vis = self.config.get('visualization', {})
        session = self.session
        urls = self._fan_out({
            'landCover': lambda: session.thumbnail_url(
                land_cover, boundary, vis['land_cover'], 'land cover thumbnail'),
            'canopyHeight': lambda: session.thumbnail_url(
                predicted, boundary, vis['canopy_height'], 'canopy height thumbnail'),
        }, description='Visualization')
        for name, url in urls.items():
            self.logger.info(f"{name} visualization URL: {url}")
        return urls

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, options: RunOptions) -> EstimationResult:
        """
        Execute the complete estimation workflow.

        Args:
            options: Boundary, date range and sampling parameters

        Returns:
            EstimationResult

        Raises:
            ConfigurationError: Missing or invalid credentials
            RemoteCallError: Any failure from the remote engine
            DegenerateInputError: Insufficient data for a meaningful estimate
        """
        start_time = time.time()
        log_pipeline_start(self.logger, PIPELINE_NAME, {
            'vertices': len(options.coordinates),
            'start_date': options.start_date,
            'end_date': options.end_date,
            'num_samples': options.num_samples,
            'split_ratio': options.split_ratio,
        })

        try:
            self.session.authenticate()
            boundary = self.session.create_boundary(options.coordinates)

            log_section(self.logger, 'Loading data sources')
            datasets = self.load_datasets(boundary, options)

            log_section(self.logger, 'Calculating vegetation areas')
            vegetation_areas = self.calculate_vegetation_areas(datasets['land_cover'], boundary)

            log_section(self.logger, 'Canopy height regression')
            predicted, samples, training_points, validation_points = self.train_and_predict(
                datasets, boundary, options
            )
            metrics, height_stats, training_size, validation_size = self.evaluate_regression(
                predicted, samples, training_points, validation_points, boundary, options.split_ratio
            )

            log_section(self.logger, 'Calculating carbon stocks')
            carbon_report = self.calculate_carbon_stocks(
                predicted, datasets['land_cover'], vegetation_areas, boundary
            )
            tier_assessment = assess_tier(carbon_report, vegetation_areas, height_stats.mean)
            self.logger.info(f"Forest Carbon Tier: {tier_assessment.tier.value}")

            visualization = {}
            if self.visualize:
                visualization = self.create_visualizations(predicted, datasets['land_cover'], boundary)

            result = EstimationResult(
                boundary=self.session.boundary_geometry(boundary),
                vegetation_areas=vegetation_areas,
                metrics=metrics,
                regression_stats=height_stats,
                training_sample_size=training_size,
                validation_sample_size=validation_size,
                carbon_data=carbon_report,
                tier_assessment=tier_assessment,
                visualization=visualization,
            )
        except Exception as e:
            self.logger.error(f"Error in workflow: {e}")
            log_pipeline_end(self.logger, PIPELINE_NAME, success=False,
                             elapsed_time=time.time() - start_time)
            raise

        log_pipeline_end(self.logger, PIPELINE_NAME, success=True,
                         elapsed_time=time.time() - start_time)
        return result
