#!/usr/bin/env python3
"""
Forest Carbon Estimation Script

Main entry point for estimating carbon stock, annual sequestration and the
forest carbon tier over a polygon boundary.

Usage:
    python -m carbon_estimation.scripts.run_carbon_estimation [OPTIONS]

Examples:
    # Run with the default boundary and configuration
    forest-carbon-estimate --credentials service-account.json

    # Custom boundary and date range
    forest-carbon-estimate --coordinates boundary.json \\
        --start-date 2023-04-01 --end-date 2023-06-30 --num-samples 5000

    # Save the full result as JSON
    forest-carbon-estimate --output-json results/carbon.json

Exit codes:
    0 success, 1 remote engine failure, 2 configuration error,
    3 authentication failure, 4 insufficient data, 130 interrupted by user

Author: Diego Bengochea
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import List, Optional

import yaml

from shared_utils import ensure_directory, resolve_path, set_config_value, setup_logging

from carbon_estimation.core.estimation_pipeline import (
    ForestCarbonEstimationPipeline,
    load_estimation_config,
)
from carbon_estimation.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DegenerateInputError,
    RemoteCallError,
)
from carbon_estimation.core.reporting import format_summary

EXIT_SUCCESS = 0
EXIT_REMOTE_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_AUTHENTICATION_ERROR = 3
EXIT_INSUFFICIENT_DATA = 4
EXIT_INTERRUPTED = 130


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Forest carbon stock estimation with Google Earth Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --credentials key.json                     # Default boundary
  %(prog)s --coordinates '[[72.75,26.95],[72.8,26.95],[72.8,26.9],[72.75,26.9]]'
  %(prog)s --coordinates boundary.json --num-samples 5000
        """
    )

    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration file'
    )

    parser.add_argument(
        '--credentials',
        type=str,
        help='Service account JSON key file (overrides config)'
    )

    # Run options
    parser.add_argument(
        '--coordinates',
        type=str,
        help='Boundary as a JSON list of [lon, lat] pairs, or a path to a JSON file'
    )

    parser.add_argument(
        '--start-date',
        type=str,
        help='Start of the Sentinel composite date range (YYYY-MM-DD)'
    )

    parser.add_argument(
        '--end-date',
        type=str,
        help='End of the Sentinel composite date range (YYYY-MM-DD)'
    )

    parser.add_argument(
        '--num-samples',
        type=int,
        help='Number of stratified sample points (overrides config)'
    )

    parser.add_argument(
        '--split-ratio',
        type=float,
        help='Fraction of sample points used for training (overrides config)'
    )

    # Output
    parser.add_argument(
        '--output-json',
        type=str,
        help='Path to save the full result as JSON'
    )

    parser.add_argument(
        '--no-visualization',
        action='store_true',
        help='Skip thumbnail URL generation'
    )

    # Logging
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (overrides config)'
    )

    parser.add_argument(
        '--quiet',
        action='store_true',
        help='Suppress non-error output'
    )

    return parser.parse_args(argv)


def parse_coordinates(value: Optional[str]) -> Optional[list]:
    """
    Read boundary coordinates from a JSON string or a JSON file.

    Raises:
        ConfigurationError: If the value is neither valid JSON nor a readable file
    """
    if not value:
        return None

    try:
        if value.lstrip().startswith(('[', '{')):
            text = value
        else:
            text = resolve_path(Path(value)).read_text(encoding='utf-8')
        coordinates = json.loads(text)
    except OSError as e:
        raise ConfigurationError(f"Cannot read coordinates file {value}: {e}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Coordinates are not valid JSON: {e}")

    # Accept a GeoJSON polygon geometry as well as a bare ring
    if isinstance(coordinates, dict):
        geometry = coordinates.get('geometry') or coordinates
        rings = geometry.get('coordinates') or [None]
        coordinates = rings[0]
    if not isinstance(coordinates, list):
        raise ConfigurationError("Coordinates must be a list of [lon, lat] pairs")
    return coordinates


class CarbonEstimationRunner:
    """
    Carbon estimation runner.

    Applies command line overrides to the configuration, executes the
    pipeline and translates failures into exit codes.
    """

    def __init__(self, args: argparse.Namespace):
        """Initialize pipeline runner."""
        self.args = args
        self.config = self.create_pipeline_config()

        log_level = 'ERROR' if args.quiet else (args.log_level or self.config['logging'].get('level', 'INFO'))
        self.logger = setup_logging(
            level=log_level,
            component_name='carbon_estimation',
            log_file=self.config['logging'].get('log_file')
        )

        self.logger.info("CarbonEstimationRunner initialized")

    def create_pipeline_config(self) -> dict:
        """Create pipeline configuration with argument overrides."""
        config = load_estimation_config(self.args.config)

        if self.args.credentials:
            set_config_value(config, 'earth_engine.credentials_path', self.args.credentials)

        if self.args.no_visualization:
            set_config_value(config, 'visualization.enabled', False)

        return config

    def run_pipeline(self) -> int:
        """
        Execute the carbon estimation pipeline.

        Returns:
            int: Process exit code
        """
        args = self.args
        start_time = time.time()

        try:
            pipeline = ForestCarbonEstimationPipeline(self.config)
            options = pipeline.create_run_options(
                parse_coordinates(args.coordinates),
                start_date=args.start_date,
                end_date=args.end_date,
                num_samples=args.num_samples,
                split_ratio=args.split_ratio,
            )
            result = pipeline.run(options)
        except ConfigurationError as e:
            self.logger.error(f"Configuration error: {e}")
            return EXIT_CONFIGURATION_ERROR
        except AuthenticationError as e:
            self.logger.error(
                f"Google Earth Engine authentication failed: {e}. The service account "
                "credentials have expired or been revoked."
            )
            return EXIT_AUTHENTICATION_ERROR
        except DegenerateInputError as e:
            self.logger.error(str(e))
            return EXIT_INSUFFICIENT_DATA
        except RemoteCallError as e:
            self.logger.error(f"Remote engine failure: {e}")
            return EXIT_REMOTE_ERROR

        if not args.quiet:
            print(format_summary(result))

        if args.output_json:
            self._save_result(args.output_json, result.to_dict(), time.time() - start_time)

        return EXIT_SUCCESS

    def _save_result(self, output_path: str, payload: dict, duration: float) -> None:
        """Save the estimation result to a JSON file."""
        output_file = resolve_path(output_path)
        ensure_directory(output_file.parent)

        payload = dict(payload)
        payload['_meta'] = {
            'duration_seconds': duration,
            'config_file': self.config.get('_meta', {}).get('config_file'),
        }

        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2)

        self.logger.info(f"Result saved to {output_file}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    try:
        runner = CarbonEstimationRunner(args)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR

    try:
        return runner.run_pipeline()
    except KeyboardInterrupt:
        print("\n⚠️ Pipeline interrupted by user")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
