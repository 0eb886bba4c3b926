import json

import pytest
import yaml

from carbon_estimation.core.estimation_pipeline import ForestCarbonEstimationPipeline
from carbon_estimation.core.exceptions import AuthenticationError, ConfigurationError, RemoteCallError
from carbon_estimation.scripts import run_carbon_estimation as cli
from carbon_estimation.scripts.run_carbon_estimation import main, parse_coordinates

RING = [[72.75, 26.95], [72.8, 26.95], [72.8, 26.9], [72.75, 26.9]]


def test_coordinates_from_json_string():
    assert parse_coordinates(json.dumps(RING)) == RING


def test_coordinates_from_file(tmp_path):
    path = tmp_path / "boundary.json"
    path.write_text(json.dumps(RING))
    assert parse_coordinates(str(path)) == RING


def test_coordinates_from_geojson_feature():
    feature = {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": [RING]}}
    assert parse_coordinates(json.dumps(feature)) == RING


def test_no_coordinates():
    assert parse_coordinates(None) is None


@pytest.mark.parametrize("value", ["[[1, 2], [3", "does/not/exist.json", '{"type": "Polygon"}'])
def test_bad_coordinates(value):
    with pytest.raises(ConfigurationError):
        parse_coordinates(value)


@pytest.fixture
def patched_pipeline(monkeypatch, make_session):
    """Route the CLI through an in-memory engine session."""
    def install(**session_kwargs):
        session = make_session(**session_kwargs)
        monkeypatch.setattr(
            cli, "ForestCarbonEstimationPipeline",
            lambda config: ForestCarbonEstimationPipeline(config, session=session),
        )
        return session
    return install


def test_missing_credentials_exit_code(monkeypatch):
    monkeypatch.delenv("GOOGLE_CREDENTIALS", raising=False)
    assert main(["--no-visualization", "--quiet"]) == cli.EXIT_CONFIGURATION_ERROR


def test_missing_config_file_exit_code(tmp_path):
    assert main(["--config", str(tmp_path / "missing.yaml")]) == cli.EXIT_CONFIGURATION_ERROR


def test_invalid_run_options_exit_code(patched_pipeline):
    patched_pipeline()
    assert main(["--split-ratio", "1.5", "--quiet"]) == cli.EXIT_CONFIGURATION_ERROR


def test_successful_run_writes_json(patched_pipeline, tmp_path, capsys):
    patched_pipeline()
    output = tmp_path / "results" / "carbon.json"

    exit_code = main([
        "--coordinates", json.dumps(RING),
        "--num-samples", "500",
        "--output-json", str(output),
        "--log-level", "WARNING",
    ])

    assert exit_code == cli.EXIT_SUCCESS
    assert "Forest Carbon Tier: Gold" in capsys.readouterr().out
    payload = json.loads(output.read_text())
    assert payload["tier"] == "Gold"
    assert payload["_meta"]["config_file"].endswith("config.yaml")


@pytest.mark.parametrize(
    "session_kwargs, expected",
    [
        ({"fail_on": "authenticate", "error": AuthenticationError("invalid_grant")},
         cli.EXIT_AUTHENTICATION_ERROR),
        ({"fail_on": "class_histogram", "error": RemoteCallError("503", operation="class histogram")},
         cli.EXIT_REMOTE_ERROR),
        ({"histogram": {}}, cli.EXIT_INSUFFICIENT_DATA),
    ],
)
def test_failure_exit_codes(patched_pipeline, session_kwargs, expected):
    patched_pipeline(**session_kwargs)
    assert main(["--quiet"]) == expected


def test_malformed_coordinates_exit_code(patched_pipeline):
    session = patched_pipeline()
    assert main(["--coordinates", "[1, 2, 3]", "--quiet"]) == cli.EXIT_CONFIGURATION_ERROR
    assert session.calls == []


def test_invalid_pixel_area_divisor_exit_code(patched_pipeline, packaged_config, tmp_path):
    session = patched_pipeline()
    config = {key: value for key, value in packaged_config.items() if key != "_meta"}
    config["sampling"] = dict(config["sampling"], pixel_area_divisor=0)
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(config))

    assert main(["--config", str(path), "--quiet"]) == cli.EXIT_CONFIGURATION_ERROR
    assert session.calls == []


def test_interrupt_has_its_own_exit_code(monkeypatch):
    def interrupted(self):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli.CarbonEstimationRunner, "run_pipeline", interrupted)
    assert main(["--quiet"]) == cli.EXIT_INTERRUPTED == 130
