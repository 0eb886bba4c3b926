import logging

import pytest

from shared_utils.logging_utils import (
    format_duration,
    get_logger,
    log_pipeline_end,
    log_pipeline_start,
)


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "00:00:00"), (59.9, "00:00:59"), (3725, "01:02:05"), (90061, "25:01:01")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_component_loggers_share_namespace():
    assert get_logger("carbon_estimation.tier").name == "forest_carbon.carbon_estimation.tier"


def test_run_parameters_are_logged_one_per_line(caplog):
    logger = get_logger("carbon_estimation")
    with caplog.at_level(logging.INFO, logger="forest_carbon"):
        log_pipeline_start(logger, "forest carbon estimation", {
            "vertices": 4,
            "start_date": "2021-04-01",
        })

    messages = [record.getMessage() for record in caplog.records]
    assert "STARTING PIPELINE: FOREST CARBON ESTIMATION" in messages
    assert "  vertices: 4" in messages
    assert "  start_date: 2021-04-01" in messages


def test_failed_run_is_logged_as_error(caplog):
    logger = get_logger("carbon_estimation")
    with caplog.at_level(logging.INFO, logger="forest_carbon"):
        log_pipeline_end(logger, "forest carbon estimation", success=False, elapsed_time=0.4)

    failures = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(failures) == 1
    assert "PIPELINE FAILED" in failures[0].getMessage()
    assert any(r.getMessage() == "Total execution time: 00:00:00" for r in caplog.records)
