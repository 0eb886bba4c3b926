import math

import pytest

from carbon_estimation.core.area_aggregation import aggregate_class_areas
from carbon_estimation.core.carbon_stock import (
    CARBON_FRACTION,
    CO2_TO_CARBON_RATIO,
    ClassHeightStatistics,
    calculate_carbon_record,
    calculate_carbon_report,
    estimate_biomass,
)
from carbon_estimation.core.exceptions import DegenerateInputError


def test_dense_forest_scenario_follows_power_law():
    records = aggregate_class_areas({"10": 100})
    record = calculate_carbon_record(records[0], 20.0, 2.0, 100.0)

    expected_biomass = 0.0776 * math.pow(20.0, 1.58)
    assert record.biomass == pytest.approx(expected_biomass)
    assert record.biomass == pytest.approx(8.82, abs=0.01)
    assert record.carbon_stock == pytest.approx(expected_biomass * 0.47 * 100)
    assert record.annual_sequestration == pytest.approx(record.carbon_stock * 0.025)
    assert record.co2_equivalent == pytest.approx(record.carbon_stock * 3.67)
    assert record.area_percent == 100.0


@pytest.mark.parametrize("height", [None, float("nan"), 0.0, -3.0])
def test_missing_or_non_positive_height_gives_zero_biomass(height):
    assert estimate_biomass(height, 0.0776, 1.58) == 0.0


def test_zero_coefficient_class_contributes_area_but_no_carbon():
    records = aggregate_class_areas({"80": 50, "10": 50})
    report = calculate_carbon_report(records, {
        10: ClassHeightStatistics(12.0, 1.0),
        80: ClassHeightStatistics(4.0, 0.5),
    })
    water = next(r for r in report.records if int(r.id) == 80)

    assert water.biomass == 0.0
    assert water.carbon_stock == 0.0
    assert water.co2_equivalent == 0.0
    assert water.area_percent == 50.0
    assert report.total_area == 100


def test_report_totals_are_sums_of_records():
    records = aggregate_class_areas({"10": 400, "20": 250, "30": 300, "60": 50})
    report = calculate_carbon_report(records, {
        10: ClassHeightStatistics(18.0, 4.0),
        20: ClassHeightStatistics(3.5, 1.0),
        30: ClassHeightStatistics(1.2, 0.4),
        60: ClassHeightStatistics(None, None),
    })

    assert report.total_carbon == pytest.approx(sum(r.carbon_stock for r in report.records))
    assert report.total_annual_sequestration == pytest.approx(
        sum(r.annual_sequestration for r in report.records)
    )
    assert report.total_co2_equivalent == pytest.approx(report.total_carbon * CO2_TO_CARBON_RATIO)
    for record in report.records:
        assert record.carbon_stock == pytest.approx(
            record.biomass * CARBON_FRACTION * record.area_hectares
        )
        assert record.annual_sequestration == pytest.approx(
            record.carbon_stock * record.sequestration_rate
        )


def test_missing_statistics_default_to_zero_height():
    records = aggregate_class_areas({"20": 10})
    report = calculate_carbon_report(records, {})
    assert report.records[0].height_mean == 0.0
    assert report.records[0].height_std_dev == 0.0
    assert report.total_carbon == 0.0


def test_area_percent_is_rounded_to_two_decimals():
    records = aggregate_class_areas({"10": 1, "20": 2})
    report = calculate_carbon_report(records, {})
    assert [r.area_percent for r in report.records] == [66.67, 33.33]


def test_report_keeps_ranking_order():
    records = aggregate_class_areas({"30": 10, "10": 30, "20": 20})
    report = calculate_carbon_report(records, {})
    assert [int(r.id) for r in report.records] == [10, 20, 30]


def test_empty_area_records_are_rejected():
    with pytest.raises(DegenerateInputError):
        calculate_carbon_report([], {})


def test_zero_total_area_is_rejected_for_single_record():
    records = aggregate_class_areas({"10": 10})
    with pytest.raises(DegenerateInputError):
        calculate_carbon_record(records[0], 10.0, 1.0, 0.0)


def test_report_serializes_with_camel_case_totals():
    records = aggregate_class_areas({"10": 10})
    payload = calculate_carbon_report(records, {10: ClassHeightStatistics(10.0, 1.0)}).to_dict()
    assert set(payload) == {
        "vegetationCarbon", "totalArea", "totalCarbon", "totalAnnualSeq", "totalCO2Eq"
    }
    assert payload["vegetationCarbon"][0]["carbonParameters"]["sequestrationRate"] == 0.025


def test_report_dataframe_has_one_row_per_class():
    records = aggregate_class_areas({"10": 10, "30": 5})
    df = calculate_carbon_report(records, {}).to_dataframe()
    assert len(df) == 2
    assert list(df["id"]) == [10, 30]
