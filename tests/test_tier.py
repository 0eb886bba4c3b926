import pytest

from carbon_estimation.core.area_aggregation import aggregate_class_areas
from carbon_estimation.core.carbon_stock import CarbonReport, ClassHeightStatistics, calculate_carbon_report
from carbon_estimation.core.exceptions import DegenerateInputError
from carbon_estimation.core.tier import Tier, assess_tier, classify_tier


@pytest.mark.parametrize(
    "dense_percent, co2_per_ha, mean_height, expected",
    [
        (75, 4, 12, Tier.PLATINUM),
        (20, 0.5, 3, Tier.BRONZE),
        (5, 5, 8, Tier.GREY),
        (50, 2, 8, Tier.GOLD),
        (30, 2, 7.5, Tier.GOLD),
        (10, 1, 6, Tier.SILVER),
        (70, 4, 12, Tier.GOLD),
        (1, 0.99, 4.9, Tier.BRONZE),
        (0.5, 0.5, 3, Tier.GREY),
        (15, 0.5, 6, Tier.GREY),
    ],
)
def test_decision_table(dense_percent, co2_per_ha, mean_height, expected):
    assert classify_tier(dense_percent, co2_per_ha, mean_height) is expected


def test_first_matching_rule_wins():
    # satisfies both the Platinum and Gold rules
    assert classify_tier(90, 10, 20) is Tier.PLATINUM


def test_tier_value_is_display_name():
    assert Tier.GREY.value == "Grey"


def test_assess_tier_derives_inputs_from_report():
    records = aggregate_class_areas({"10": 800, "20": 200})
    report = calculate_carbon_report(records, {
        10: ClassHeightStatistics(20.0, 2.0),
        20: ClassHeightStatistics(4.0, 1.0),
    })
    assessment = assess_tier(report, records, 14.0)

    assert assessment.dense_forest_percent == pytest.approx(80.0)
    assert assessment.co2_per_hectare == pytest.approx(report.total_co2_equivalent / 1000)
    assert assessment.sequestration_per_hectare == pytest.approx(
        report.total_annual_sequestration / 1000
    )
    assert assessment.tier is Tier.PLATINUM
    assert assessment.to_dict()["tier"] == "Platinum"


def test_assess_tier_rejects_zero_area():
    with pytest.raises(DegenerateInputError):
        assess_tier(CarbonReport(), [], 10.0)


def test_assess_tier_rejects_missing_mean_height():
    records = aggregate_class_areas({"10": 10})
    report = calculate_carbon_report(records, {})
    with pytest.raises(DegenerateInputError):
        assess_tier(report, records, None)
