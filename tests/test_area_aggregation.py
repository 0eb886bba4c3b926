import pytest

from carbon_estimation.core.area_aggregation import (
    aggregate_class_areas,
    dense_forest_percent,
    total_area,
)
from carbon_estimation.core.vegetation import LandCoverClass


def test_records_are_ranked_by_descending_area():
    records = aggregate_class_areas({"30": 300, "10": 500, "50": 200})
    assert [int(r.id) for r in records] == [10, 30, 50]
    assert records[0].name == "Dense Forest"
    assert records[0].params.a == pytest.approx(0.0776)


def test_unknown_and_empty_classes_are_dropped():
    records = aggregate_class_areas({"10": 100, "999": 50, "abc": 7, "20": 0})
    assert [r.id for r in records] == [LandCoverClass.DENSE_FOREST]


def test_zero_coefficient_classes_keep_their_area():
    records = aggregate_class_areas({"80": 40, "10": 60})
    assert total_area(records) == 100


def test_total_area_equals_sum_of_records():
    histogram = {"10": 123.5, "20": 77.25, "60": 10, "95": 1.125}
    records = aggregate_class_areas(histogram)
    assert total_area(records) == sum(r.area_hectares for r in records)
    assert total_area(records) == pytest.approx(211.875)


def test_pixel_area_divisor_converts_counts_to_hectares():
    records = aggregate_class_areas({"10": 900}, pixel_area_divisor=100.0)
    assert records[0].area_hectares == pytest.approx(9.0)


def test_invalid_divisor_is_rejected():
    with pytest.raises(ValueError):
        aggregate_class_areas({"10": 1}, pixel_area_divisor=0)


def test_empty_histogram_yields_no_records_and_zero_area():
    records = aggregate_class_areas({})
    assert records == []
    assert total_area(records) == 0
    assert dense_forest_percent(records) == 0.0


def test_duplicate_keys_with_decimal_suffix_are_merged():
    records = aggregate_class_areas({"10": 5, "10.0": 7})
    assert len(records) == 1
    assert records[0].area_hectares == 12


def test_dense_forest_percent():
    records = aggregate_class_areas({"10": 500, "30": 300, "50": 200})
    assert dense_forest_percent(records) == pytest.approx(50.0)
