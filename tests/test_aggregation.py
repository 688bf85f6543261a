"""Tests for column aggregations."""

from decimal import Decimal

import pytest

from insights.services import ColumnAggregate, aggregate_values, compute_aggregations, to_number


class TestToNumber:
    """Test which cell values count as numbers."""

    @pytest.mark.parametrize("value, expected", [
        (10, 10.0),
        ("20", 20.0),
        (" 3.5 ", 3.5),
        (Decimal("1.25"), 1.25),
        (-4, -4.0),
    ])
    def test_parseable(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", [None, "abc", "", "12abc", True, False, float("nan"), "inf", {"a": 1}, [1]])
    def test_not_parseable(self, value):
        assert to_number(value) is None


class TestAggregations:
    """Test sum/avg/min/max/count semantics."""

    def test_mixed_values(self):
        rows = [{"qty": 10}, {"qty": "20"}, {"qty": "abc"}, {"qty": None}, {"qty": 5}]
        result = compute_aggregations(rows, ["qty"])["qty"]

        assert result.count == 3
        assert result.sum == 35
        assert result.avg == pytest.approx(11.6666666)
        assert result.min == 5
        assert result.max == 20

    def test_count_can_be_less_than_rows(self):
        rows = [{"qty": 1}, {"other": 2}, {"qty": "x"}]
        assert compute_aggregations(rows, ["qty"])["qty"].count == 1

    def test_no_parseable_values_gives_zero_average(self):
        result = compute_aggregations([{"qty": "n/a"}, {"qty": None}], ["qty"])["qty"]
        assert result == ColumnAggregate(sum=0.0, avg=0.0, min=None, max=None, count=0)

    def test_empty_rows(self):
        assert compute_aggregations([], ["qty", "price"]) == {
            "qty": ColumnAggregate(),
            "price": ColumnAggregate(),
        }

    def test_only_requested_columns(self):
        rows = [{"qty": 1, "price": 2}]
        assert list(compute_aggregations(rows, ["price"])) == ["price"]

    def test_idempotent(self):
        rows = [{"qty": 1.5}, {"qty": "2.25"}, {"qty": "bad"}]
        assert compute_aggregations(rows, ["qty"]) == compute_aggregations(rows, ["qty"])

    def test_input_rows_not_modified(self):
        rows = [{"qty": "7"}]
        compute_aggregations(rows, ["qty"])
        assert rows == [{"qty": "7"}]

    def test_negative_values(self):
        result = aggregate_values([-5, 5, "-10"])
        assert (result.min, result.max, result.sum) == (-10, 5, -10)

    def test_to_dict(self):
        assert aggregate_values([2, 4]).to_dict() == {"sum": 6, "avg": 3, "min": 2, "max": 4, "count": 2}
