"""Query builder tests."""

from datetime import date

from extraction.query import build_request
from models.controlling import CriterionField, CriterionOption, ExtractionRequest


def _request(**overrides) -> ExtractionRequest:
    data = dict(
        controlling_area="1000",
        from_date=date(2024, 1, 1),
        to_date=date(2024, 1, 31),
        cost_centers=["0010", "0020"],
    )
    data.update(overrides)
    return ExtractionRequest(**data)


class TestBuildRequest:

    def test_date_range_is_first_criterion(self):
        query = build_request(_request())
        first = query.criteria[0]
        assert first.field == CriterionField.POSTING_DATE
        assert first.option == CriterionOption.BETWEEN
        assert first.sign == "I"
        assert first.low == "2024-01-01"
        assert first.high == "2024-01-31"

    def test_one_equality_criterion_per_cost_center_in_order(self):
        query = build_request(_request(cost_centers=["0030", "0010", "0020"]))
        cost_center_criteria = query.criteria[1:]
        assert [c.low for c in cost_center_criteria] == ["0030", "0010", "0020"]
        assert all(c.field == CriterionField.COST_CENTER for c in cost_center_criteria)
        assert all(c.option == CriterionOption.EQUAL for c in cost_center_criteria)
        assert all(c.high is None for c in cost_center_criteria)
        assert query.cost_centers == ["0030", "0010", "0020"]

    def test_duplicate_cost_centers_collapse(self):
        query = build_request(_request(cost_centers=["0010", "0020", "0010"]))
        assert query.cost_centers == ["0010", "0020"]

    def test_validated_subset_overrides_requested(self):
        query = build_request(_request(cost_centers=["0010", "9999"]), ["0010"])
        assert query.cost_centers == ["0010"]
        assert len(query.criteria) == 2

    def test_always_returns_items_and_costs(self):
        query = build_request(_request())
        assert query.return_items is True
        assert query.return_costs is True

    def test_period_only_when_configured(self):
        assert build_request(_request()).period is None
        assert build_request(_request(period=3)).period == 3

    def test_controlling_area(self):
        assert build_request(_request(controlling_area="2000")).controlling_area == "2000"

    def test_pure(self):
        request = _request(period=12)
        assert build_request(request) == build_request(request)

    def test_single_day_range(self):
        query = build_request(_request(from_date="2024-02-29", to_date="2024-02-29"))
        assert query.criteria[0].low == query.criteria[0].high == "2024-02-29"

    def test_describe(self):
        query = build_request(_request(period=1))
        assert query.describe() == "co_area=1000 period=1 posting_date=2024-01-01..2024-01-31 cost_centers=0010,0020"
