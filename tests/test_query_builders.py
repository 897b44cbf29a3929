"""Tests for partial-update assignments and the aggregation/list queries."""

from datetime import date, datetime
from uuid import UUID

import pytest

from app.core.errors import InvalidDateFormat, NoFieldsToUpdate
from app.utils.query_builders import (
    DEFAULT_LIST_LIMIT,
    build_aggregate_query,
    build_list_query,
    build_update_assignments,
    normalize_limit,
    normalize_offset,
)
from app.schemas.subscription import SubscriptionUpdate
from tests.conftest import USER_ID


@pytest.mark.unit
class TestBuildUpdateAssignments:
    def test_all_fields_in_order_with_timestamp_last(self):
        data = SubscriptionUpdate(service_name="Spotify", price=499, start_date="02-2024", end_date="05-2024")

        assignments = build_update_assignments(data)

        assert list(assignments) == ["service_name", "price", "start_date", "end_date", "updated_at"]
        assert assignments["start_date"] == date(2024, 2, 1)
        assert assignments["end_date"] == date(2024, 5, 1)
        assert isinstance(assignments["updated_at"], datetime)

    def test_clear_sentinel_sets_end_date_to_none(self):
        assignments = build_update_assignments(SubscriptionUpdate(end_date="null"))

        assert "end_date" in assignments
        assert assignments["end_date"] is None

    def test_no_fields_raises(self):
        with pytest.raises(NoFieldsToUpdate):
            build_update_assignments(SubscriptionUpdate())

    def test_empty_strings_count_as_absent(self):
        with pytest.raises(NoFieldsToUpdate):
            build_update_assignments(SubscriptionUpdate(service_name="", start_date="", end_date=""))

    def test_zero_price_is_treated_as_not_provided(self):
        with pytest.raises(NoFieldsToUpdate):
            build_update_assignments(SubscriptionUpdate(price=0))

        assignments = build_update_assignments(SubscriptionUpdate(price=0, service_name="Hulu"))
        assert "price" not in assignments

    def test_bad_date_aborts_whole_update(self):
        with pytest.raises(InvalidDateFormat) as exc_info:
            build_update_assignments(SubscriptionUpdate(service_name="Hulu", end_date="99-2024"))

        assert exc_info.value.errors[0].field == "end_date"


@pytest.mark.unit
class TestAggregateQuery:
    def test_base_query(self):
        sql = str(build_aggregate_query(date(2024, 1, 1), date(2024, 3, 1)))

        assert "sum(subscriptions.price)" in sql
        assert "subscriptions.start_date >=" in sql
        assert "subscriptions.end_date IS NULL" in sql
        assert "subscriptions.user_id" not in sql
        assert "lower(subscriptions.service_name)" not in sql

    def test_filters(self):
        sql = str(
            build_aggregate_query(date(2024, 1, 1), date(2024, 3, 1), user_id=UUID(USER_ID), service_name="net")
        )

        assert "subscriptions.user_id =" in sql
        assert "lower(subscriptions.service_name) LIKE" in sql


@pytest.mark.unit
class TestListQuery:
    def test_ordering_and_pagination(self):
        sql = str(build_list_query(limit=10, offset=5))

        assert "ORDER BY subscriptions.created_at DESC" in sql
        assert "LIMIT" in sql
        assert "OFFSET" in sql

    @pytest.mark.parametrize(
        "raw, expected",
        [(None, DEFAULT_LIST_LIMIT), ("abc", DEFAULT_LIST_LIMIT), ("0", DEFAULT_LIST_LIMIT),
         ("1001", DEFAULT_LIST_LIMIT), ("1", 1), ("1000", 1000), ("25", 25)],
    )
    def test_normalize_limit(self, raw, expected):
        assert normalize_limit(raw) == expected

    @pytest.mark.parametrize("raw, expected", [(None, 0), ("-1", 0), ("x", 0), ("0", 0), ("40", 40)])
    def test_normalize_offset(self, raw, expected):
        assert normalize_offset(raw) == expected
