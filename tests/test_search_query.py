from datetime import time

import pytest

from app.core.errors import ValidationFailed
from app.services.search_query import CleanupSearchQuery, SearchFilters, sort_newest_first, text_matches
from tests.conftest import utc


def make_record(**overrides):
    record = {
        "problem_type": "litter",
        "problem_label": "Litter & Trash",
        "location": "Main St & 3rd Ave",
        "description": "Overflowing bins next to the bus stop.",
        "contact_info": {"name": "Ama Mensah", "phone": "+233 24 123 4567"},
        "other_details": {},
        "status": "pending",
        "severity": "medium",
        "created_at": utc(2026, 10, 10, 9, 0),
    }
    record.update(overrides)
    return record


def test_text_match_is_case_insensitive_substring():
    record = make_record()
    assert text_matches(record, "main st")
    assert text_matches(record, "BUS")
    assert text_matches(record, "mensah")
    assert text_matches(record, "trash")
    assert not text_matches(record, "graffiti")


def test_text_match_covers_custom_problem_type():
    record = make_record(problem_type="other", problem_label="Other Service",
                         other_details={"custom_problem_type": "Dead animal removal"})
    assert text_matches(record, "dead animal")


def test_blank_query_matches_everything():
    assert text_matches(make_record(), "   ")


def test_all_and_blank_mean_no_filter():
    filters = SearchFilters.from_params(status="all", severity="", problem_type="all")
    assert filters.is_empty()


def test_bad_parameters_are_reported_together():
    with pytest.raises(ValidationFailed) as exc:
        SearchFilters.from_params(status="done", severity="extreme", date_from="yesterday")
    fields = {error["field"] for error in exc.value.errors}
    assert fields == {"status", "severity", "dateFrom"}


def test_date_only_upper_bound_covers_whole_day():
    filters = SearchFilters.from_params(date_from="2026-10-01", date_to="2026-10-10")
    assert filters.date_from == utc(2026, 10, 1)
    assert filters.date_to.date() == utc(2026, 10, 10).date()
    assert filters.date_to.time() == time.max


def test_matches_combines_text_and_filters():
    search = CleanupSearchQuery("main st", SearchFilters(status="completed"))
    assert search.matches(make_record(status="completed"))
    assert not search.matches(make_record(status="pending"))
    assert not search.matches(make_record(status="completed", location="Harbour Rd",
                                          description="Paint on the sea wall"))


def test_date_range_is_inclusive():
    day = utc(2026, 10, 10, 9, 0)
    search = CleanupSearchQuery("", SearchFilters(date_from=day, date_to=day))
    assert search.matches(make_record(created_at=day))
    assert not search.matches(make_record(created_at=utc(2026, 10, 10, 9, 1)))
    assert not search.matches(make_record(created_at=None))


def test_run_pushes_filters_to_store_and_sorts(db):
    collection = db.collection("cleanup_requests")
    collection.document("old").set(make_record(created_at=utc(2026, 1, 1)))
    collection.document("new").set(make_record(created_at=utc(2026, 6, 1)))
    collection.document("other").set(make_record(created_at=utc(2026, 3, 1), severity="high"))

    results = CleanupSearchQuery("", SearchFilters(severity="medium")).run(collection)
    assert [r["id"] for r in results] == ["new", "old"]


def test_sort_puts_undated_records_last():
    records = [{"id": "a", "created_at": None}, {"id": "b", "created_at": utc(2026, 1, 1)}]
    assert [r["id"] for r in sort_newest_first(records)] == ["b", "a"]
