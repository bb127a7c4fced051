"""Tests for cursor pagination and the sync accumulator."""

import pytest

from integrations.exceptions import PMSAPIError, SyncBudgetExceeded
from integrations.pms_envelope import decode_collection
from services.pagination import SyncAccumulator, paginate


def make_pages(pages: list[list[dict]], cursors: list[str | None]):
    """Build a fetch function serving ``pages`` with the given end cursors."""
    calls: list[dict] = []

    def fetch(**params):
        calls.append(params)
        index = len(calls) - 1
        cursor = cursors[index]
        return decode_collection({
            "data": pages[index],
            "page_info": {"has_next_page": cursor is not None, "end_cursor": cursor},
        })

    fetch.calls = calls
    return fetch


class TestPaginate:
    def test_walks_every_page(self):
        fetch = make_pages(
            [[{"id": 1}, {"id": 2}], [{"id": 3}], [{"id": 4}]],
            ["c1", "c2", None],
        )
        seen = []
        acc = SyncAccumulator()

        pages = paginate(fetch, lambda item: seen.append(item["id"]), "Patient", acc, page_size=2)

        assert pages == 3
        assert seen == [1, 2, 3, 4]
        assert acc.processed == 4
        assert fetch.calls == [
            {"per_page": 2},
            {"per_page": 2, "end_cursor": "c1"},
            {"per_page": 2, "end_cursor": "c2"},
        ]

    def test_repeated_cursor_stops(self):
        fetch = make_pages([[{"id": 1}], [{"id": 2}], [{"id": 3}]], ["same", "same", "same"])
        acc = SyncAccumulator()

        pages = paginate(fetch, lambda item: None, "Patient", acc)

        assert pages == 2
        assert acc.processed == 2

    def test_record_failure_isolated(self):
        fetch = make_pages([[{"id": i} for i in range(1, 11)]], [None])
        acc = SyncAccumulator()

        def process(item):
            if item["id"] == 5:
                raise ValueError("bad record")

        paginate(fetch, process, "Charge", acc)

        assert acc.processed == 9
        assert acc.failed == 1
        assert acc.errors == ["Charge 5: bad record"]

    def test_fetch_error_propagates(self):
        def fetch(**params):
            raise PMSAPIError("Server error", status_code=500)

        with pytest.raises(PMSAPIError):
            paginate(fetch, lambda item: None, "Patient", SyncAccumulator())

    def test_budget_checked_between_pages(self):
        fetch = make_pages([[{"id": 1}], [{"id": 2}]], ["c1", None])
        ticks = iter([0.0, 100.0])

        with pytest.raises(SyncBudgetExceeded, match="Patient"):
            paginate(
                fetch, lambda item: None, "Patient", SyncAccumulator(),
                deadline=50.0, clock=lambda: next(ticks),
            )

        assert len(fetch.calls) == 1


class TestSyncAccumulator:
    def test_merge_keeps_order(self):
        first = SyncAccumulator(processed=2, failed=1, errors=["a"])
        second = SyncAccumulator(processed=3, errors=["b"])

        first.merge(second)

        assert (first.processed, first.failed, first.errors) == (5, 1, ["a", "b"])

    def test_record_error_not_counted_as_failure(self):
        acc = SyncAccumulator()

        acc.record_error("Step 4 (providers): boom")

        assert acc.failed == 0
        assert acc.errors == ["Step 4 (providers): boom"]
