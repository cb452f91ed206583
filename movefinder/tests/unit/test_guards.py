import pytest
from datetime import date
from fastapi import HTTPException
from movefinder.core.enums import QuoteStatus, HistorySource
from movefinder.core.guards import check_not_found, check_status_transition, check_submittable
from movefinder.core.history import record_change
from movefinder.models.quote_history import QuoteHistory


class FakeSession:
    def __init__(self):
        self.added = []

    def add(self, obj):
        self.added.append(obj)


@pytest.mark.parametrize("current,target", [
    (QuoteStatus.PENDING, QuoteStatus.QUOTED),
    (QuoteStatus.PENDING, QuoteStatus.CANCELLED),
    (QuoteStatus.QUOTED, QuoteStatus.BOOKED),
    (QuoteStatus.BOOKED, QuoteStatus.COMPLETED),
    (QuoteStatus.BOOKED, QuoteStatus.CANCELLED),
    (QuoteStatus.COMPLETED, QuoteStatus.COMPLETED),
])
def test_allowed_transitions(current, target):
    check_status_transition(current, target)


@pytest.mark.parametrize("current,target", [
    (QuoteStatus.PENDING, QuoteStatus.BOOKED),
    (QuoteStatus.QUOTED, QuoteStatus.PENDING),
    (QuoteStatus.COMPLETED, QuoteStatus.CANCELLED),
    (QuoteStatus.CANCELLED, QuoteStatus.PENDING),
])
def test_rejected_transitions(current, target):
    with pytest.raises(HTTPException) as exc:
        check_status_transition(current, target)
    assert exc.value.status_code == 400


def test_submittable_statuses():
    check_submittable(QuoteStatus.PENDING)
    check_submittable(QuoteStatus.QUOTED)
    with pytest.raises(HTTPException):
        check_submittable(QuoteStatus.BOOKED)


def test_not_found():
    with pytest.raises(HTTPException) as exc:
        check_not_found(None, "Quote", 12)
    assert exc.value.status_code == 404
    assert exc.value.detail == "Quote with id 12 not found"


def test_record_change_formats_values():
    db = FakeSession()
    entry = record_change(db, 1, "move_date", date(2025, 6, 1), date(2025, 6, 2))
    assert isinstance(entry, QuoteHistory)
    assert (entry.old_value, entry.new_value, entry.changed_by) == ("2025-06-01", "2025-06-02", "api")

    entry = record_change(db, 1, "status", QuoteStatus.PENDING, QuoteStatus.QUOTED, HistorySource.SUBMISSION)
    assert (entry.old_value, entry.new_value, entry.changed_by) == ("pending", "quoted", "submission")
    assert len(db.added) == 2


def test_record_change_skips_unchanged_values():
    db = FakeSession()
    assert record_change(db, 1, "estimated_cost", 1045.0, 1045) is None
    assert record_change(db, 1, "notes", None, None) is None
    assert db.added == []
