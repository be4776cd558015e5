"""
Tests for event log pagination and reason extraction.
"""

import pytest

from cfnwatch.errors import TransportError
from cfnwatch.events import EventLogReader
from cfnwatch.reasons import (
    ReasonExtractor,
    STACK_RESOURCE_TYPE,
    is_failure,
    is_rollback,
    is_stack_deletion,
    predicate_for,
)
from cfnwatch.status import DiagnosticStrategy


class TestEventLogReader:
    """Test page iteration."""

    def test_pages_follow_tokens_until_exhausted(self, make_transport, make_event, stack_id):
        """Test that pages are fetched until the token runs out."""
        events = [make_event("CREATE_COMPLETE", t) for t in (50, 40, 30, 20, 10)]
        transport = make_transport(events=events, page_size=2)

        pages = list(EventLogReader(transport).pages(stack_id))

        assert [len(p) for p in pages] == [2, 2, 1]
        assert transport.called("fetch_event_page") == 3
        assert [c[2] for c in transport.calls] == [None, "2", "4"]

    def test_events_keep_newest_first_order_across_pages(self, make_transport, make_event, stack_id):
        """Test that flattening keeps newest-first order."""
        events = [make_event("CREATE_COMPLETE", t) for t in (50, 40, 30)]
        transport = make_transport(events=events, page_size=2)

        flattened = list(EventLogReader(transport).events(stack_id))
        assert flattened == events

    def test_empty_log_yields_one_empty_page(self, make_transport, stack_id):
        """Test an empty event log."""
        reader = EventLogReader(make_transport(events=[]))
        assert list(reader.pages(stack_id)) == [[]]
        assert reader.latest_event(stack_id) is None

    def test_latest_event_reads_only_first_page(self, make_transport, make_event, stack_id):
        """Test that the latest event needs a single page."""
        events = [make_event("UPDATE_COMPLETE", t) for t in (90, 80, 70)]
        transport = make_transport(events=events, page_size=1)

        latest = EventLogReader(transport).latest_event(stack_id)

        assert latest == events[0]
        assert transport.called("fetch_event_page") == 1

    def test_each_call_restarts_from_newest(self, make_transport, make_event, stack_id):
        """Test that every read starts from the newest event."""
        events = [make_event("CREATE_COMPLETE", t) for t in (3, 2, 1)]
        reader = EventLogReader(make_transport(events=events, page_size=1))

        assert list(reader.events(stack_id)) == list(reader.events(stack_id))

    def test_transport_error_propagates(self, make_transport, stack_id):
        """Test that transport failures are not retried."""
        transport = make_transport()

        def broken(stack_id, token=None):
            raise TransportError("connection reset")

        transport.fetch_event_page = broken
        with pytest.raises(TransportError):
            list(EventLogReader(transport).pages(stack_id))


class TestPredicates:
    """Test the three diagnostic predicates."""

    def test_failure_needs_reason(self, make_event):
        """Test that failures without a reason are ignored."""
        assert is_failure(make_event("CREATE_FAILED", reason="boom"))
        assert not is_failure(make_event("CREATE_FAILED"))
        assert not is_failure(make_event("CREATE_COMPLETE", reason="fine"))

    def test_rollback(self, make_event):
        """Test the rollback predicate."""
        assert is_rollback(make_event("ROLLBACK_IN_PROGRESS", reason="rolling back"))
        assert is_rollback(make_event("UPDATE_FAILED", reason="bad"))
        assert not is_rollback(make_event("ROLLBACK_COMPLETE"))
        assert not is_rollback(make_event("UPDATE_ROLLBACK_IN_PROGRESS", reason="not a stack rollback"))

    def test_stack_deletion(self, make_event):
        """Test the stack deletion predicate."""
        trigger = make_event("DELETE_IN_PROGRESS", reason="The following resource(s) failed to create",
                             resource_type=STACK_RESOURCE_TYPE)
        assert is_stack_deletion(trigger)
        assert not is_stack_deletion(make_event("DELETE_IN_PROGRESS", reason="cleanup"))
        assert is_stack_deletion(make_event("DELETE_FAILED", reason="in use"))

    def test_predicate_for_strategy(self):
        """Test mapping strategies to predicates."""
        assert predicate_for(DiagnosticStrategy.ROLLBACK) is is_rollback
        with pytest.raises(ValueError):
            predicate_for(DiagnosticStrategy.NONE)


class TestReasonExtractor:
    """Test reason collection over the whole log."""

    def test_no_window_includes_every_match(self, make_transport, make_event, stack_id):
        """Test extraction over the whole log."""
        events = [
            make_event("ROLLBACK_COMPLETE", 40),
            make_event("CREATE_FAILED", 30, reason="Resource X limit exceeded"),
            make_event("CREATE_FAILED", 20, reason="Resource Y cancelled"),
            make_event("CREATE_IN_PROGRESS", 10, reason="User Initiated"),
        ]
        extractor = ReasonExtractor(EventLogReader(make_transport(events=events, page_size=1)))

        reasons = extractor.extract(stack_id, is_rollback)
        assert reasons == ["Resource X limit exceeded", "Resource Y cancelled"]

    @pytest.mark.parametrize("page_size", [1, 2, 3, 10])
    def test_window_excludes_events_at_or_before_after(self, make_transport, make_event, at_time,
                                                       stack_id, page_size):
        """Test that the window start itself is excluded."""
        events = [
            make_event("UPDATE_FAILED", 120, reason="timeout"),
            make_event("UPDATE_FAILED", 100, reason="same second as window"),
            make_event("UPDATE_FAILED", 50, reason="stale"),
        ]
        extractor = ReasonExtractor(EventLogReader(make_transport(events=events, page_size=page_size)))

        assert extractor.extract(stack_id, is_failure, after=at_time(100)) == ["timeout"]

    def test_window_skips_rather_than_stops(self, make_transport, make_event, at_time, stack_id):
        """Test that an old event does not end the scan."""
        # Newer event after an older one on the next page must still be seen
        events = [
            make_event("UPDATE_FAILED", 150, reason="first"),
            make_event("UPDATE_FAILED", 90, reason="old"),
            make_event("UPDATE_FAILED", 130, reason="late page"),
        ]
        extractor = ReasonExtractor(EventLogReader(make_transport(events=events, page_size=2)))

        assert extractor.extract(stack_id, is_failure, after=at_time(100)) == ["first", "late page"]

    def test_extract_for_strategy(self, make_transport, make_event, stack_id):
        """Test extraction by diagnostic strategy."""
        events = [
            make_event("DELETE_COMPLETE", 30, resource_type=STACK_RESOURCE_TYPE),
            make_event("DELETE_IN_PROGRESS", 20, reason="Stack creation failed",
                       resource_type=STACK_RESOURCE_TYPE),
            make_event("CREATE_FAILED", 10, reason="Bucket already exists"),
        ]
        extractor = ReasonExtractor(EventLogReader(make_transport(events=events)))

        reasons = extractor.extract_for(stack_id, DiagnosticStrategy.STACK_DELETION)
        assert reasons == ["Stack creation failed", "Bucket already exists"]
