"""
Shared fakes for engine tests: an in-memory transport and a fake clock.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from cfnwatch.client import StackTransport
from cfnwatch.models import EventPage, StackDescription, StackEvent, StatusReport
from cfnwatch.status import ResourceStatus, StackStatus

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)
STACK_ID = "arn:aws:cloudformation:us-west-2:123456789012:stack/demo/abc"


def at(seconds: float) -> datetime:
    return BASE_TIME + timedelta(seconds=seconds)


class FakeClock:
    """Clock whose sleeps only move a counter forward."""

    def __init__(self, on_sleep=None):
        self.t = 0.0
        self.sleeps: List[float] = []
        self.on_sleep = on_sleep

    def now(self) -> float:
        return self.t

    def sleep(self, seconds, cancel_event) -> None:
        self.sleeps.append(seconds)
        self.t += seconds
        if self.on_sleep:
            self.on_sleep(self, cancel_event)


class FakeTransport(StackTransport):
    """
    In-memory control plane.

    ``statuses`` is consumed one entry per describe; the last entry repeats.
    A None entry means the stack is not found. ``events`` is newest first
    and served in pages of ``page_size``.
    """

    def __init__(self, statuses=None, events=None, page_size=2, stack_id=STACK_ID):
        self.statuses: List[Optional[StackStatus]] = list(statuses or [])
        self.events: List[StackEvent] = list(events or [])
        self.page_size = page_size
        self.stack_id = stack_id
        self.create_error = None
        self.update_error = None
        self.delete_error = None
        self.description: Optional[StackDescription] = None
        self.last_updated: Optional[datetime] = None
        self.calls: List[tuple] = []
        # Events that only appear once the update is submitted
        self.events_after_submit: List[StackEvent] = []

    def submit_create(self, name, definition):
        self.calls.append(("submit_create", name, dict(definition)))
        if self.create_error:
            raise self.create_error
        return self.stack_id

    def submit_update(self, stack_id, definition):
        self.calls.append(("submit_update", stack_id, dict(definition)))
        if self.update_error:
            raise self.update_error
        self.events = self.events_after_submit + self.events

    def submit_delete(self, stack_id):
        self.calls.append(("submit_delete", stack_id))
        if self.delete_error:
            raise self.delete_error

    def describe_status(self, stack_id):
        self.calls.append(("describe_status", stack_id))
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if status is None:
            return None
        return StatusReport(stack_id=self.stack_id, status=status, last_updated=self.last_updated)

    def fetch_event_page(self, stack_id, token=None):
        self.calls.append(("fetch_event_page", stack_id, token))
        start = int(token) if token else 0
        end = start + self.page_size
        next_token = str(end) if end < len(self.events) else None
        return EventPage(events=self.events[start:end], next_token=next_token)

    def describe_stack(self, stack_id):
        self.calls.append(("describe_stack", stack_id))
        return self.description

    def called(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


def event(status: str, seconds: float = 0, reason: Optional[str] = None,
          resource_type: str = "AWS::EC2::Instance", logical_id: str = "Resource") -> StackEvent:
    return StackEvent(
        resource_status=ResourceStatus(status),
        resource_type=resource_type,
        timestamp=at(seconds),
        resource_status_reason=reason,
        logical_resource_id=logical_id,
    )


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_transport():
    return FakeTransport


@pytest.fixture
def make_event():
    return event


@pytest.fixture
def make_clock():
    return FakeClock


@pytest.fixture
def at_time():
    return at


@pytest.fixture
def stack_id():
    return STACK_ID
