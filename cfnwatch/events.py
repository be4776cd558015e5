"""
Reading a stack's event log, page by page, newest first.
"""

from typing import Iterator, List, Optional

from .client import StackTransport
from .models import StackEvent


class EventLogReader:
    """Walks the paginated event log exposed by a stack transport."""

    def __init__(self, transport: StackTransport):
        self.transport = transport

    def pages(self, stack_id: str) -> Iterator[List[StackEvent]]:
        """
        Generator that yields event pages from the newest event backwards.

        Each call starts again from the newest event; a started generator
        cannot be rewound.

        Args:
            stack_id: Stack id to read events for

        Yields:
            Lists of events, newest first
        """
        token: Optional[str] = None
        while True:
            page = self.transport.fetch_event_page(stack_id, token)
            yield page.events
            token = page.next_token
            if not token:
                return

    def events(self, stack_id: str) -> Iterator[StackEvent]:
        """Flatten pages into a single newest-first stream of events."""
        for page in self.pages(stack_id):
            yield from page

    def latest_event(self, stack_id: str) -> Optional[StackEvent]:
        """
        Get the newest event of a stack.

        Args:
            stack_id: Stack id

        Returns:
            Newest event or None if the log is empty
        """
        for event in self.events(stack_id):
            return event
        return None


# Progress event names passed to event callbacks
class EventTypes:
    OPERATION_SUBMITTED = "OPERATION_SUBMITTED"
    STATUS_POLLED = "STATUS_POLLED"
    REASONS_EXTRACTED = "REASONS_EXTRACTED"
    OPERATION_DONE = "OPERATION_DONE"
    NO_CHANGES = "NO_CHANGES"
    ALREADY_DELETED = "ALREADY_DELETED"
