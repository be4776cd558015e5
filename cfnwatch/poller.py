"""
Wait-until-terminal polling of a stack's status.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .client import StackTransport
from .config import WaitSettings
from .errors import OperationCancelledError, UnexpectedStateError, WaitTimeoutError
from .events import EventTypes
from .status import Classification, OperationKind, StackStatus, classify

logger = logging.getLogger(__name__)

EventCallback = Callable[[str, Dict[str, Any]], None]


class SystemClock:
    """Monotonic wall clock whose sleeps wake up early on cancellation."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float, cancel_event: threading.Event) -> None:
        if seconds > 0:
            cancel_event.wait(seconds)


@dataclass(frozen=True)
class PollResult:
    """What one poll observed."""
    status: StackStatus
    classification: Classification
    stack_id: str
    attempt: int


class StatePoller:
    """Polls a stack until its status leaves the pending set of an operation."""

    def __init__(
        self,
        transport: StackTransport,
        settings: WaitSettings,
        clock=None,
        cancel_event: Optional[threading.Event] = None,
        event_callback: Optional[EventCallback] = None,
    ):
        self.transport = transport
        self.settings = settings
        self.clock = clock or SystemClock()
        self.cancel_event = cancel_event or threading.Event()
        self.event_callback = event_callback

    def cancel(self) -> None:
        """Ask a running wait to stop before its next poll."""
        self.cancel_event.set()

    def wait(self, stack_id: str, kind: OperationKind, allow_missing: bool = False) -> PollResult:
        """
        Block until the stack reaches a target status for ``kind``.

        Args:
            stack_id: Stack id to poll
            kind: Operation kind whose pending/target sets apply
            allow_missing: Treat a vanished stack as DELETE_COMPLETE

        Returns:
            The terminal PollResult

        Raises:
            UnexpectedStateError: Status outside both sets, or stack vanished
            WaitTimeoutError: Deadline passed while still pending
            OperationCancelledError: cancel() was called
            TransportError: A describe call failed
        """
        deadline = self.clock.now() + self.settings.timeout
        last: Optional[PollResult] = None

        self.clock.sleep(self.settings.delay, self.cancel_event)

        while True:
            last_status = last.status if last else None
            if self.cancel_event.is_set():
                raise OperationCancelledError(last_status)
            if self.clock.now() > deadline:
                raise WaitTimeoutError(last_status, self.settings.timeout)

            last = self._poll(stack_id, kind, allow_missing, attempt=last.attempt + 1 if last else 1)

            if last.classification.is_terminal:
                logger.debug(f"Stack {stack_id} reached {last.status.value} after {last.attempt} polls")
                return last
            if last.classification.is_unexpected:
                raise UnexpectedStateError(
                    f"Unexpected status {last.status.value} for {kind.value} of stack {stack_id}",
                    status=last.status.value,
                )

            self.clock.sleep(self.settings.min_interval, self.cancel_event)

    def _poll(self, stack_id: str, kind: OperationKind, allow_missing: bool, attempt: int) -> PollResult:
        try:
            report = self.transport.describe_status(stack_id)
        except Exception as e:
            logger.error(f"Failed to describe stack {stack_id}: {e}")
            raise

        if report is None:
            if not allow_missing:
                logger.warning(f"Stack {stack_id} not found while waiting for {kind.value}")
                raise UnexpectedStateError(
                    f"Stack {stack_id} vanished unexpectedly during {kind.value}"
                )
            logger.debug(f"Stack {stack_id} is already gone")
            status = StackStatus.DELETE_COMPLETE
            last_updated = None
        else:
            status = report.status
            last_updated = report.last_updated
            stack_id = report.stack_id or stack_id

        logger.debug(f"Current stack status: {status.value}")
        result = PollResult(
            status=status,
            classification=classify(status, kind),
            stack_id=stack_id,
            attempt=attempt,
        )
        self._emit(EventTypes.STATUS_POLLED, {
            "stack_id": stack_id,
            "status": status.value,
            "attempt": attempt,
            "last_updated": last_updated.isoformat() if last_updated else None,
        })
        return result

    def _emit(self, event_type: str, data: Dict[str, Any]) -> None:
        if self.event_callback:
            self.event_callback(event_type, data)
