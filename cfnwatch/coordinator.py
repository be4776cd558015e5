"""
Create, update and delete lifecycles for a CloudFormation stack.

Each operation submits the change, waits for a terminal status and, when
the stack did not end up where it was asked to go, reads the event log to
explain why.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from .client import StackTransport
from .config import EngineSettings
from .errors import (
    NoChangesError,
    OperationCancelledError,
    OperationFailedError,
    StackNotFoundError,
    UnexpectedStateError,
)
from .events import EventLogReader, EventTypes
from .models import OperationResult, StackDescription, StackIdentity
from .poller import EventCallback, PollResult, StatePoller
from .reasons import ReasonExtractor
from .status import OperationKind, Outcome, StackStatus

logger = logging.getLogger(__name__)


class OperationCoordinator:
    """Runs stack lifecycle operations against a StackTransport."""

    def __init__(
        self,
        transport: StackTransport,
        settings: Optional[EngineSettings] = None,
        clock=None,
        cancel_event: Optional[threading.Event] = None,
        event_callback: Optional[EventCallback] = None,
    ):
        self.transport = transport
        self.settings = settings or EngineSettings()
        self.clock = clock
        self.cancel_event = cancel_event or threading.Event()
        self.event_callback = event_callback
        self.reader = EventLogReader(transport)
        self.extractor = ReasonExtractor(self.reader)

    def cancel(self) -> None:
        """Stop a running wait before its next poll and refuse later submissions."""
        self.cancel_event.set()

    def create(self, name: str, definition: Mapping[str, Any]) -> OperationResult:
        """
        Create a stack and wait for it to settle.

        Args:
            name: Stack name
            definition: CreateStack request parameters (template, parameters, ...)

        Returns:
            OperationResult with CREATE_COMPLETE and the new stack id

        Raises:
            OperationFailedError: The create failed, rolled back or was deleted
            OperationCancelledError: cancel() was called before or during the wait
        """
        self._check_cancelled()
        stack_id = self.transport.submit_create(name, definition)
        identity = StackIdentity(name=name, stack_id=stack_id)
        logger.info(f"Submitted creation of stack {identity.name} ({identity.stack_id})")
        self._emit(EventTypes.OPERATION_SUBMITTED, {
            "operation": OperationKind.CREATE.value,
            "name": identity.name,
            "stack_id": identity.stack_id,
        })

        poll = self._poller(OperationKind.CREATE).wait(identity.stack_id, OperationKind.CREATE)
        return self._finish(OperationKind.CREATE, poll)

    def update(self, stack_id: str, definition: Mapping[str, Any]) -> OperationResult:
        """
        Update a stack and wait for it to settle.

        Only events newer than the stack's latest event before submission
        are used to explain a rollback. A submission with nothing to change
        is reported as success without polling.

        Args:
            stack_id: Id of the stack to update
            definition: UpdateStack request parameters

        Returns:
            OperationResult with the final status

        Raises:
            OperationFailedError: The update rolled back
        """
        latest = self.reader.latest_event(stack_id)
        after = latest.timestamp if latest else None

        self._check_cancelled()
        try:
            self.transport.submit_update(stack_id, definition)
        except NoChangesError:
            logger.info(f"Stack {stack_id} has no updates to perform")
            self._emit(EventTypes.NO_CHANGES, {"stack_id": stack_id})
            return self._current_result(stack_id)

        logger.info(f"Submitted update of stack {stack_id}")
        self._emit(EventTypes.OPERATION_SUBMITTED, {
            "operation": OperationKind.UPDATE.value,
            "stack_id": stack_id,
        })

        poll = self._poller(OperationKind.UPDATE).wait(stack_id, OperationKind.UPDATE)
        return self._finish(OperationKind.UPDATE, poll, after=after)

    def delete(self, stack_id: str) -> OperationResult:
        """
        Delete a stack and wait until it is gone.

        Deleting a stack that does not exist succeeds immediately.

        Args:
            stack_id: Id of the stack to delete

        Returns:
            OperationResult with DELETE_COMPLETE

        Raises:
            OperationFailedError: The stack ended in DELETE_FAILED
        """
        self._check_cancelled()
        try:
            self.transport.submit_delete(stack_id)
        except StackNotFoundError:
            logger.warning(f"Stack {stack_id} does not exist, nothing to delete")
            self._emit(EventTypes.ALREADY_DELETED, {"stack_id": stack_id})
            return OperationResult(final_status=StackStatus.DELETE_COMPLETE)

        logger.info(f"Submitted deletion of stack {stack_id}")
        self._emit(EventTypes.OPERATION_SUBMITTED, {
            "operation": OperationKind.DELETE.value,
            "stack_id": stack_id,
        })

        poll = self._poller(OperationKind.DELETE).wait(stack_id, OperationKind.DELETE, allow_missing=True)
        return self._finish(OperationKind.DELETE, poll)

    def read(self, stack_id: str) -> Optional[StackDescription]:
        """Read a stack, or None when it has been deleted."""
        description = self.transport.describe_stack(stack_id)
        if description is None or description.status is StackStatus.DELETE_COMPLETE:
            logger.warning(f"Stack {stack_id} is already gone")
            return None
        return description

    def _poller(self, kind: OperationKind) -> StatePoller:
        return StatePoller(
            self.transport,
            self.settings.wait_for(kind),
            clock=self.clock,
            cancel_event=self.cancel_event,
            event_callback=self.event_callback,
        )

    def _current_result(self, stack_id: str) -> OperationResult:
        report = self.transport.describe_status(stack_id)
        if report is None:
            raise UnexpectedStateError(f"Stack {stack_id} vanished unexpectedly during update")
        return OperationResult(final_status=report.status, stack_id=report.stack_id)

    def _finish(
        self,
        kind: OperationKind,
        poll: PollResult,
        after: Optional[datetime] = None,
    ) -> OperationResult:
        classification = poll.classification
        # A stack that ended deleted has no identity left to hand back.
        stack_id = None if classification.outcome is Outcome.DELETED else poll.stack_id

        if classification.succeeded:
            logger.info(f"Stack {poll.stack_id} finished {kind.value} with {poll.status.value}")
            self._emit(EventTypes.OPERATION_DONE, {
                "operation": kind.value,
                "stack_id": stack_id,
                "status": poll.status.value,
            })
            return OperationResult(final_status=poll.status, stack_id=stack_id)

        reasons = self.extractor.extract_for(poll.stack_id, classification.strategy, after=after)
        self._emit(EventTypes.REASONS_EXTRACTED, {
            "operation": kind.value,
            "stack_id": poll.stack_id,
            "strategy": classification.strategy.value,
            "reasons": list(reasons),
        })

        error = OperationFailedError(poll.status, reasons, stack_id=stack_id)
        logger.warning(f"Stack {poll.stack_id} failed {kind.value}: {error}")
        raise error

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            logger.warning("Operation cancelled before submission")
            raise OperationCancelledError(None)

    def _emit(self, event_type: str, data: Dict[str, Any]) -> None:
        if self.event_callback:
            self.event_callback(event_type, data)
