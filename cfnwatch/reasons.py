"""
Failure reason extraction from stack event logs.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .events import EventLogReader
from .models import OperationWindow, StackEvent
from .status import (
    DiagnosticStrategy,
    FAILED_RESOURCE_STATUSES,
    ROLLBACK_RESOURCE_STATUSES,
    ResourceStatus,
)

logger = logging.getLogger(__name__)

STACK_RESOURCE_TYPE = "AWS::CloudFormation::Stack"

EventPredicate = Callable[[StackEvent], bool]


def is_failure(event: StackEvent) -> bool:
    """A resource ended in a *_FAILED status and said why."""
    return event.resource_status in FAILED_RESOURCE_STATUSES and bool(event.resource_status_reason)


def is_rollback(event: StackEvent) -> bool:
    """A failure, or a stack rollback step that carries a reason."""
    if is_failure(event):
        return True
    return event.resource_status in ROLLBACK_RESOURCE_STATUSES and bool(event.resource_status_reason)


def is_stack_deletion(event: StackEvent) -> bool:
    """A failure, or the stack itself starting to delete with a reason."""
    if is_failure(event):
        return True
    return (
        event.resource_status is ResourceStatus.DELETE_IN_PROGRESS
        and event.resource_type == STACK_RESOURCE_TYPE
        and bool(event.resource_status_reason)
    )


_STRATEGY_PREDICATES: Dict[DiagnosticStrategy, EventPredicate] = {
    DiagnosticStrategy.FAILURE: is_failure,
    DiagnosticStrategy.ROLLBACK: is_rollback,
    DiagnosticStrategy.STACK_DELETION: is_stack_deletion,
}


def predicate_for(strategy: DiagnosticStrategy) -> EventPredicate:
    """
    Get the event predicate implementing a diagnostic strategy.

    Raises:
        ValueError: For DiagnosticStrategy.NONE, which needs no diagnosis
    """
    try:
        return _STRATEGY_PREDICATES[strategy]
    except KeyError:
        raise ValueError(f"No reason predicate for strategy {strategy.value!r}") from None


class ReasonExtractor:
    """Collects failure reasons from a stack's event log."""

    def __init__(self, reader: EventLogReader):
        self.reader = reader

    def extract(
        self,
        stack_id: str,
        predicate: EventPredicate,
        after: Optional[datetime] = None,
    ) -> List[str]:
        """
        Collect the reasons of all events matching a predicate.

        Every event on every page is tested; events at or before ``after``
        are skipped, not treated as the end of the log.

        Args:
            stack_id: Stack id to read events for
            predicate: Which events explain the failure
            after: Only consider events strictly newer than this

        Returns:
            Reasons in event order (newest first)
        """
        window = OperationWindow(stack_id=stack_id, after=after)
        reasons = []
        scanned = 0

        for event in self.reader.events(stack_id):
            scanned += 1
            if not window.includes(event):
                continue
            if predicate(event) and event.resource_status_reason:
                reasons.append(event.resource_status_reason)

        logger.debug(f"Scanned {scanned} events of {stack_id}, found {len(reasons)} reasons")
        return reasons

    def extract_for(
        self,
        stack_id: str,
        strategy: DiagnosticStrategy,
        after: Optional[datetime] = None,
    ) -> List[str]:
        """Extract reasons with the predicate that belongs to a strategy."""
        return self.extract(stack_id, predicate_for(strategy), after=after)
