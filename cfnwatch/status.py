"""
Stack status vocabulary and per-operation classification.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Tuple

from .errors import UnexpectedStateError


class StackStatus(Enum):
    """Stack-level statuses reported by CloudFormation."""
    CREATE_IN_PROGRESS = "CREATE_IN_PROGRESS"
    CREATE_FAILED = "CREATE_FAILED"
    CREATE_COMPLETE = "CREATE_COMPLETE"
    ROLLBACK_IN_PROGRESS = "ROLLBACK_IN_PROGRESS"
    ROLLBACK_FAILED = "ROLLBACK_FAILED"
    ROLLBACK_COMPLETE = "ROLLBACK_COMPLETE"
    DELETE_IN_PROGRESS = "DELETE_IN_PROGRESS"
    DELETE_FAILED = "DELETE_FAILED"
    DELETE_COMPLETE = "DELETE_COMPLETE"
    UPDATE_IN_PROGRESS = "UPDATE_IN_PROGRESS"
    UPDATE_COMPLETE_CLEANUP_IN_PROGRESS = "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS"
    UPDATE_COMPLETE = "UPDATE_COMPLETE"
    UPDATE_FAILED = "UPDATE_FAILED"
    UPDATE_ROLLBACK_IN_PROGRESS = "UPDATE_ROLLBACK_IN_PROGRESS"
    UPDATE_ROLLBACK_FAILED = "UPDATE_ROLLBACK_FAILED"
    UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS = "UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS"
    UPDATE_ROLLBACK_COMPLETE = "UPDATE_ROLLBACK_COMPLETE"
    REVIEW_IN_PROGRESS = "REVIEW_IN_PROGRESS"
    IMPORT_IN_PROGRESS = "IMPORT_IN_PROGRESS"
    IMPORT_COMPLETE = "IMPORT_COMPLETE"
    IMPORT_ROLLBACK_IN_PROGRESS = "IMPORT_ROLLBACK_IN_PROGRESS"
    IMPORT_ROLLBACK_FAILED = "IMPORT_ROLLBACK_FAILED"
    IMPORT_ROLLBACK_COMPLETE = "IMPORT_ROLLBACK_COMPLETE"

    @classmethod
    def from_wire(cls, raw: str) -> "StackStatus":
        """
        Convert a raw status string into a StackStatus.

        Args:
            raw: Status string as returned by the API

        Returns:
            Matching StackStatus

        Raises:
            UnexpectedStateError: If the string is not a known stack status
        """
        try:
            return cls(raw)
        except ValueError:
            raise UnexpectedStateError(f"Unknown stack status: {raw!r}", status=raw) from None


class ResourceStatus(Enum):
    """Resource-level statuses carried by stack events."""
    CREATE_IN_PROGRESS = "CREATE_IN_PROGRESS"
    CREATE_FAILED = "CREATE_FAILED"
    CREATE_COMPLETE = "CREATE_COMPLETE"
    DELETE_IN_PROGRESS = "DELETE_IN_PROGRESS"
    DELETE_FAILED = "DELETE_FAILED"
    DELETE_COMPLETE = "DELETE_COMPLETE"
    DELETE_SKIPPED = "DELETE_SKIPPED"
    UPDATE_IN_PROGRESS = "UPDATE_IN_PROGRESS"
    UPDATE_FAILED = "UPDATE_FAILED"
    UPDATE_COMPLETE = "UPDATE_COMPLETE"
    UPDATE_COMPLETE_CLEANUP_IN_PROGRESS = "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS"
    UPDATE_ROLLBACK_IN_PROGRESS = "UPDATE_ROLLBACK_IN_PROGRESS"
    UPDATE_ROLLBACK_FAILED = "UPDATE_ROLLBACK_FAILED"
    UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS = "UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS"
    UPDATE_ROLLBACK_COMPLETE = "UPDATE_ROLLBACK_COMPLETE"
    ROLLBACK_IN_PROGRESS = "ROLLBACK_IN_PROGRESS"
    ROLLBACK_FAILED = "ROLLBACK_FAILED"
    ROLLBACK_COMPLETE = "ROLLBACK_COMPLETE"
    REVIEW_IN_PROGRESS = "REVIEW_IN_PROGRESS"
    IMPORT_IN_PROGRESS = "IMPORT_IN_PROGRESS"
    IMPORT_FAILED = "IMPORT_FAILED"
    IMPORT_COMPLETE = "IMPORT_COMPLETE"
    IMPORT_ROLLBACK_IN_PROGRESS = "IMPORT_ROLLBACK_IN_PROGRESS"
    IMPORT_ROLLBACK_FAILED = "IMPORT_ROLLBACK_FAILED"
    IMPORT_ROLLBACK_COMPLETE = "IMPORT_ROLLBACK_COMPLETE"
    EXPORT_IN_PROGRESS = "EXPORT_IN_PROGRESS"
    EXPORT_FAILED = "EXPORT_FAILED"
    EXPORT_COMPLETE = "EXPORT_COMPLETE"
    EXPORT_ROLLBACK_IN_PROGRESS = "EXPORT_ROLLBACK_IN_PROGRESS"
    EXPORT_ROLLBACK_FAILED = "EXPORT_ROLLBACK_FAILED"
    EXPORT_ROLLBACK_COMPLETE = "EXPORT_ROLLBACK_COMPLETE"

    @classmethod
    def from_wire(cls, raw: str) -> "ResourceStatus":
        """Convert a raw event status, failing loudly on unknown values."""
        try:
            return cls(raw)
        except ValueError:
            raise UnexpectedStateError(f"Unknown resource status: {raw!r}", status=raw) from None


FAILED_RESOURCE_STATUSES: FrozenSet[ResourceStatus] = frozenset({
    ResourceStatus.CREATE_FAILED,
    ResourceStatus.DELETE_FAILED,
    ResourceStatus.UPDATE_FAILED,
    ResourceStatus.UPDATE_ROLLBACK_FAILED,
    ResourceStatus.ROLLBACK_FAILED,
    ResourceStatus.IMPORT_FAILED,
    ResourceStatus.IMPORT_ROLLBACK_FAILED,
    ResourceStatus.EXPORT_FAILED,
    ResourceStatus.EXPORT_ROLLBACK_FAILED,
})

# Stack-level rollback only; UPDATE_ROLLBACK_* is not part of this set.
ROLLBACK_RESOURCE_STATUSES: FrozenSet[ResourceStatus] = frozenset({
    ResourceStatus.ROLLBACK_IN_PROGRESS,
    ResourceStatus.ROLLBACK_FAILED,
    ResourceStatus.ROLLBACK_COMPLETE,
})


class OperationKind(Enum):
    """Lifecycle operation being waited on."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class Outcome(Enum):
    """Structured meaning of a status for a given operation."""
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILURE = "failure"
    ROLLBACK = "rollback"
    DELETED = "deleted"
    UNEXPECTED = "unexpected"


class DiagnosticStrategy(Enum):
    """Which event-log predicate explains a terminal status."""
    NONE = "none"
    FAILURE = "failure"
    ROLLBACK = "rollback"
    STACK_DELETION = "stack_deletion"


@dataclass(frozen=True)
class Classification:
    """Result of classifying one status for one operation kind."""
    status: StackStatus
    outcome: Outcome
    strategy: DiagnosticStrategy

    @property
    def is_pending(self) -> bool:
        return self.outcome is Outcome.IN_PROGRESS

    @property
    def is_terminal(self) -> bool:
        return self.outcome not in (Outcome.IN_PROGRESS, Outcome.UNEXPECTED)

    @property
    def is_unexpected(self) -> bool:
        return self.outcome is Outcome.UNEXPECTED

    @property
    def succeeded(self) -> bool:
        """Terminal and needing no diagnosis."""
        return self.is_terminal and self.strategy is DiagnosticStrategy.NONE


_PENDING = (Outcome.IN_PROGRESS, DiagnosticStrategy.NONE)

_CLASSIFICATION_TABLE: Dict[OperationKind, Dict[StackStatus, Tuple[Outcome, DiagnosticStrategy]]] = {
    OperationKind.CREATE: {
        StackStatus.CREATE_IN_PROGRESS: _PENDING,
        StackStatus.DELETE_IN_PROGRESS: _PENDING,
        StackStatus.ROLLBACK_IN_PROGRESS: _PENDING,
        StackStatus.CREATE_COMPLETE: (Outcome.SUCCESS, DiagnosticStrategy.NONE),
        StackStatus.CREATE_FAILED: (Outcome.FAILURE, DiagnosticStrategy.FAILURE),
        StackStatus.DELETE_COMPLETE: (Outcome.DELETED, DiagnosticStrategy.STACK_DELETION),
        StackStatus.DELETE_FAILED: (Outcome.DELETED, DiagnosticStrategy.STACK_DELETION),
        StackStatus.ROLLBACK_COMPLETE: (Outcome.ROLLBACK, DiagnosticStrategy.ROLLBACK),
        StackStatus.ROLLBACK_FAILED: (Outcome.ROLLBACK, DiagnosticStrategy.ROLLBACK),
    },
    OperationKind.UPDATE: {
        StackStatus.UPDATE_IN_PROGRESS: _PENDING,
        StackStatus.UPDATE_COMPLETE_CLEANUP_IN_PROGRESS: _PENDING,
        StackStatus.UPDATE_ROLLBACK_IN_PROGRESS: _PENDING,
        StackStatus.UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS: _PENDING,
        StackStatus.CREATE_COMPLETE: (Outcome.SUCCESS, DiagnosticStrategy.NONE),
        StackStatus.UPDATE_COMPLETE: (Outcome.SUCCESS, DiagnosticStrategy.NONE),
        StackStatus.UPDATE_ROLLBACK_COMPLETE: (Outcome.ROLLBACK, DiagnosticStrategy.ROLLBACK),
        StackStatus.UPDATE_ROLLBACK_FAILED: (Outcome.ROLLBACK, DiagnosticStrategy.ROLLBACK),
    },
    OperationKind.DELETE: {
        StackStatus.DELETE_IN_PROGRESS: _PENDING,
        StackStatus.ROLLBACK_IN_PROGRESS: _PENDING,
        StackStatus.DELETE_COMPLETE: (Outcome.DELETED, DiagnosticStrategy.NONE),
        StackStatus.DELETE_FAILED: (Outcome.FAILURE, DiagnosticStrategy.FAILURE),
    },
}


def classify(status: StackStatus, kind: OperationKind) -> Classification:
    """
    Classify a stack status for the operation currently being waited on.

    Args:
        status: Observed stack status
        kind: Operation kind whose pending/target sets apply

    Returns:
        Classification; statuses outside both sets come back as UNEXPECTED
    """
    outcome, strategy = _CLASSIFICATION_TABLE[kind].get(
        status, (Outcome.UNEXPECTED, DiagnosticStrategy.NONE)
    )
    return Classification(status=status, outcome=outcome, strategy=strategy)


def pending_statuses(kind: OperationKind) -> FrozenSet[StackStatus]:
    """Statuses that keep the poller waiting for this operation."""
    return frozenset(
        status for status, (outcome, _) in _CLASSIFICATION_TABLE[kind].items()
        if outcome is Outcome.IN_PROGRESS
    )


def target_statuses(kind: OperationKind) -> FrozenSet[StackStatus]:
    """Statuses that end the wait for this operation."""
    return frozenset(
        status for status, (outcome, _) in _CLASSIFICATION_TABLE[kind].items()
        if outcome is not Outcome.IN_PROGRESS
    )
