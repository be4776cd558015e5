"""
Data models shared by the poller, the event reader and the coordinator.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .status import ResourceStatus, StackStatus


@dataclass(frozen=True)
class StackIdentity:
    """User-supplied name plus the id assigned by CloudFormation at creation."""
    name: str
    stack_id: str


@dataclass(frozen=True)
class StackEvent:
    """One entry of a stack's event log."""
    resource_status: ResourceStatus
    resource_type: str
    timestamp: datetime
    resource_status_reason: Optional[str] = None
    logical_resource_id: Optional[str] = None
    event_id: Optional[str] = None


@dataclass(frozen=True)
class EventPage:
    """A page of events, newest first, and the token for the next one."""
    events: List[StackEvent]
    next_token: Optional[str] = None


@dataclass(frozen=True)
class StatusReport:
    """What a single status describe returns for an existing stack."""
    stack_id: str
    status: StackStatus
    last_updated: Optional[datetime] = None


@dataclass(frozen=True)
class OperationWindow:
    """Time boundary attributing events to the operation being diagnosed."""
    stack_id: str
    after: Optional[datetime] = None

    def includes(self, event: StackEvent) -> bool:
        return self.after is None or event.timestamp > self.after


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one create, update or delete."""
    final_status: StackStatus
    reasons: Tuple[str, ...] = ()
    stack_id: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "final_status": self.final_status.value,
            "reasons": list(self.reasons),
            "stack_id": self.stack_id,
        }


@dataclass
class StackDescription:
    """Read view of a live stack."""
    stack_id: str
    name: str
    status: StackStatus
    description: Optional[str] = None
    outputs: Dict[str, str] = field(default_factory=dict)
    parameters: Dict[str, str] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)
    capabilities: List[str] = field(default_factory=list)
    disable_rollback: Optional[bool] = None
    timeout_in_minutes: Optional[int] = None
    role_arn: Optional[str] = None
    notification_arns: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "stack_id": self.stack_id,
            "name": self.name,
            "status": self.status.value,
            "description": self.description,
            "outputs": dict(self.outputs),
            "parameters": dict(self.parameters),
            "tags": dict(self.tags),
            "capabilities": list(self.capabilities),
            "disable_rollback": self.disable_rollback,
            "timeout_in_minutes": self.timeout_in_minutes,
            "role_arn": self.role_arn,
            "notification_arns": list(self.notification_arns),
        }
