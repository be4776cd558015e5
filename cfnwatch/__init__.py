"""
cfnwatch - Lifecycle engine for CloudFormation stacks.

Submits create/update/delete operations, waits for the stack to reach a
terminal status and explains failures from the stack's event log.
"""

from .coordinator import OperationCoordinator
from .client import CloudFormationClient, StackTransport
from .config import EngineSettings, WaitSettings
from .errors import (
    CfnWatchError,
    NoChangesError,
    OperationCancelledError,
    OperationFailedError,
    RemoteError,
    StackNotFoundError,
    TransportError,
    UnexpectedStateError,
    WaitTimeoutError,
)
from .models import OperationResult, StackDescription, StackEvent, StackIdentity
from .status import OperationKind, StackStatus, classify

__version__ = "0.1.0"

__all__ = [
    "OperationCoordinator",
    "CloudFormationClient",
    "StackTransport",
    "EngineSettings",
    "WaitSettings",
    "CfnWatchError",
    "NoChangesError",
    "OperationCancelledError",
    "OperationFailedError",
    "RemoteError",
    "StackNotFoundError",
    "TransportError",
    "UnexpectedStateError",
    "WaitTimeoutError",
    "OperationResult",
    "StackDescription",
    "StackEvent",
    "StackIdentity",
    "OperationKind",
    "StackStatus",
    "classify",
]
