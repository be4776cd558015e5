"""
CloudFormation transport backed by boto3.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import NoChangesError, RemoteError, StackNotFoundError, TransportError
from .models import EventPage, StackDescription, StackEvent, StatusReport
from .status import ResourceStatus, StackStatus

logger = logging.getLogger(__name__)

NO_UPDATES_MESSAGE = "No updates are to be performed."


class StackTransport(ABC):
    """Remote capabilities the engine needs from the control plane."""

    @abstractmethod
    def submit_create(self, name: str, definition: Mapping[str, Any]) -> str:
        """Start creating a stack and return its id."""

    @abstractmethod
    def submit_update(self, stack_id: str, definition: Mapping[str, Any]) -> None:
        """Start updating a stack."""

    @abstractmethod
    def submit_delete(self, stack_id: str) -> None:
        """Start deleting a stack."""

    @abstractmethod
    def describe_status(self, stack_id: str) -> Optional[StatusReport]:
        """Current status of a stack, or None when it no longer exists."""

    @abstractmethod
    def fetch_event_page(self, stack_id: str, token: Optional[str] = None) -> EventPage:
        """One page of the stack's event log, newest first."""

    @abstractmethod
    def describe_stack(self, stack_id: str) -> Optional[StackDescription]:
        """Full read view of a stack, or None when it no longer exists."""


def translate_error(error: Exception) -> TransportError:
    """
    Map a botocore exception onto the engine's error taxonomy.

    This is the only place that looks at provider error messages.

    Args:
        error: ClientError or BotoCoreError raised by boto3

    Returns:
        TransportError (or a RemoteError subclass) to raise in its place
    """
    if isinstance(error, ClientError):
        details = error.response.get("Error", {})
        code = details.get("Code", "Unknown")
        message = details.get("Message", str(error))

        if code == "ValidationError":
            if message == NO_UPDATES_MESSAGE:
                return NoChangesError(code, message)
            if "does not exist" in message:
                return StackNotFoundError(code, message)
        return RemoteError(code, message)

    return TransportError(str(error))


class CloudFormationClient(StackTransport):
    """StackTransport talking to the CloudFormation API through boto3."""

    def __init__(self, region: Optional[str] = None, client=None):
        self.region = region
        self._client = client

    def _get_client(self):
        """Lazy initialization of the CloudFormation client."""
        if self._client is None:
            self._client = boto3.client("cloudformation", region_name=self.region)
        return self._client

    def _call(self, operation: str, **kwargs) -> Dict[str, Any]:
        try:
            return getattr(self._get_client(), operation)(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e) from e

    def submit_create(self, name: str, definition: Mapping[str, Any]) -> str:
        params = dict(definition)
        params["StackName"] = name
        logger.debug(f"Creating CloudFormation stack: {name}")
        response = self._call("create_stack", **params)
        return response["StackId"]

    def submit_update(self, stack_id: str, definition: Mapping[str, Any]) -> None:
        params = dict(definition)
        params["StackName"] = stack_id
        logger.debug(f"Updating CloudFormation stack: {stack_id}")
        self._call("update_stack", **params)

    def submit_delete(self, stack_id: str) -> None:
        logger.debug(f"Deleting CloudFormation stack: {stack_id}")
        self._call("delete_stack", StackName=stack_id)

    def _describe(self, stack_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = self._call("describe_stacks", StackName=stack_id)
        except StackNotFoundError:
            return None

        stacks = response.get("Stacks", [])
        if not stacks:
            return None
        if len(stacks) > 1:
            raise TransportError(f"Found {len(stacks)} CloudFormation stacks for {stack_id}, expected 1")
        return stacks[0]

    def describe_status(self, stack_id: str) -> Optional[StatusReport]:
        stack = self._describe(stack_id)
        if stack is None:
            return None

        return StatusReport(
            stack_id=stack.get("StackId", stack_id),
            status=StackStatus.from_wire(stack["StackStatus"]),
            last_updated=stack.get("LastUpdatedTime") or stack.get("CreationTime"),
        )

    def describe_stack(self, stack_id: str) -> Optional[StackDescription]:
        stack = self._describe(stack_id)
        if stack is None:
            return None

        return StackDescription(
            stack_id=stack.get("StackId", stack_id),
            name=stack["StackName"],
            status=StackStatus.from_wire(stack["StackStatus"]),
            description=stack.get("Description"),
            outputs={o["OutputKey"]: o.get("OutputValue", "") for o in stack.get("Outputs", [])},
            parameters={p["ParameterKey"]: p.get("ParameterValue", "") for p in stack.get("Parameters", [])},
            tags={t["Key"]: t["Value"] for t in stack.get("Tags", [])},
            capabilities=list(stack.get("Capabilities", [])),
            disable_rollback=stack.get("DisableRollback"),
            timeout_in_minutes=stack.get("TimeoutInMinutes"),
            role_arn=stack.get("RoleARN"),
            notification_arns=list(stack.get("NotificationARNs", [])),
        )

    def fetch_event_page(self, stack_id: str, token: Optional[str] = None) -> EventPage:
        params = {"StackName": stack_id}
        if token:
            params["NextToken"] = token

        response = self._call("describe_stack_events", **params)
        events = [_event_from_wire(e) for e in response.get("StackEvents", [])]
        return EventPage(events=events, next_token=response.get("NextToken"))


def _event_from_wire(raw: Dict[str, Any]) -> StackEvent:
    return StackEvent(
        resource_status=ResourceStatus.from_wire(raw["ResourceStatus"]),
        resource_type=raw.get("ResourceType", ""),
        timestamp=raw["Timestamp"],
        resource_status_reason=raw.get("ResourceStatusReason"),
        logical_resource_id=raw.get("LogicalResourceId"),
        event_id=raw.get("EventId"),
    )
