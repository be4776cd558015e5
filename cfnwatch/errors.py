"""
Error taxonomy for stack lifecycle operations.
"""

from typing import Optional, Sequence


class CfnWatchError(Exception):
    """Base error for every failure raised by the engine."""


class TransportError(CfnWatchError):
    """A remote call failed outright. Not retried here."""


class RemoteError(TransportError):
    """The control plane answered a call with an error code."""

    def __init__(self, code: str, message: str):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


class NoChangesError(RemoteError):
    """An update was submitted that would not change the stack."""


class StackNotFoundError(RemoteError):
    """The stack addressed by a call has no remote record."""


class UnexpectedStateError(CfnWatchError):
    """A status outside the known pending/target sets, or a vanished stack."""

    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message)
        self.status = status


class WaitTimeoutError(CfnWatchError, TimeoutError):
    """The deadline elapsed while the stack was still pending."""

    def __init__(self, last_status, timeout: float):
        last = last_status.value if last_status is not None else "no status observed"
        super().__init__(f"timeout while waiting for stack after {timeout:g}s (last status: {last})")
        self.last_status = last_status
        self.timeout = timeout


class OperationCancelledError(CfnWatchError):
    """The caller cancelled the operation before submission or between two polls."""

    def __init__(self, last_status):
        super().__init__("operation cancelled by caller")
        self.last_status = last_status


class OperationFailedError(CfnWatchError):
    """
    An operation reached a terminal failure state.

    The message is always ``"<STATUS>: [<reasons>]"`` so callers and logs
    see the same summary.
    """

    def __init__(self, status, reasons: Sequence[str], stack_id: Optional[str] = None):
        self.status = status
        self.reasons = tuple(reasons)
        self.stack_id = stack_id
        super().__init__(format_failure(status, self.reasons))


def format_failure(status, reasons: Sequence[str]) -> str:
    """Build the summary string for a failed operation."""
    return f"{status.value}: {list(reasons)!r}"
