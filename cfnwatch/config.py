"""
Wait settings for stack operations.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from .status import OperationKind

DEFAULT_TIMEOUT = 30 * 60  # seconds


@dataclass(frozen=True)
class WaitSettings:
    """Polling cadence for one kind of operation (all values in seconds)."""
    timeout: float = DEFAULT_TIMEOUT
    delay: float = 0.0
    min_interval: float = 5.0

    def __post_init__(self):
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.delay < 0 or self.min_interval < 0:
            raise ValueError("delay and min_interval must not be negative")


def _default_waits() -> Dict[OperationKind, WaitSettings]:
    return {
        OperationKind.CREATE: WaitSettings(min_interval=1.0),
        OperationKind.UPDATE: WaitSettings(min_interval=5.0),
        OperationKind.DELETE: WaitSettings(min_interval=5.0),
    }


@dataclass(frozen=True)
class EngineSettings:
    """Settings for a coordinator: region plus a WaitSettings per operation."""
    region: Optional[str] = None
    waits: Dict[OperationKind, WaitSettings] = field(default_factory=_default_waits)

    def wait_for(self, kind: OperationKind) -> WaitSettings:
        return self.waits[kind]

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """
        Build settings from CFNWATCH_* environment variables.

        Recognised variables are CFNWATCH_REGION and, per operation kind,
        CFNWATCH_<KIND>_TIMEOUT, CFNWATCH_<KIND>_DELAY and
        CFNWATCH_<KIND>_MIN_INTERVAL.

        Returns:
            EngineSettings with defaults for anything not set

        Raises:
            ValueError: If a variable is not a number
        """
        waits = {}
        for kind, default in _default_waits().items():
            prefix = f"CFNWATCH_{kind.name}"
            waits[kind] = WaitSettings(
                timeout=_env_seconds(f"{prefix}_TIMEOUT", default.timeout),
                delay=_env_seconds(f"{prefix}_DELAY", default.delay),
                min_interval=_env_seconds(f"{prefix}_MIN_INTERVAL", default.min_interval),
            )

        return cls(region=os.getenv("CFNWATCH_REGION") or None, waits=waits)


def _env_seconds(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}. Expected a number of seconds") from None
