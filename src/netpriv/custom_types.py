"""Core enums and types for netpriv."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class DriverType(Enum):
    """The capability tag of a platform.

    Only "network" drivers know about privilege levels; "generic" platforms
    have a single prompt and no navigation.
    """

    GENERIC = "generic"
    NETWORK = "network"


class StepDirection(Enum):
    """Which way a single privilege change moves through the tree."""

    ESCALATE = "escalate"
    DEESCALATE = "deescalate"


@dataclass(frozen=True)
class AcquirePriv:
    """Navigate to `target_level`, or the platform default when unset."""

    target_level: Optional[str] = None


@dataclass(frozen=True)
class SendCommand:
    """Send a command and wait for the prompt to come back."""

    command: str


@dataclass(frozen=True)
class ChannelWrite:
    """Write raw input, no prompt wait."""

    input: str


@dataclass(frozen=True)
class ChannelReturn:
    """Send a bare return."""


Operation = Union[AcquirePriv, SendCommand, ChannelWrite, ChannelReturn]

OPERATION_TAGS = {
    "acquire-priv": AcquirePriv,
    "driver.send-command": SendCommand,
    "channel.write": ChannelWrite,
    "channel.return": ChannelReturn,
}
"""The `operation` values used in platform definition documents."""
