"""Core exceptions for netpriv."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .controller import Response
    from .graph import Step


class NetprivError(Exception):
    """Base class for errors raised by the privilege engine.

    Some examples of these errors are:
    - `MalformedDefinition`
    - `UnknownPrivilegeLevel`
    - `CommandFailure`
    """


class MalformedDefinition(NetprivError):
    """Raised when a platform definition is structurally broken.

    All problems found are collected in `problems` rather than stopping at
    the first one.
    """

    def __init__(self, platform_type: str, problems: Sequence[str]) -> None:
        self.platform_type = platform_type
        self.problems = list(problems)
        joined = "; ".join(self.problems)
        super().__init__(f"malformed platform definition '{platform_type}': {joined}")


class UnknownPlatform(NetprivError):
    """Raised when a platform name is not in the registry."""


class UnknownPrivilegeLevel(NetprivError):
    """Raised when no privilege level matches, or a level name is unknown."""

    def __init__(self, message: str, buffer: str = "") -> None:
        self.buffer = buffer
        super().__init__(message)


class PrivilegeEscalationTimeout(NetprivError):
    """Raised when an expected prompt was not seen before the deadline."""

    def __init__(
        self,
        message: str,
        last_level: Optional[str] = None,
        target_level: Optional[str] = None,
        step: Optional[Step] = None,
    ) -> None:
        self.last_level = last_level
        self.target_level = target_level
        self.step = step
        super().__init__(message)


class AuthenticationFailure(NetprivError):
    """Raised when an escalation password prompt is rejected or never shows."""

    def __init__(
        self, message: str, level: str = "", marker: Optional[str] = None
    ) -> None:
        self.level = level
        self.marker = marker
        super().__init__(message)


class CommandFailure(NetprivError):
    """Raised when command output contains a `failed-when-contains` marker."""

    def __init__(
        self, command: str, output: str, marker: str, response: Optional[Response] = None
    ) -> None:
        self.command = command
        self.output = output
        self.marker = marker
        self.response = response
        super().__init__(f"command '{command}' failed, output contains '{marker}'")


class ChannelTimeout(NetprivError):
    """Raised by a channel when a read deadline passes or is cancelled."""

    def __init__(self, message: str, buffer: str = "") -> None:
        self.buffer = buffer
        super().__init__(message)
