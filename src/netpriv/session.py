"""A device session: one channel, one controller, the platform's hooks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from .channel import Channel, SecretProvider
from .controller import EscalationController, Response
from .hooks import HookRunner
from .platform import PlatformDefinition
from .program_constants import (
    DEFAULT_CONFIGURATION_PRIVILEGE_LEVEL,
    DEFAULT_PROMPT_SEARCH_DEPTH,
    DEFAULT_TIMEOUT_OPS,
)
from .program_exceptions import CommandFailure
from .program_logging import get_logger


@dataclass
class MultiResponse:
    """The responses of a `send_commands`/`send_configs` call."""

    responses: List[Response] = field(default_factory=list)
    failures: List[CommandFailure] = field(default_factory=list)
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime = field(default_factory=datetime.now)

    @property
    def failed(self) -> bool:
        return bool(self.failures)

    @property
    def result(self) -> str:
        return "\n".join(response.result for response in self.responses)


class NetworkSession:
    """Binds a validated `PlatformDefinition` to one open channel.

    Usable as a context manager: entering runs the on-open hooks, leaving
    runs the on-close hooks.
    """

    def __init__(
        self,
        definition: PlatformDefinition,
        channel: Channel,
        secret_provider: Optional[SecretProvider] = None,
        timeout_ops: float = DEFAULT_TIMEOUT_OPS,
        search_depth: int = DEFAULT_PROMPT_SEARCH_DEPTH,
    ) -> None:
        self.definition = definition
        self.channel = channel
        self.controller = EscalationController(
            definition,
            channel,
            secret_provider=secret_provider,
            timeout_ops=timeout_ops,
            search_depth=search_depth,
        )
        self.hooks = HookRunner(self.controller)
        self.logger = get_logger("session")
        self.is_open = False

    def __enter__(self) -> NetworkSession:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def current_level(self) -> Optional[str]:
        return self.controller.current_level

    def open(self) -> None:
        self.logger.info(f"Opening {self.definition.platform_type} session")
        self.hooks.run_on_open()
        self.is_open = True

    def close(self) -> None:
        self.logger.info(f"Closing {self.definition.platform_type} session")
        try:
            self.hooks.run_on_close()
        finally:
            self.is_open = False
            close = getattr(self.channel, "close", None)
            if callable(close):
                close()

    def run_on_open(self) -> None:
        self.hooks.run_on_open()

    def run_on_close(self) -> None:
        self.hooks.run_on_close()

    def acquire_priv(
        self, target_level: Optional[str] = None, timeout: Optional[float] = None
    ) -> None:
        self.controller.acquire_priv(target_level, timeout=timeout)

    def get_prompt_level(self) -> str:
        return self.controller.get_prompt_level()

    def send_command(
        self, command: str, strip_prompt: bool = True, timeout: Optional[float] = None
    ) -> Response:
        """Send `command` at the default desired privilege level."""
        default = self.definition.default_desired_privilege_level
        if self.controller.current_level != default:
            self.logger.debug(
                "send_command requested but not at desired privilege level, acquiring it"
            )
            self.controller.acquire_priv(default, timeout=timeout)
        return self.controller.send_command(command, strip_prompt=strip_prompt, timeout=timeout)

    def send_commands(
        self,
        commands: Sequence[str],
        stop_on_failed: bool = False,
        strip_prompt: bool = True,
        timeout: Optional[float] = None,
    ) -> MultiResponse:
        multi = MultiResponse()
        for command in commands:
            try:
                multi.responses.append(
                    self.send_command(command, strip_prompt=strip_prompt, timeout=timeout)
                )
            except CommandFailure as exc:
                multi.failures.append(exc)
                if exc.response is not None:
                    multi.responses.append(exc.response)
                if stop_on_failed:
                    break
        multi.end_time = datetime.now()
        return multi

    def send_configs(
        self,
        configs: Sequence[str],
        privilege_level: str = DEFAULT_CONFIGURATION_PRIVILEGE_LEVEL,
        stop_on_failed: bool = False,
        strip_prompt: bool = True,
        timeout: Optional[float] = None,
    ) -> MultiResponse:
        """Send configuration lines from `privilege_level`."""
        self.controller.acquire_priv(privilege_level, timeout=timeout)
        multi = MultiResponse()
        for config in configs:
            try:
                multi.responses.append(
                    self.controller.send_command(config, strip_prompt=strip_prompt, timeout=timeout)
                )
            except CommandFailure as exc:
                multi.failures.append(exc)
                if exc.response is not None:
                    multi.responses.append(exc.response)
                if stop_on_failed:
                    break
        multi.end_time = datetime.now()
        return multi
