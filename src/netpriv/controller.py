"""Privilege level negotiation and command execution against one channel."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from .channel import Channel, SecretProvider, StaticSecretProvider
from .failure import FailureDetector
from .graph import PrivilegeGraph, Step
from .matcher import PromptMatcher, any_of, clean_output, prompt_tail
from .platform import PlatformDefinition, PrivilegeLevel
from .program_constants import DEFAULT_PROMPT_SEARCH_DEPTH, DEFAULT_TIMEOUT_OPS
from .program_exceptions import (
    AuthenticationFailure,
    ChannelTimeout,
    CommandFailure,
    PrivilegeEscalationTimeout,
    UnknownPrivilegeLevel,
)
from .program_logging import get_logger, log_command_execution, log_privilege_change


@dataclass
class Response:
    """The outcome of one command sent with `send_command`."""

    command: str
    result: str
    raw_result: str
    level: str
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime = field(default_factory=datetime.now)
    failed_marker: Optional[str] = None

    @property
    def elapsed_time(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def failed(self) -> bool:
        return self.failed_marker is not None


class EscalationController:
    """Moves one device session between privilege levels and runs commands.

    One controller per channel. Calls are sequential; nothing here is safe to
    share between threads except `cancel`.
    """

    def __init__(
        self,
        definition: PlatformDefinition,
        channel: Channel,
        secret_provider: Optional[SecretProvider] = None,
        timeout_ops: float = DEFAULT_TIMEOUT_OPS,
        search_depth: int = DEFAULT_PROMPT_SEARCH_DEPTH,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.definition = definition
        self.channel = channel
        self.secret_provider = secret_provider or StaticSecretProvider()
        self.timeout_ops = timeout_ops
        self.cancel_event = cancel_event or threading.Event()
        self.graph = PrivilegeGraph(definition)
        self.matcher = PromptMatcher(definition.privilege_levels.values(), search_depth)
        self.failures = FailureDetector(definition.failed_when_contains)
        self.current_level: Optional[str] = None
        self.logger = get_logger("controller")

        self._last_output = ""
        self._any_prompt = any_of(level.regex for level in definition.privilege_levels.values())
        self._marker_patterns = [re.compile(re.escape(marker)) for marker in self.failures.markers]

    def cancel(self) -> None:
        """Make the blocking read in progress (and any later one) time out."""
        self.cancel_event.set()

    def forget(self) -> None:
        """Drop what we believe about the device, e.g. after a raw write."""
        self.current_level = None
        self._last_output = ""

    def _remember(self, text: str) -> None:
        self._last_output = prompt_tail(self._last_output + text, self.matcher.search_depth)

    def _detect(self, buffer: str) -> Optional[str]:
        candidates = self.matcher.candidates(buffer)
        if not candidates:
            return None
        # Overlapping patterns: stay where we already know we are.
        if self.current_level in candidates:
            return self.current_level
        return candidates[0]

    def _read_until(self, pattern: re.Pattern[str], timeout: float, cancel: threading.Event) -> str:
        output = self.channel.read_until_match(pattern, timeout, cancel)
        self._remember(output)
        return output

    def _reached(self, level_name: str) -> bool:
        return level_name in self.matcher.candidates(self._last_output)

    def get_prompt_level(
        self, timeout: Optional[float] = None, cancel: Optional[threading.Event] = None
    ) -> str:
        """Work out the current privilege level.

        Uses output already seen on the channel first; only if that does not
        end in a known prompt is a bare return sent to get a fresh one.

        Raises:
            UnknownPrivilegeLevel: if no level matches the prompt.
        """
        timeout = timeout if timeout is not None else self.timeout_ops
        cancel = cancel or self.cancel_event

        self._remember(self.channel.read_available())
        level = self._detect(self._last_output)
        if level is not None:
            return level

        self.channel.write_line("")
        try:
            self._read_until(self._any_prompt, timeout, cancel)
        except ChannelTimeout as exc:
            raise UnknownPrivilegeLevel(
                f"no known prompt seen within {timeout}s", buffer=exc.buffer
            ) from exc

        level = self._detect(self._last_output)
        if level is None:
            raise UnknownPrivilegeLevel(
                f"could not determine privilege level from prompt '{self._last_output.strip()}'",
                buffer=self._last_output,
            )
        return level

    def acquire_priv(
        self,
        target_level: Optional[str] = None,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """Navigate to `target_level` (the platform default when None).

        Already being there costs no channel writes. A failure part way
        leaves the device wherever the last successful step put it.

        Raises:
            UnknownPrivilegeLevel: unknown target, or unrecognised prompt.
            PrivilegeEscalationTimeout: a step's prompt did not show in time.
            AuthenticationFailure: an escalation password was rejected.
        """
        target = target_level or self.definition.default_desired_privilege_level
        if target not in self.graph:
            raise UnknownPrivilegeLevel(
                f"requested privilege level '{target}' is not a valid privilege level"
            )
        timeout = timeout if timeout is not None else self.timeout_ops
        cancel = cancel or self.cancel_event

        self.logger.info(f"acquire privilege level requested, target privilege level: {target}")
        current = self.get_prompt_level(timeout, cancel)
        if current == target:
            self.logger.debug("acquire privilege determined no action necessary")
            self.current_level = target
            return

        path = self.graph.compute_path(current, target)
        self.logger.debug(f"acquire privilege path: {[str(step) for step in path]}")
        self.current_level = current
        for step in path:
            self._run_step(step, target, timeout, cancel)

        if not self._reached(target):
            found = self._detect(self._last_output)
            raise UnknownPrivilegeLevel(
                f"expected to be at '{target}' after escalation, prompt says '{found}'",
                buffer=self._last_output,
            )
        self.current_level = target

    def _run_step(self, step: Step, target: str, timeout: float, cancel: threading.Event) -> None:
        level = self.definition.level(step.to_level)
        self.logger.debug(f"acquire privilege step: {step}")
        self.channel.write_line(step.command)
        try:
            if step.auth_required:
                self._authenticate(step, level, timeout, cancel)
            else:
                self._read_until(level.regex, timeout, cancel)
        except ChannelTimeout as exc:
            raise PrivilegeEscalationTimeout(
                f"timed out during {step}, last level reached '{step.from_level}'",
                last_level=step.from_level,
                target_level=target,
                step=step,
            ) from exc

        if not self._reached(step.to_level):
            found = self._detect(self._last_output)
            self.current_level = found
            raise PrivilegeEscalationTimeout(
                f"expected '{step.to_level}' after {step}, prompt says '{found}'",
                last_level=found or step.from_level,
                target_level=target,
                step=step,
            )
        log_privilege_change(step.from_level, step.to_level)
        self.current_level = step.to_level

    def _authenticate(
        self, step: Step, level: PrivilegeLevel, timeout: float, cancel: threading.Event
    ) -> None:
        auth = level.escalate_regex
        if auth is None:
            auth = re.compile(re.escape(step.auth_prompt or "password:"), re.IGNORECASE)

        waiting = any_of([auth, level.regex, *self._marker_patterns])
        output = self._read_until(waiting, timeout, cancel)
        marker = self.failures.scan(clean_output(output))
        if marker is not None:
            raise AuthenticationFailure(
                f"expected a password prompt after '{step.command}', output contains '{marker}'",
                level=step.to_level,
                marker=marker,
            )
        if auth.search(clean_output(output)) is None:
            raise AuthenticationFailure(
                f"expected a password prompt after '{step.command}', "
                f"the '{step.to_level}' prompt came back without one",
                level=step.to_level,
            )

        secret = self.secret_provider.get_auth_secret(step.to_level)
        if not secret:
            self.logger.info(
                f"no secret for '{step.to_level}', but escalation asks for one, trying with none"
            )
        self.channel.write_line(secret)

        previous = self.definition.level(step.from_level)
        waiting = any_of([level.regex, previous.regex, auth, *self._marker_patterns])
        output = self._read_until(waiting, timeout, cancel)
        if self._reached(step.to_level):
            return
        raise AuthenticationFailure(
            f"password for '{step.to_level}' was rejected",
            level=step.to_level,
            marker=self.failures.scan(clean_output(output)),
        )

    def send_command(
        self,
        command: str,
        strip_prompt: bool = True,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Response:
        """Send `command` at the current level and wait for the prompt again.

        Raises:
            CommandFailure: the output contains a failure marker.
            PrivilegeEscalationTimeout: the prompt never came back.
        """
        timeout = timeout if timeout is not None else self.timeout_ops
        cancel = cancel or self.cancel_event

        level_name = self.current_level or self.get_prompt_level(timeout, cancel)
        self.current_level = level_name
        level = self.definition.level(level_name)

        response = Response(command=command, result="", raw_result="", level=level_name)
        self.logger.debug(f"send_command: '{command}' at {level_name}")
        self.channel.write_line(command)
        try:
            raw = self._read_until(level.regex, timeout, cancel)
        except ChannelTimeout as exc:
            raise PrivilegeEscalationTimeout(
                f"timed out waiting for '{level_name}' prompt after command '{command}'",
                last_level=level_name,
            ) from exc

        response.end_time = datetime.now()
        response.raw_result = raw
        cleaned = clean_output(raw)
        response.result = strip_output(cleaned, command, level) if strip_prompt else cleaned
        response.failed_marker = self.failures.scan(cleaned)
        log_command_execution(command, level_name, not response.failed)
        if response.failed_marker is not None:
            raise CommandFailure(command, response.result, response.failed_marker, response)
        return response


def strip_output(text: str, command: str, level: PrivilegeLevel) -> str:
    """Remove the echoed command line and the trailing prompt."""
    lines: List[str] = text.split("\n")
    if lines and lines[0].strip().endswith(command.strip()):
        lines = lines[1:]
    text = "\n".join(lines).rstrip()

    last = None
    for match in level.regex.finditer(text):
        last = match
    if last is not None and last.end() == len(text):
        text = text[: last.start()]
    return text.strip("\n")
