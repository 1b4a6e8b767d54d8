"""Channel and secret provider interfaces used by the engine.

The engine never opens connections itself. It is handed something that
behaves like a `Channel` (an SSH/telnet/serial session, or the in-memory
`EmulatedDevice`) and talks to it as text.
"""

from __future__ import annotations

import re
import threading
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional, Protocol, runtime_checkable

from .matcher import clean_output, prompt_tail
from .program_constants import (
    DEFAULT_PROMPT_SEARCH_DEPTH,
    DEFAULT_READ_DELAY,
    DEFAULT_RETURN_CHAR,
)
from .program_exceptions import ChannelTimeout
from .program_logging import get_logger


@runtime_checkable
class Channel(Protocol):
    """A sequential, single-writer text stream to one device."""

    def write(self, text: str) -> None: ...

    def write_line(self, text: str) -> None: ...

    def read_available(self) -> str: ...

    def read_until_match(
        self,
        pattern: re.Pattern[str],
        timeout: float,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        """Read until `pattern` is found in the output read during this call.

        Raises:
            ChannelTimeout: when `timeout` seconds pass or `cancel` is set
                first.
        """
        ...


@runtime_checkable
class SecretProvider(Protocol):
    def get_auth_secret(self, level_name: str) -> str: ...


class StaticSecretProvider:
    """Hands out one secret for every level, or a per-level override."""

    def __init__(self, secret: str = "", per_level: Optional[Dict[str, str]] = None) -> None:
        self._secret = secret
        self._per_level = dict(per_level or {})

    def get_auth_secret(self, level_name: str) -> str:
        return self._per_level.get(level_name, self._secret)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(secret=***, levels={sorted(self._per_level)})"


class PollingChannel(ABC):
    """Base for transports that can only do raw, non-blocking reads.

    Subclasses provide `_read` and `_write`; blocking reads with a deadline
    are built here by polling.
    """

    def __init__(
        self,
        return_char: str = DEFAULT_RETURN_CHAR,
        read_delay: float = DEFAULT_READ_DELAY,
        search_depth: int = DEFAULT_PROMPT_SEARCH_DEPTH,
    ) -> None:
        self.return_char = return_char
        self.read_delay = read_delay
        self.search_depth = search_depth
        self.logger = get_logger("channel")

    @abstractmethod
    def _read(self) -> str:
        """Whatever the transport has buffered right now, maybe ''."""

    @abstractmethod
    def _write(self, text: str) -> None: ...

    def write(self, text: str) -> None:
        self.logger.debug(f"write: {len(text)} characters")
        self._write(text)

    def write_line(self, text: str) -> None:
        self.write(text + self.return_char)

    def read_available(self) -> str:
        text = self._read()
        if text:
            self.logger.debug(f"read: {text!r}")
        return text

    def read_until_match(
        self,
        pattern: re.Pattern[str],
        timeout: float,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        deadline = time.monotonic() + timeout
        buffer = ""
        while True:
            buffer += self.read_available()
            # Escape codes and CRs shrink when cleaned, so take twice the depth raw.
            window = buffer[-2 * self.search_depth :]
            if pattern.search(prompt_tail(clean_output(window), self.search_depth)):
                return buffer
            if cancel is not None and cancel.is_set():
                raise ChannelTimeout("read cancelled", buffer=buffer)
            if time.monotonic() >= deadline:
                raise ChannelTimeout(
                    f"timed out after {timeout}s waiting for {pattern.pattern!r}",
                    buffer=buffer,
                )
            time.sleep(self.read_delay)
