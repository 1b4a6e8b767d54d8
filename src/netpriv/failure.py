"""Failure marker detection in command output."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from .program_exceptions import CommandFailure


class FailureDetector:
    """Looks for a platform's `failed-when-contains` markers in output."""

    def __init__(self, markers: Iterable[str]) -> None:
        self.markers: Tuple[str, ...] = tuple(marker for marker in markers if marker)

    def scan(self, output: str) -> Optional[str]:
        """The first marker (in definition order) found in `output`, if any."""
        for marker in self.markers:
            if marker in output:
                return marker
        return None

    def check(self, command: str, output: str) -> None:
        """Raise `CommandFailure` if `output` of `command` has a marker."""
        marker = self.scan(output)
        if marker is not None:
            raise CommandFailure(command, output, marker)
