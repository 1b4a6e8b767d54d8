"""Prompt recognition: which privilege level is the device showing?"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from .platform import PrivilegeLevel
from .program_constants import ANSI_PATTERN, DEFAULT_PROMPT_SEARCH_DEPTH


def clean_output(text: str) -> str:
    """Drop ANSI escapes and normalize line endings to ``\\n``."""
    text = ANSI_PATTERN.sub("", text)
    return text.replace("\r\n", "\n").replace("\r", "")


def prompt_tail(text: str, depth: int = DEFAULT_PROMPT_SEARCH_DEPTH) -> str:
    """The last `depth` characters of `text`, starting on a line boundary."""
    if len(text) <= depth:
        return text
    tail = text[-depth:]
    newline = tail.find("\n")
    if newline > 0:
        tail = tail[newline:]
    return tail


def trailing_prompt(pattern: re.Pattern[str], text: str) -> Optional[str]:
    """The prompt `pattern` matched at the end of `text`, or None.

    The prompt runs from the start of the line the match begins on to the
    end of `text`; output printed before that line is not part of it.
    """
    end = len(text)
    for match in pattern.finditer(text):
        if match.end() == end:
            line_start = text.rfind("\n", 0, match.start()) + 1
            return text[line_start:]
    return None


class PromptMatcher:
    """Classify buffered output as one of a platform's privilege levels.

    Levels are tried in definition order, the first one whose pattern matches
    the end of the buffer and whose `not_contains` guards are all absent wins.
    """

    def __init__(
        self,
        levels: Iterable[PrivilegeLevel],
        search_depth: int = DEFAULT_PROMPT_SEARCH_DEPTH,
    ) -> None:
        self.levels: List[PrivilegeLevel] = list(levels)
        self.search_depth = search_depth

    def _tail(self, buffer: str) -> str:
        return prompt_tail(clean_output(buffer), self.search_depth).rstrip()

    def _matches_tail(self, level: PrivilegeLevel, tail: str) -> bool:
        prompt = trailing_prompt(level.regex, tail)
        if prompt is None:
            return False
        return not any(guard in prompt for guard in level.not_contains)

    def matches(self, level: PrivilegeLevel, buffer: str) -> bool:
        return self._matches_tail(level, self._tail(buffer))

    def detect(self, buffer: str) -> Optional[str]:
        """Name of the level the buffer ends in, or None when unknown."""
        tail = self._tail(buffer)
        if not tail:
            return None
        for level in self.levels:
            if self._matches_tail(level, tail):
                return level.name
        return None

    def candidates(self, buffer: str) -> List[str]:
        """Every level that would match; more than one means overlapping patterns."""
        tail = self._tail(buffer)
        return [level.name for level in self.levels if self._matches_tail(level, tail)]


_LEADING_FLAGS = re.compile(r"^\(\?[im]+\)")


def any_of(patterns: Iterable[re.Pattern[str]]) -> re.Pattern[str]:
    """One pattern matching wherever any of `patterns` would.

    Leading ``(?im)`` groups are dropped from each part since inline global
    flags may only appear at the very start; the result carries the same
    flags instead.
    """
    parts = [_LEADING_FLAGS.sub("", pattern.pattern) for pattern in patterns]
    return re.compile("|".join(f"(?:{part})" for part in parts), re.IGNORECASE | re.MULTILINE)
