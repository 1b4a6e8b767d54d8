"""Privilege level tree and path computation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from .custom_types import StepDirection
from .platform import PlatformDefinition
from .program_exceptions import MalformedDefinition, UnknownPrivilegeLevel


@dataclass(frozen=True)
class Step:
    """One privilege change: send `command`, end up in `to_level`."""

    direction: StepDirection
    from_level: str
    to_level: str
    command: str
    auth_required: bool = False
    auth_prompt: str = ""

    def __str__(self) -> str:
        return f"{self.direction.value} {self.from_level} -> {self.to_level} ('{self.command}')"


class PrivilegeGraph:
    """The privilege levels of one platform seen as a tree.

    Parent links stay as names looked up in the definition; nothing here
    holds references between levels.
    """

    def __init__(self, definition: PlatformDefinition) -> None:
        self.definition = definition
        self._chains: Dict[str, List[str]] = {}

    def __contains__(self, name: object) -> bool:
        return name in self.definition.privilege_levels

    def _require(self, name: str) -> None:
        if name not in self.definition.privilege_levels:
            raise UnknownPrivilegeLevel(
                f"'{name}' is not a privilege level of {self.definition.platform_type}"
            )

    def parent(self, name: str) -> Optional[str]:
        self._require(name)
        return self.definition.privilege_levels[name].previous_priv or None

    def children(self, name: str) -> List[str]:
        self._require(name)
        return [
            level.name
            for level in self.definition.privilege_levels.values()
            if level.previous_priv == name
        ]

    def chain(self, name: str) -> List[str]:
        """Level names from the root down to `name`, inclusive."""
        self._require(name)
        if name in self._chains:
            return list(self._chains[name])

        levels = self.definition.privilege_levels
        chain = [name]
        current = levels[name]
        while current.previous_priv:
            if len(chain) > len(levels):
                raise MalformedDefinition(
                    self.definition.platform_type, [f"cycle above privilege level '{name}'"]
                )
            chain.append(current.previous_priv)
            current = levels[current.previous_priv]
        chain.reverse()
        self._chains[name] = chain
        return list(chain)

    def common_ancestor(self, first: str, second: str) -> str:
        """The deepest level that is an ancestor of (or equal to) both."""
        first_chain = self.chain(first)
        second_chain = self.chain(second)
        ancestor = first_chain[0]
        for a, b in zip(first_chain, second_chain):
            if a != b:
                break
            ancestor = a
        return ancestor

    def compute_path(self, current: str, target: str) -> List[Step]:
        """Steps that take a session from `current` to `target`.

        Walks up from `current` to the common ancestor using each level's
        deescalate command, then down to `target` using escalate commands.
        """
        if current == target:
            self._require(current)
            return []

        levels = self.definition.privilege_levels
        ancestor = self.common_ancestor(current, target)
        steps: List[Step] = []

        up = self.chain(current)
        for name in reversed(up[up.index(ancestor) + 1 :]):
            level = levels[name]
            steps.append(
                Step(
                    direction=StepDirection.DEESCALATE,
                    from_level=name,
                    to_level=level.previous_priv,
                    command=level.deescalate_command,
                )
            )

        down = self.chain(target)
        for name in down[down.index(ancestor) + 1 :]:
            level = levels[name]
            steps.append(
                Step(
                    direction=StepDirection.ESCALATE,
                    from_level=level.previous_priv,
                    to_level=name,
                    command=level.escalate_command,
                    auth_required=level.escalate_auth,
                    auth_prompt=level.escalate_prompt,
                )
            )
        return steps
