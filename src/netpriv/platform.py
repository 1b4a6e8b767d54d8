"""Platform definitions: privilege levels, failure markers and lifecycle hooks.

A `PlatformDefinition` is built once (parsed and validated) and is then
shared read-only by every session talking to that kind of device.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cached_property
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .custom_types import OPERATION_TAGS, AcquirePriv, DriverType, Operation
from .program_exceptions import MalformedDefinition
from .program_logging import get_logger

PATTERN_FLAGS = re.IGNORECASE | re.MULTILINE

# POSIX bracket classes that Python's `re` does not understand.
_POSIX_CLASSES = {
    "[:ascii:]": r"\x00-\x7f",
    "[:alpha:]": "a-zA-Z",
    "[:digit:]": "0-9",
    "[:alnum:]": "a-zA-Z0-9",
    "[:space:]": r"\s",
    "[:word:]": r"\w",
}


def normalize_pattern(pattern: str) -> str:
    """Translate POSIX bracket classes into their `re` equivalents."""
    for posix, replacement in _POSIX_CLASSES.items():
        pattern = pattern.replace(posix, replacement)
    return pattern


def compile_pattern(pattern: str) -> re.Pattern[str]:
    return re.compile(normalize_pattern(pattern), PATTERN_FLAGS)


@dataclass(frozen=True)
class PrivilegeLevel:
    """A named CLI mode and how to get in and out of it."""

    name: str
    pattern: str
    """Matched (multiline, case-insensitive) against the tail of the output."""

    not_contains: Tuple[str, ...] = ()
    """Substrings that veto an otherwise successful `pattern` match."""

    previous_priv: str = ""
    """Name of the parent level; empty only for the root."""

    escalate_command: str = ""
    deescalate_command: str = ""
    escalate_auth: bool = False
    escalate_prompt: str = ""

    def __post_init__(self) -> None:
        match self.not_contains:
            case str():
                # The instance is frozen, object.__setattr__ gets past that.
                object.__setattr__(self, "not_contains", (self.not_contains,))
            case list() | set() | frozenset():
                object.__setattr__(self, "not_contains", tuple(self.not_contains))
        if self.previous_priv is None:
            object.__setattr__(self, "previous_priv", "")

    @property
    def is_root(self) -> bool:
        return not self.previous_priv

    @cached_property
    def regex(self) -> re.Pattern[str]:
        return compile_pattern(self.pattern)

    @cached_property
    def escalate_regex(self) -> Optional[re.Pattern[str]]:
        if not self.escalate_prompt:
            return None
        return compile_pattern(self.escalate_prompt)


@dataclass(frozen=True, eq=False)
class PlatformDefinition:
    """Everything the engine needs to know about one device platform."""

    platform_type: str
    privilege_levels: Mapping[str, PrivilegeLevel]
    default_desired_privilege_level: str
    driver_type: DriverType = DriverType.NETWORK
    failed_when_contains: Tuple[str, ...] = ()
    on_open_operations: Tuple[Operation, ...] = ()
    on_close_operations: Tuple[Operation, ...] = ()
    textfsm_platform: str = ""
    """Output templating identifier, carried along but never used here."""

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "privilege_levels", MappingProxyType(dict(self.privilege_levels))
        )
        for attr in ("failed_when_contains", "on_open_operations", "on_close_operations"):
            object.__setattr__(self, attr, tuple(getattr(self, attr)))

    @property
    def level_names(self) -> List[str]:
        """Level names in definition order."""
        return list(self.privilege_levels)

    @property
    def root(self) -> PrivilegeLevel:
        for level in self.privilege_levels.values():
            if level.is_root:
                return level
        raise MalformedDefinition(self.platform_type, ["no root privilege level"])

    def level(self, name: str) -> PrivilegeLevel:
        return self.privilege_levels[name]

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        variant: Optional[str] = None,
        validate: bool = True,
    ) -> PlatformDefinition:
        """Build a definition from a parsed (kebab-case) platform document.

        Args:
            data: The document, with `platform-type`, `default` and optionally
                `variants`.
            variant: Name of a variant to merge over the default section.
            validate: Run `validate` on the result.

        Raises:
            MalformedDefinition: if the document cannot be turned into a
                definition, or fails validation.
        """
        platform_type = str(data.get("platform-type") or "")
        if not platform_type:
            raise MalformedDefinition("<unnamed>", ["missing 'platform-type'"])

        section = data.get("default")
        if not isinstance(section, Mapping):
            raise MalformedDefinition(platform_type, ["missing 'default' section"])

        if variant is not None:
            variants = data.get("variants") or {}
            if variant not in variants:
                raise MalformedDefinition(platform_type, [f"unknown variant '{variant}'"])
            section = _merge_variant(section, variants[variant])

        problems: List[str] = []
        levels = _parse_levels(section.get("privilege-levels"), problems)
        on_open = _parse_operations(section.get("network-on-open"), "network-on-open", problems)
        on_close = _parse_operations(section.get("network-on-close"), "network-on-close", problems)

        driver_type = DriverType.NETWORK
        raw_driver_type = section.get("driver-type") or "network"
        try:
            driver_type = DriverType(raw_driver_type)
        except ValueError:
            problems.append(f"unknown driver-type '{raw_driver_type}'")

        if problems:
            raise MalformedDefinition(platform_type, problems)

        definition = cls(
            platform_type=platform_type,
            privilege_levels=levels,
            default_desired_privilege_level=str(
                section.get("default-desired-privilege-level") or ""
            ),
            driver_type=driver_type,
            failed_when_contains=tuple(section.get("failed-when-contains") or ()),
            on_open_operations=on_open,
            on_close_operations=on_close,
            textfsm_platform=str(section.get("textfsm-platform") or ""),
        )
        if validate:
            validate_definition(definition)
        return definition


def _merge_variant(default: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(default)
    for key, value in (overlay or {}).items():
        if key == "privilege-levels" and isinstance(value, Mapping):
            levels = dict(merged.get(key) or {})
            for name, level in value.items():
                levels[name] = {**(levels.get(name) or {}), **(level or {})}
            merged[key] = levels
        else:
            merged[key] = value
    return merged


def _parse_levels(raw: Any, problems: List[str]) -> Dict[str, PrivilegeLevel]:
    if not isinstance(raw, Mapping) or not raw:
        problems.append("'privilege-levels' must be a non-empty mapping")
        return {}

    levels: Dict[str, PrivilegeLevel] = {}
    for key, body in raw.items():
        body = body or {}
        name = str(body.get("name") or key)
        if name != key:
            problems.append(f"privilege level key '{key}' does not match its name '{name}'")
        if not body.get("pattern"):
            problems.append(f"privilege level '{name}' has no pattern")
        levels[key] = PrivilegeLevel(
            name=name,
            pattern=str(body.get("pattern") or ""),
            not_contains=tuple(body.get("not-contains") or ()),
            previous_priv=str(body.get("previous-priv") or ""),
            escalate_command=str(body.get("escalate") or ""),
            deescalate_command=str(body.get("deescalate") or ""),
            escalate_auth=bool(body.get("escalate-auth") or False),
            escalate_prompt=str(body.get("escalate-prompt") or ""),
        )
    return levels


def _parse_operations(raw: Any, where: str, problems: List[str]) -> Tuple[Operation, ...]:
    operations: List[Operation] = []
    for index, item in enumerate(raw or ()):
        tag = (item or {}).get("operation")
        kind = OPERATION_TAGS.get(tag)
        if kind is None:
            problems.append(f"{where}[{index}]: unknown operation '{tag}'")
            continue
        if kind is AcquirePriv:
            operations.append(AcquirePriv(target_level=item.get("privilege-level") or None))
        elif "command" in kind.__dataclass_fields__:
            if not item.get("command"):
                problems.append(f"{where}[{index}]: '{tag}' needs a command")
                continue
            operations.append(kind(command=str(item["command"])))
        elif "input" in kind.__dataclass_fields__:
            operations.append(kind(input=str(item.get("input") or "")))
        else:
            operations.append(kind())
    return tuple(operations)


def validate_definition(definition: PlatformDefinition) -> None:
    """Check that the privilege levels of `definition` form a usable tree.

    Checks: exactly one root, every parent exists, no cycles, auth levels
    have an escalate prompt, all patterns compile, the default level and the
    hook targets exist. Levels sharing one pattern only produce a warning.

    Raises:
        MalformedDefinition: listing every problem found.
    """
    logger = get_logger("platform")
    levels = definition.privilege_levels
    problems: List[str] = []

    roots = [name for name, level in levels.items() if level.is_root]
    if len(roots) != 1:
        problems.append(f"expected exactly one root privilege level, found {len(roots)}: {roots}")

    for name, level in levels.items():
        if level.previous_priv and level.previous_priv not in levels:
            problems.append(
                f"privilege level '{name}' has unknown previous-priv '{level.previous_priv}'"
            )
        if level.escalate_auth and not level.escalate_prompt:
            problems.append(f"privilege level '{name}' has escalate-auth but no escalate-prompt")
        for attr in ("pattern", "escalate_prompt"):
            value = getattr(level, attr)
            if not value:
                continue
            try:
                compile_pattern(value)
            except re.error as exc:
                problems.append(f"privilege level '{name}' has invalid {attr} '{value}': {exc}")

    for name in levels:
        seen = [name]
        current = levels[name]
        while current.previous_priv and current.previous_priv in levels:
            if current.previous_priv in seen:
                problems.append(f"privilege level '{name}' is part of a cycle: {' -> '.join(seen)}")
                break
            seen.append(current.previous_priv)
            current = levels[current.previous_priv]

    default = definition.default_desired_privilege_level
    if default not in levels:
        problems.append(f"default-desired-privilege-level '{default}' is not a privilege level")

    for operation in definition.on_open_operations + definition.on_close_operations:
        if isinstance(operation, AcquirePriv) and operation.target_level:
            if operation.target_level not in levels:
                problems.append(f"acquire-priv targets unknown level '{operation.target_level}'")

    if problems:
        raise MalformedDefinition(definition.platform_type, problems)

    for first, second in overlapping_levels(definition):
        logger.warning(
            f"{definition.platform_type}: privilege levels '{first}' and '{second}' "
            f"share a prompt pattern, '{first}' wins when detecting"
        )


def overlapping_levels(definition: PlatformDefinition) -> List[Tuple[str, str]]:
    """Pairs of levels whose prompt patterns are identical."""
    pairs: List[Tuple[str, str]] = []
    names = definition.level_names
    for i, first in enumerate(names):
        for second in names[i + 1 :]:
            a = definition.privilege_levels[first]
            b = definition.privilege_levels[second]
            if a.pattern == b.pattern and set(a.not_contains) == set(b.not_contains):
                pairs.append((first, second))
    return pairs
