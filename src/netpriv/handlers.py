"""Subcommand handlers for the netpriv command line."""

from __future__ import annotations

import argparse

from .channel import StaticSecretProvider
from .commands import command
from .emulate import EmulatedDevice
from .graph import PrivilegeGraph
from .matcher import PromptMatcher
from .platform import overlapping_levels
from .program_exceptions import MalformedDefinition, NetprivError
from .program_logging import get_logger
from .registry import PlatformRegistry
from .session import NetworkSession


@command("platforms", "List the known platforms")
def h_platforms(args: argparse.Namespace, registry: PlatformRegistry) -> int:
    """Print one line per registered platform."""
    if not len(registry):
        print("No platforms available.")
        return 0

    for definition in registry:
        first_column = f"  {definition.platform_type}"
        levels = ", ".join(definition.level_names)
        default = f"default={definition.default_desired_privilege_level}"
        print(f"{first_column:<24} {default:<24} {levels}")
    return 0


@command("validate", "Validate platform definition files")
def h_validate(args: argparse.Namespace, registry: PlatformRegistry) -> int:
    logger = get_logger("handlers")
    failed = 0
    for path in args.files:
        scratch = PlatformRegistry()
        try:
            loaded = scratch.load_file(path)
        except MalformedDefinition as e:
            failed += 1
            print(f"FAILED {path}")
            for problem in e.problems:
                print(f"  - {problem}")
            continue
        except OSError as e:
            failed += 1
            print(f"FAILED {path}: {e}")
            continue

        for definition in loaded:
            print(f"OK     {path}: {definition.platform_type}")
            for first, second in overlapping_levels(definition):
                print(f"  warning: '{first}' and '{second}' share a prompt pattern")

    logger.info(f"Validated {len(args.files)} file(s), {failed} failed")
    return 1 if failed else 0


@command("path", "Show the steps between two privilege levels")
def h_path(args: argparse.Namespace, registry: PlatformRegistry) -> int:
    definition = registry.get(args.platform)
    target = args.target or definition.default_desired_privilege_level
    steps = PrivilegeGraph(definition).compute_path(args.current, target)
    if not steps:
        print(f"Already at '{target}'.")
        return 0

    for number, step in enumerate(steps, start=1):
        auth = "  (password)" if step.auth_required else ""
        move = f"{step.from_level} -> {step.to_level}"
        print(f"{number}. {step.direction.value:<10} {move}: '{step.command}'{auth}")
    return 0


@command("detect", "Tell which privilege level a prompt belongs to")
def h_detect(args: argparse.Namespace, registry: PlatformRegistry) -> int:
    definition = registry.get(args.platform)
    prompt = args.prompt.replace("\\n", "\n")
    level = PromptMatcher(definition.privilege_levels.values()).detect(prompt)
    if level is None:
        print("unknown")
        return 1
    print(level)
    return 0


@command("simulate", "Run a session against an emulated device")
def h_simulate(args: argparse.Namespace, registry: PlatformRegistry) -> int:
    """Open, optionally acquire a level, and close against `EmulatedDevice`."""
    logger = get_logger("handlers")
    definition = registry.get(args.platform)
    device = EmulatedDevice(definition, start_level=args.start, password=args.password)
    session = NetworkSession(
        definition,
        device,
        secret_provider=StaticSecretProvider(args.password),
        timeout_ops=args.timeout,
    )

    status = 0
    try:
        session.open()
        if args.target:
            session.acquire_priv(args.target)
        logger.info(f"Simulated session reached '{session.current_level}'")
    except NetprivError as e:
        print(f"error: {e}")
        status = 1
    finally:
        session.close()

    print(device.transcript)
    print()
    print(f"Final level: {device.level}{' (logged out)' if device.closed else ''}")
    return status
