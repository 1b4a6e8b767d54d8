"""netpriv - privilege level negotiation and command execution for network device CLIs."""

from __future__ import annotations

from typing import Optional

from . import handlers  # noqa: F401
from .channel import Channel, PollingChannel, SecretProvider, StaticSecretProvider
from .cli_args import parse_args, setup_logging_from_args
from .commands import Command, CommandRegistry, _registry, command
from .controller import EscalationController, Response
from .custom_types import (
    AcquirePriv,
    ChannelReturn,
    ChannelWrite,
    DriverType,
    Operation,
    SendCommand,
    StepDirection,
)
from .emulate import EmulatedDevice
from .failure import FailureDetector
from .graph import PrivilegeGraph, Step
from .hooks import HookRunner
from .matcher import PromptMatcher
from .platform import PlatformDefinition, PrivilegeLevel, validate_definition
from .program_exceptions import (
    AuthenticationFailure,
    ChannelTimeout,
    CommandFailure,
    MalformedDefinition,
    NetprivError,
    PrivilegeEscalationTimeout,
    UnknownPlatform,
    UnknownPrivilegeLevel,
)
from .program_logging import get_logger, log_shutdown, log_startup
from .registry import PlatformRegistry, load_builtin_registry
from .session import MultiResponse, NetworkSession

__version__ = "0.1.0"
__all__ = [
    "AcquirePriv",
    "AuthenticationFailure",
    "Channel",
    "ChannelReturn",
    "ChannelTimeout",
    "ChannelWrite",
    "Command",
    "CommandFailure",
    "CommandRegistry",
    "DriverType",
    "EmulatedDevice",
    "EscalationController",
    "FailureDetector",
    "HookRunner",
    "MalformedDefinition",
    "MultiResponse",
    "NetprivError",
    "NetworkSession",
    "Operation",
    "PlatformDefinition",
    "PlatformRegistry",
    "PollingChannel",
    "PrivilegeEscalationTimeout",
    "PrivilegeGraph",
    "PrivilegeLevel",
    "PromptMatcher",
    "Response",
    "SecretProvider",
    "SendCommand",
    "StaticSecretProvider",
    "Step",
    "StepDirection",
    "UnknownPlatform",
    "UnknownPrivilegeLevel",
    "command",
    "load_builtin_registry",
    "main",
    "validate_definition",
]


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI application."""
    args = parse_args(argv)

    setup_logging_from_args(args)

    log_startup()

    logger = get_logger("main")
    try:
        registry = load_builtin_registry()
        registry.load_directory(args.platform_dir, replace=True)
        return _registry.resolve(args.command).handler(args, registry)
    except NetprivError as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"error: {e}")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        raise
    finally:
        log_shutdown()
