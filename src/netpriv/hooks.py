"""On-open and on-close operation runner for netpriv."""

from __future__ import annotations

from typing import List, Sequence, Tuple, assert_never

from .controller import EscalationController
from .custom_types import AcquirePriv, ChannelReturn, ChannelWrite, Operation, SendCommand
from .program_exceptions import NetprivError
from .program_logging import get_logger


class HookRunner:
    """Runs a platform's lifecycle operation sequences through a controller.

    On open the first error aborts the sequence and is raised, the session is
    not usable. On close every operation is attempted and errors are only
    logged, so the device is always left as close to logged out as possible.
    """

    def __init__(self, controller: EscalationController) -> None:
        self.controller = controller
        self.logger = get_logger("hooks")

    def execute(self, operation: Operation) -> None:
        """Run a single operation."""
        controller = self.controller
        match operation:
            case AcquirePriv(target_level=target):
                controller.acquire_priv(target)
            case SendCommand(command=command):
                controller.send_command(command)
            case ChannelWrite(input=text):
                controller.channel.write(text)
                controller.forget()
            case ChannelReturn():
                controller.channel.write_line("")
            case _:
                assert_never(operation)

    def run(
        self, operations: Sequence[Operation], fail_fast: bool = True
    ) -> List[Tuple[Operation, Exception]]:
        """Run `operations` in order.

        Returns:
            The (operation, error) pairs that were logged and skipped; always
            empty when `fail_fast` is set since the first error is raised.
        """
        errors: List[Tuple[Operation, Exception]] = []
        for operation in operations:
            self.logger.debug(f"Running operation {operation}")
            try:
                self.execute(operation)
            except (NetprivError, OSError) as exc:
                if fail_fast:
                    self.logger.error(f"Operation {operation} failed: {exc}")
                    raise
                self.logger.warning(f"Operation {operation} failed, continuing: {exc}")
                errors.append((operation, exc))
        return errors

    def run_on_open(self) -> None:
        self.run(self.controller.definition.on_open_operations, fail_fast=True)

    def run_on_close(self) -> List[Tuple[Operation, Exception]]:
        return self.run(self.controller.definition.on_close_operations, fail_fast=False)
