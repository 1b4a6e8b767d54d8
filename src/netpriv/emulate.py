"""An in-memory device that behaves like a platform's CLI.

`EmulatedDevice` is a `Channel`: it echoes input, renders prompts, follows
the escalate/deescalate commands of a `PlatformDefinition`, asks for a
password where the definition says so, and answers known commands from a
table. Used by the tests and by ``netpriv simulate``.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from .channel import PollingChannel
from .platform import PlatformDefinition
from .program_constants import DEFAULT_RETURN_CHAR

DEFAULT_PROMPTS: Dict[str, Dict[str, str]] = {
    "cisco_nxos": {
        "exec": "switch> ",
        "privilege-exec": "switch# ",
        "configuration": "switch(config)# ",
        "tclsh": "switch(config-tcl)# ",
    },
    "juniper_junos": {
        "exec": "user@router> ",
        "configuration": "user@router# ",
        "configuration-exclusive": "user@router# ",
        "configuration-private": "user@router# ",
        "shell": "user@router:~ % ",
        "root-shell": "root@router:~ # ",
    },
    "nokia_sros": {
        "exec": "[/]\nA:admin@node-2# ",
        "configuration": "*(ex)[/]\nA:admin@node-2# ",
        "configuration-with-path": "*(ex)[/configure router]\nA:admin@node-2# ",
    },
}

DEFAULT_AUTH_PROMPT = "Password: "
DEFAULT_REJECT_OUTPUT = "% Permission denied"


class EmulatedDevice(PollingChannel):
    """A scripted device CLI living entirely in memory."""

    def __init__(
        self,
        definition: PlatformDefinition,
        start_level: Optional[str] = None,
        prompts: Optional[Mapping[str, str]] = None,
        password: str = "",
        responses: Optional[Mapping[str, str]] = None,
        unknown_output: str = "",
        exit_commands: tuple[str, ...] = ("exit", "logout", "quit"),
        silent: bool = False,
        return_char: str = DEFAULT_RETURN_CHAR,
        read_delay: float = 0.0005,
    ) -> None:
        super().__init__(return_char=return_char, read_delay=read_delay)
        self.definition = definition
        self.prompts = dict(prompts or DEFAULT_PROMPTS.get(definition.platform_type, {}))
        missing = [name for name in definition.level_names if name not in self.prompts]
        if missing:
            raise ValueError(f"no prompt for privilege levels: {', '.join(missing)}")

        self.level = start_level or definition.root.name
        self.password = password
        self.responses = dict(responses or {})
        self.unknown_output = unknown_output
        """Printed for any command not in `responses`, e.g. a failure marker."""
        self.exit_commands = exit_commands
        self.silent = silent
        """While set, nothing is sent back (a hung device)."""

        self.closed = False
        self.writes: List[str] = []
        self.lines: List[str] = []
        self.transcript = ""
        """Everything the device ever printed."""
        self._pending = ""
        self._line = ""
        self._awaiting_password: Optional[str] = None
        self._emit(self.prompts[self.level])

    def _emit(self, text: str) -> None:
        if not self.silent and not self.closed:
            self._pending += text
            self.transcript += text

    def _read(self) -> str:
        text, self._pending = self._pending, ""
        return text

    def _write(self, text: str) -> None:
        self.writes.append(text)
        if self.closed:
            return
        for char in text:
            if char == self.return_char[-1]:
                line, self._line = self._line, ""
                self._emit("\n")
                self._handle_line(line.rstrip("\r"))
            elif char not in self.return_char:
                self._line += char
                if self._awaiting_password is None:
                    self._emit(char)

    def _prompt(self) -> None:
        self._emit(self.prompts[self.level])

    def _handle_line(self, line: str) -> None:
        self.lines.append(line)
        command = line.strip()
        levels = self.definition.privilege_levels

        if self._awaiting_password is not None:
            target, self._awaiting_password = self._awaiting_password, None
            if line == self.password:
                self.level = target
            else:
                self._emit(DEFAULT_REJECT_OUTPUT + "\n")
            self._prompt()
            return

        for level in levels.values():
            if level.previous_priv == self.level and level.escalate_command == command and command:
                if level.escalate_auth:
                    self._awaiting_password = level.name
                    self._emit(DEFAULT_AUTH_PROMPT)
                    return
                self.level = level.name
                self._prompt()
                return

        current = levels[self.level]
        if current.previous_priv and command and command == current.deescalate_command:
            self.level = current.previous_priv
            self._prompt()
            return

        if command in self.exit_commands:
            self.closed = True
            return

        if command in self.responses:
            self._emit(self.responses[command].rstrip("\n") + "\n")
        elif command and self.unknown_output:
            self._emit(self.unknown_output + "\n")
        self._prompt()
