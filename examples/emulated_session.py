#!/usr/bin/env python3
"""
emulated_session.py

Walks an emulated Cisco NX-OS device through a full session: open (which
escalates to privilege-exec with the enable password), run a show command,
push two configuration lines, and log out.

Nothing here touches the network. To drive a real device, hand
`NetworkSession` any object with the `netpriv.Channel` methods instead of
the `EmulatedDevice`.

Usage:
 python examples/emulated_session.py
"""

from netpriv import (
    CommandFailure,
    EmulatedDevice,
    NetworkSession,
    StaticSecretProvider,
    load_builtin_registry,
)
from netpriv.program_logging import setup_logging


def main():
    setup_logging(level="INFO")

    definition = load_builtin_registry().get("cisco_nxos")
    device = EmulatedDevice(
        definition,
        password="enable-secret",
        responses={
            "show version": "Cisco Nexus Operating System (NX-OS) Software 9.3(8)",
            "terminal width 511": "",
            "terminal length 0": "",
            "interface Ethernet1/1": "",
            "description uplink": "",
        },
        unknown_output="% Invalid input detected at '^' marker.",
    )

    with NetworkSession(definition, device, StaticSecretProvider("enable-secret")) as session:
        print(f"Opened at {session.current_level}")
        print(session.send_command("show version").result)

        configs = session.send_configs(["interface Ethernet1/1", "description uplink"])
        print(f"{len(configs.responses)} config lines, failed={configs.failed}")

        try:
            session.send_command("show bogus")
        except CommandFailure as e:
            print(f"Expected failure: {e}")

    print("--- device transcript ---")
    print(device.transcript)


if __name__ == "__main__":
    main()
