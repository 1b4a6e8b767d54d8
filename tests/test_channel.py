"""
Test suite for the polling channel base class.
"""

import re
import threading
import unittest
from unittest.mock import patch

from netpriv import ChannelTimeout, StaticSecretProvider
from netpriv.channel import PollingChannel
from netpriv.matcher import clean_output

PROMPT = re.compile(r"(?im)^[\w.\-]{1,63}#\s?$")


class ScriptedChannel(PollingChannel):
    """Hands out one queued chunk per read."""

    def __init__(self, chunks, **kwargs):
        kwargs.setdefault("read_delay", 0.001)
        super().__init__(**kwargs)
        self.chunks = list(chunks)
        self.written = []

    def _read(self):
        return self.chunks.pop(0) if self.chunks else ""

    def _write(self, text):
        self.written.append(text)


class TestReadUntilMatch(unittest.TestCase):
    """Test waiting for a prompt."""

    def test_prompt_after_large_output(self):
        """Test finding the prompt at the end of a long command output."""
        output = "interface Ethernet1/1 is up\n" * 2000
        channel = ScriptedChannel([output[:30000], output[30000:], "switch# "])

        buffer = channel.read_until_match(PROMPT, timeout=2.0)

        self.assertEqual(buffer, output + "switch# ")

    def test_cleaning_is_bounded_by_search_depth(self):
        """Test that each poll only cleans the end of the buffer."""
        chunks = ["x" * 500 + "\n" for _ in range(40)] + ["switch# "]
        channel = ScriptedChannel(chunks, search_depth=256)

        with patch("netpriv.channel.clean_output", wraps=clean_output) as cleaner:
            buffer = channel.read_until_match(PROMPT, timeout=2.0)

        self.assertTrue(buffer.endswith("switch# "))
        self.assertGreater(cleaner.call_count, 1)
        for args, _ in cleaner.call_args_list:
            self.assertLessEqual(len(args[0]), 2 * 256)

    def test_prompt_with_escape_codes(self):
        """Test a coloured prompt arriving after long output."""
        chunks = ["\x1b[32m" + "y" * 3000 + "\x1b[0m\r\n", "\x1b[1mswitch#\x1b[0m "]
        channel = ScriptedChannel(chunks)

        buffer = channel.read_until_match(PROMPT, timeout=2.0)

        self.assertTrue(buffer.endswith("\x1b[1mswitch#\x1b[0m "))

    def test_timeout(self):
        """Test that a missing prompt times out with what was read."""
        channel = ScriptedChannel(["still printing"])

        with self.assertRaises(ChannelTimeout) as ctx:
            channel.read_until_match(PROMPT, timeout=0.05)

        self.assertEqual(ctx.exception.buffer, "still printing")

    def test_cancel(self):
        """Test that a set cancel event ends the wait."""
        channel = ScriptedChannel([])
        cancel = threading.Event()
        cancel.set()

        with self.assertRaises(ChannelTimeout) as ctx:
            channel.read_until_match(PROMPT, timeout=5.0, cancel=cancel)

        self.assertIn("cancelled", str(ctx.exception))

    def test_write_line(self):
        """Test that write_line appends the return character."""
        channel = ScriptedChannel([], return_char="\r\n")
        channel.write_line("show version")
        self.assertEqual(channel.written, ["show version\r\n"])


class TestStaticSecretProvider(unittest.TestCase):
    """Test handing out escalation secrets."""

    def test_per_level_override(self):
        """Test the default secret and a per-level one."""
        provider = StaticSecretProvider("enable", per_level={"root-shell": "rootpw"})
        self.assertEqual(provider.get_auth_secret("privilege-exec"), "enable")
        self.assertEqual(provider.get_auth_secret("root-shell"), "rootpw")

    def test_repr_hides_secrets(self):
        """Test that secrets never show up in the repr."""
        provider = StaticSecretProvider("enable", per_level={"root-shell": "rootpw"})
        self.assertNotIn("enable", repr(provider))
        self.assertNotIn("rootpw", repr(provider))


if __name__ == "__main__":
    unittest.main()
