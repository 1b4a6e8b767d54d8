"""
Test suite for platform definitions.

This test suite covers:
- PrivilegeLevel construction
- Parsing of the kebab-case platform documents
- Validation of the privilege level tree
- Variants and pattern normalization
"""

import unittest

from netpriv import (
    AcquirePriv,
    ChannelReturn,
    ChannelWrite,
    DriverType,
    MalformedDefinition,
    PlatformDefinition,
    PrivilegeLevel,
    SendCommand,
    validate_definition,
)
from netpriv.platform import normalize_pattern, overlapping_levels


def make_document(**overrides):
    """A small, valid platform document."""
    document = {
        "platform-type": "test_os",
        "default": {
            "driver-type": "network",
            "privilege-levels": {
                "exec": {
                    "name": "exec",
                    "pattern": r"(?im)^\w+>\s?$",
                    "previous-priv": None,
                    "deescalate": None,
                    "escalate": None,
                    "escalate-auth": False,
                    "escalate-prompt": None,
                },
                "enable": {
                    "name": "enable",
                    "pattern": r"(?im)^\w+#\s?$",
                    "previous-priv": "exec",
                    "deescalate": "disable",
                    "escalate": "enable",
                    "escalate-auth": True,
                    "escalate-prompt": r"(?im)^password:\s?$",
                },
            },
            "default-desired-privilege-level": "enable",
            "failed-when-contains": ["% Error"],
            "textfsm-platform": "test_os",
            "network-on-open": [
                {"operation": "acquire-priv"},
                {"operation": "driver.send-command", "command": "terminal length 0"},
            ],
            "network-on-close": [
                {"operation": "acquire-priv"},
                {"operation": "channel.write", "input": "exit"},
                {"operation": "channel.return"},
            ],
        },
    }
    document["default"].update(overrides)
    return document


class TestPrivilegeLevel(unittest.TestCase):
    """Test the PrivilegeLevel dataclass."""

    def test_not_contains_becomes_tuple(self):
        """Test that list and string guards are stored as tuples."""
        level = PrivilegeLevel(name="a", pattern="a>", not_contains=["x", "y"])
        self.assertEqual(level.not_contains, ("x", "y"))

        level = PrivilegeLevel(name="a", pattern="a>", not_contains="x")
        self.assertEqual(level.not_contains, ("x",))

    def test_root_has_no_previous_priv(self):
        """Test root detection."""
        self.assertTrue(PrivilegeLevel(name="a", pattern="a>").is_root)
        self.assertFalse(PrivilegeLevel(name="b", pattern="b#", previous_priv="a").is_root)

    def test_regex_is_case_insensitive_and_multiline(self):
        """Test that patterns compile with the expected flags."""
        level = PrivilegeLevel(name="a", pattern=r"^router>$")
        self.assertIsNotNone(level.regex.search("banner\nROUTER>"))


class TestFromMapping(unittest.TestCase):
    """Test parsing platform documents."""

    def test_parses_levels_and_hooks(self):
        """Test a full document round into a definition."""
        definition = PlatformDefinition.from_mapping(make_document())

        self.assertEqual(definition.platform_type, "test_os")
        self.assertEqual(definition.driver_type, DriverType.NETWORK)
        self.assertEqual(definition.level_names, ["exec", "enable"])
        self.assertEqual(definition.default_desired_privilege_level, "enable")
        self.assertEqual(definition.failed_when_contains, ("% Error",))
        self.assertEqual(definition.textfsm_platform, "test_os")

        enable = definition.level("enable")
        self.assertEqual(enable.previous_priv, "exec")
        self.assertEqual(enable.escalate_command, "enable")
        self.assertEqual(enable.deescalate_command, "disable")
        self.assertTrue(enable.escalate_auth)
        self.assertEqual(definition.root.name, "exec")

        self.assertEqual(
            definition.on_open_operations,
            (AcquirePriv(), SendCommand(command="terminal length 0")),
        )
        self.assertEqual(
            definition.on_close_operations,
            (AcquirePriv(), ChannelWrite(input="exit"), ChannelReturn()),
        )

    def test_definition_is_read_only(self):
        """Test that the privilege level mapping cannot be changed."""
        definition = PlatformDefinition.from_mapping(make_document())
        with self.assertRaises(TypeError):
            definition.privilege_levels["other"] = definition.root

    def test_unknown_operation_raises_error(self):
        """Test that an unknown operation tag is a malformed definition."""
        document = make_document(**{"network-on-open": [{"operation": "reboot"}]})
        with self.assertRaises(MalformedDefinition) as cm:
            PlatformDefinition.from_mapping(document)
        self.assertIn("unknown operation 'reboot'", str(cm.exception))

    def test_send_command_without_command_raises_error(self):
        """Test that send-command needs a command."""
        document = make_document(**{"network-on-open": [{"operation": "driver.send-command"}]})
        with self.assertRaises(MalformedDefinition):
            PlatformDefinition.from_mapping(document)

    def test_missing_platform_type_raises_error(self):
        """Test that platform-type is required."""
        document = make_document()
        del document["platform-type"]
        with self.assertRaises(MalformedDefinition):
            PlatformDefinition.from_mapping(document)

    def test_unknown_driver_type_raises_error(self):
        """Test that only known driver types are accepted."""
        with self.assertRaises(MalformedDefinition):
            PlatformDefinition.from_mapping(make_document(**{"driver-type": "magic"}))

    def test_variant_is_merged_over_default(self):
        """Test that a variant overrides single fields of a level."""
        document = make_document()
        document["variants"] = {
            "no_auth": {
                "privilege-levels": {"enable": {"escalate-auth": False}},
                "failed-when-contains": ["% Bad"],
            }
        }
        definition = PlatformDefinition.from_mapping(document, variant="no_auth")

        self.assertFalse(definition.level("enable").escalate_auth)
        self.assertEqual(definition.level("enable").escalate_command, "enable")
        self.assertEqual(definition.failed_when_contains, ("% Bad",))

    def test_unknown_variant_raises_error(self):
        """Test asking for a variant that does not exist."""
        with self.assertRaises(MalformedDefinition):
            PlatformDefinition.from_mapping(make_document(), variant="nope")


class TestValidation(unittest.TestCase):
    """Test validate_definition."""

    def build(self, levels, default="a"):
        return PlatformDefinition(
            platform_type="synthetic",
            privilege_levels={level.name: level for level in levels},
            default_desired_privilege_level=default,
        )

    def test_valid_tree(self):
        """Test that a simple tree validates."""
        definition = self.build(
            [
                PrivilegeLevel(name="a", pattern="a>"),
                PrivilegeLevel(name="b", pattern="b#", previous_priv="a"),
            ]
        )
        validate_definition(definition)

    def test_two_roots(self):
        """Test that more than one root is rejected."""
        definition = self.build(
            [PrivilegeLevel(name="a", pattern="a>"), PrivilegeLevel(name="b", pattern="b#")]
        )
        with self.assertRaises(MalformedDefinition) as cm:
            validate_definition(definition)
        self.assertIn("exactly one root", str(cm.exception))

    def test_cycle(self):
        """Test that a cycle is rejected."""
        definition = self.build(
            [
                PrivilegeLevel(name="a", pattern="a>"),
                PrivilegeLevel(name="b", pattern="b#", previous_priv="c"),
                PrivilegeLevel(name="c", pattern="c#", previous_priv="b"),
            ]
        )
        with self.assertRaises(MalformedDefinition) as cm:
            validate_definition(definition)
        self.assertTrue(any("cycle" in problem for problem in cm.exception.problems))

    def test_unknown_parent(self):
        """Test that previous-priv must resolve."""
        definition = self.build(
            [
                PrivilegeLevel(name="a", pattern="a>"),
                PrivilegeLevel(name="b", pattern="b#", previous_priv="missing"),
            ]
        )
        with self.assertRaises(MalformedDefinition) as cm:
            validate_definition(definition)
        self.assertIn("unknown previous-priv 'missing'", str(cm.exception))

    def test_auth_without_prompt(self):
        """Test that escalate-auth needs an escalate-prompt."""
        definition = self.build(
            [
                PrivilegeLevel(name="a", pattern="a>"),
                PrivilegeLevel(name="b", pattern="b#", previous_priv="a", escalate_auth=True),
            ]
        )
        with self.assertRaises(MalformedDefinition) as cm:
            validate_definition(definition)
        self.assertIn("escalate-auth but no escalate-prompt", str(cm.exception))

    def test_invalid_pattern(self):
        """Test that a broken regular expression is reported."""
        definition = self.build([PrivilegeLevel(name="a", pattern="a(>")])
        with self.assertRaises(MalformedDefinition) as cm:
            validate_definition(definition)
        self.assertIn("invalid pattern", str(cm.exception))

    def test_unknown_default_level(self):
        """Test that the default desired level must exist."""
        definition = self.build([PrivilegeLevel(name="a", pattern="a>")], default="z")
        with self.assertRaises(MalformedDefinition):
            validate_definition(definition)

    def test_all_problems_are_collected(self):
        """Test that every defect is listed, not just the first."""
        definition = self.build(
            [
                PrivilegeLevel(name="a", pattern="a>"),
                PrivilegeLevel(name="b", pattern="b(", previous_priv="x"),
            ],
            default="z",
        )
        with self.assertRaises(MalformedDefinition) as cm:
            validate_definition(definition)
        self.assertGreaterEqual(len(cm.exception.problems), 3)

    def test_overlapping_patterns_only_warn(self):
        """Test that identical patterns are reported but accepted."""
        definition = self.build(
            [
                PrivilegeLevel(name="a", pattern="a>"),
                PrivilegeLevel(name="b", pattern="x#", previous_priv="a"),
                PrivilegeLevel(name="c", pattern="x#", previous_priv="a"),
            ]
        )
        with self.assertLogs("netpriv.platform", level="WARNING") as logs:
            validate_definition(definition)
        self.assertEqual(overlapping_levels(definition), [("b", "c")])
        self.assertIn("share a prompt pattern", logs.output[0])


class TestNormalizePattern(unittest.TestCase):
    """Test translation of POSIX bracket classes."""

    def test_ascii_class(self):
        """Test that [[:ascii:]] becomes a plain range."""
        self.assertEqual(normalize_pattern("[[:ascii:]]*"), r"[\x00-\x7f]*")

    def test_plain_pattern_untouched(self):
        """Test that ordinary patterns pass through."""
        self.assertEqual(normalize_pattern(r"^\w+>$"), r"^\w+>$")


if __name__ == "__main__":
    unittest.main()
