"""program_constants.py

The `program_constants` module. The values in this file are all *at least*
constant during a single run of the program, though some (like the logging
directory, for example) will vary between installations and operating
systems.
"""

import re
from dataclasses import dataclass
from importlib.metadata import version
from logging import WARNING

import platformdirs

# The name is needed to read the version from package metadata, so it has to
# exist before the PROGRAM_CONSTANTS dataclass below.
_name = "netpriv"


@dataclass(frozen=True, slots=True)
class PROGRAM_CONSTANTS:
    NAME: str = _name
    """The name of the program. This is used when creating directory
    structures using `platformdirs`"""

    AUTHOR: str = "netpriv"
    """The author/publisher of the program. This is used when creating
    directory structures using `platformdirs`"""

    VERSION: str = version(_name)
    """The current version of the program, as read from package metadata."""


# `PROGRAM_CONSTANTS.NAME` is a slot descriptor on the class, read `_name`.
DEFAULT_LOG_DIR = platformdirs.user_log_path(appname=_name)
DEFAULT_LOG_FILE = DEFAULT_LOG_DIR / "netpriv.log"
DEFAULT_LOG_LEVEL = WARNING

DEFAULT_USER_PLATFORM_DIR = platformdirs.user_config_path(appname=_name) / "platforms"
"""Extra platform definitions (``*.yaml``) dropped here are picked up by the
command line tool on top of the built-in ones."""

DEFAULT_TIMEOUT_OPS = 30.0
"""Seconds any single blocking read (prompt or auth prompt) may take."""

DEFAULT_RETURN_CHAR = "\n"
DEFAULT_PROMPT_SEARCH_DEPTH = 1024
DEFAULT_READ_DELAY = 0.00025

DEFAULT_CONFIGURATION_PRIVILEGE_LEVEL = "configuration"

ANSI_PATTERN = re.compile(
    r"(?:\x1B[@-Z\\-_]|[\x80-\x9A\x9C-\x9F]|(?:\x1B\[|\x9B)[0-?]*[ -/]*[@-~])"
)
"""Terminal escape sequences devices put in their output."""

LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5
