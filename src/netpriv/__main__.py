"""Entry point for running netpriv as a module.

This allows the package to be run with:
    python -m netpriv
"""

from __future__ import annotations

import sys

from netpriv import main

if __name__ == "__main__":
    sys.exit(main())
