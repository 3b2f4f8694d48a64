#!/usr/bin/env python3
"""Run one strip joinery operation from the command line."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from strip_joinery.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
