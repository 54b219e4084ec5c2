#!/usr/bin/env python
"""
CLI wrapper for the advisory fetch-and-merge run.
"""

import sys
from pathlib import Path

# Make the repo root importable so `src.*` resolves when run from anywhere
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

if __name__ == "__main__":
    from src.advisories.cli import main

    sys.exit(main())
