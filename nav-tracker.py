"""Launch the NAV Tracker desktop app from a source checkout."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from nav_tracker.app import main

if __name__ == "__main__":
    main()
