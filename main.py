"""
Break Tracker

Command line for tracking employee breaks, overrun justifications
and daily break budgets.
"""

import sys
from pathlib import Path

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from cli.commands import main as run_cli


def main():
    """Application entry point."""
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
