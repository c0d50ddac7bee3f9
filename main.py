"""
Main entry point for Sonic Tools.

Usage:
    python main.py convert --format mp3 song.wav
    python main.py merge --format m4a intro.mp3 part1.wav part2.flac

Run `python main.py --help` for the list of operations.
"""

import sys

from sonic_tools.cli import main

if __name__ == "__main__":
    sys.exit(main())
