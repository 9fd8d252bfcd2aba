#!/usr/bin/env python3
"""
Dungeon Assembler - Main Entry Point

Generates a layout from the command line. See `python main.py --help`.
"""

import sys

from dungeon_assembler.cli import main

if __name__ == "__main__":
    sys.exit(main())
