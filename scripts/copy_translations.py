#!/usr/bin/env python3
"""Copy translations onto the hash embedded in rich-text columns."""

import sys
import os

# Add parent directory to path to import app modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from transfilter.cli import main


if __name__ == '__main__':
    sys.exit(main())
