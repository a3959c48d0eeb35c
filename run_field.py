#!/usr/bin/env python3
"""
Barnes-Hut Gravity Field
Main script to evaluate the potential and acceleration of a body set on a grid.
"""

import sys

from fastgravity.cli import main


if __name__ == "__main__":
    sys.exit(main())
