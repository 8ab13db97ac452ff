#!/usr/bin/env python3
"""
Launch the Gene Regulatory Network simulator

Usage:
    python run_grn.py random --seed 42 --steps 2000
"""

import sys

from grn.cli import main

if __name__ == '__main__':
    sys.exit(main())
