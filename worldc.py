#!/usr/bin/env python3
"""
World logic compiler entry point.

Usage: python worldc.py world.yaml [-o generated/] [--verbose]
"""

from worldc.compiler import main

if __name__ == '__main__':
    main()
