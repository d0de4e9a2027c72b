#!/usr/bin/env python3
"""
TinyBasic entry point.

Usage: python run_basic.py program.bas [--max-steps N] [--list] [--tokens] [--verbose]
"""

from tinybasic.runner import main

if __name__ == '__main__':
    main()
