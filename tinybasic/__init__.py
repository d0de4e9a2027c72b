"""
TinyBasic - A line-numbered BASIC interpreter.

This package tokenizes BASIC program text, parses it into a line-indexed
statement tree, and executes that tree directly with a tree-walking
interpreter.
"""

__version__ = "0.1.0"
