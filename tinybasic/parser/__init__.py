"""BASIC Parser - Builds the program tree from tokens."""

from .parser import Parser, parse
from .printer import format_program, format_statement, format_expression
from .ast_nodes import *

__all__ = ['Parser', 'parse', 'format_program', 'format_statement', 'format_expression']
