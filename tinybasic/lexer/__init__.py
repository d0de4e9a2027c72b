"""BASIC Lexer - Tokenizes program text."""

from .lexer import Lexer, Token, TokenType, KEYWORDS, tokenize

__all__ = ['Lexer', 'Token', 'TokenType', 'KEYWORDS', 'tokenize']
