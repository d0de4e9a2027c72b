"""Interpreter behaviour tests."""
