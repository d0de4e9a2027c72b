"""TinyBasic test suite."""
