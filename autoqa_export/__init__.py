"""Compile recorded browser action traces into standalone Playwright tests."""

__version__ = "0.1.0"
