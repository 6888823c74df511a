"""Typing test results, running statistics and leaderboards."""

__version__ = "0.1.0"
