"""Validate, deduplicate, render and post code-review findings on pull requests."""

__version__ = "0.3.42a0"