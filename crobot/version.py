"""Canonical version string."""

VERSION = "0.3.42-alpha"