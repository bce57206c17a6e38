"""Shared types, URL and snippet helpers, and platform backends."""