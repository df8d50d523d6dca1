"""Shared utilities for etch."""

from etch.utils.html import html_escape, to_str

__all__ = ["html_escape", "to_str"]
