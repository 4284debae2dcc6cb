"""Weeklog - record what you worked on and review it by week."""

__version__ = '0.1.0'
