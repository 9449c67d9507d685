"""Batch headshot framing service"""

__version__ = "0.1.0"
