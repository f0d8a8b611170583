"""Bhagavad Gita Reader: browse chapters and sloks and listen to their translations."""

__version__ = "0.1.0"
