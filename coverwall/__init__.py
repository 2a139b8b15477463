"""
Cover Wall

An endless, horizontally scrolling wall of book covers loaded from a
Goodreads shelf, grouped by the year each book was read.
"""

__version__ = "1.0.0"
