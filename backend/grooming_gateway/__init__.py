"""Grooming Gateway: travel-time import and proxy API for the grooming backend"""

__version__ = "0.1.0"
