"""Lot Allocator: spend new cash on whole lots to track target weights."""

__version__ = "0.1.0"
