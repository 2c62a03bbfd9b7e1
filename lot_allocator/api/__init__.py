"""User-friendly APIs for Lot Allocator.

Components:
- AllocationAPI: Price refresh, purchase calculation and result tables
"""

from lot_allocator.api.allocation_api import AllocationAPI

__all__ = [
    "AllocationAPI",
]
