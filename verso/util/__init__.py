"""
Verso Utils
===========

Support classes for Verso cells.

Classes:
- BorrowFlag: Runtime reader/writer bookkeeping for one cell's storage
"""

from .borrow import BorrowFlag

__all__ = [
    "BorrowFlag",
]
