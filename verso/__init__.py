"""
Verso - Versioned Cells with Polling Consumers

A small change-tracking library: values live in versioned cells, and
observers poll them through cursors to find out whether anything changed since
they last looked. There are no callbacks pushed from producers; work happens
only when a consumer asks.
"""

from .consumer import UNSEEN_VERSION, Consumer, Consumer2, Consumer3, ConsumerN
from .convert import into_consumer
from .dynamic import INITIAL_VERSION, Dynamic, ValueRef
from .errors import (
    BorrowError,
    BorrowMutError,
    ExclusivityViolation,
    InvalidatedRefError,
)

__all__ = [
    # Cells
    "Dynamic",
    "ValueRef",
    # Consumers
    "Consumer",
    "ConsumerN",
    "Consumer2",
    "Consumer3",
    # Conversion
    "into_consumer",
    # Constants
    "INITIAL_VERSION",
    "UNSEEN_VERSION",
    # Exceptions
    "ExclusivityViolation",
    "BorrowError",
    "BorrowMutError",
    "InvalidatedRefError",
]
