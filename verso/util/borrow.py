"""
Borrow Flag
===========

This module provides BorrowFlag, the runtime exclusivity check shared by every
handle of one Verso cell.

The flag is a single signed counter:

- 0: storage is idle
- n > 0: n shared (read) borrows are active
- -1: one exclusive (write) borrow is active

Any number of shared borrows may nest, but an exclusive borrow requires the
storage to be idle. Requests that would break this rule raise immediately,
before the caller touches the storage.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from ..errors import BorrowError, BorrowMutError

UNUSED = 0
WRITING = -1


class BorrowFlag:
    """
    Reader/writer counter guarding one cell's value and version.

    Example:
        ```python
        flag = BorrowFlag()

        with flag.shared():
            with flag.shared():      # nested reads are fine
                pass
            with flag.exclusive():   # raises BorrowMutError
                pass
        ```
    """

    __slots__ = ("_state",)

    def __init__(self) -> None:
        self._state = UNUSED

    @property
    def readers(self) -> int:
        """Number of active shared borrows."""
        return self._state if self._state > 0 else 0

    @property
    def is_writing(self) -> bool:
        return self._state == WRITING

    @property
    def is_idle(self) -> bool:
        return self._state == UNUSED

    def acquire_shared(self) -> None:
        if self._state == WRITING:
            logging.debug("Shared borrow refused: storage is mutably borrowed")
            raise BorrowError("value is already mutably borrowed")
        self._state += 1

    def release_shared(self) -> None:
        if self._state <= 0:
            raise RuntimeError("release_shared() called without a shared borrow")
        self._state -= 1

    def acquire_exclusive(self) -> None:
        if self._state != UNUSED:
            logging.debug(
                f"Exclusive borrow refused: storage state is {self._describe()}"
            )
            raise BorrowMutError(f"value is already borrowed ({self._describe()})")
        self._state = WRITING

    def release_exclusive(self) -> None:
        if self._state != WRITING:
            raise RuntimeError("release_exclusive() called without an exclusive borrow")
        self._state = UNUSED

    @contextmanager
    def shared(self) -> Iterator[None]:
        """Hold a shared borrow for the duration of the block."""
        self.acquire_shared()
        try:
            yield
        finally:
            self.release_shared()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Hold the exclusive borrow for the duration of the block."""
        self.acquire_exclusive()
        try:
            yield
        finally:
            self.release_exclusive()

    def _describe(self) -> str:
        if self._state == WRITING:
            return "mutably borrowed"
        if self._state == UNUSED:
            return "idle"
        return f"{self._state} shared borrow(s)"

    def __repr__(self) -> str:
        return f"BorrowFlag({self._describe()})"
