"""
Verso Dynamic - Versioned Mutable Cells
=======================================

This module provides Dynamic, the versioned cell at the bottom of Verso.

A Dynamic holds a value together with a version counter. The counter starts at
0 and is incremented by exactly one whenever the value changes semantically
(by equality). Nothing is notified when that happens: observers poll the cell
through a Consumer and compare versions themselves.

Every handle produced by clone() points at the same storage, so a change made
through one handle is seen through all of them.

Example:
    ```python
    from verso import Dynamic

    counter = Dynamic(10)
    counter.set(10)                   # equal value, version stays 0
    counter.update(lambda x: x + 1)   # version 1
    print(counter.get())              # 11
    ```
"""

import copy
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Dict, Generic, Iterator, TypeVar

from .errors import InvalidatedRefError
from .util.borrow import BorrowFlag

if TYPE_CHECKING:
    from .consumer import Consumer

T = TypeVar("T")

INITIAL_VERSION = 0


class _Storage:
    """State shared by every handle of one cell."""

    __slots__ = ("value", "version", "flag", "copy_fn")

    def __init__(self, value: Any, copy_fn: Callable[[Any], Any]) -> None:
        self.value = value
        self.version = INITIAL_VERSION
        self.flag = BorrowFlag()
        self.copy_fn = copy_fn


class ValueRef(Generic[T]):
    """
    Mutable view of a cell's value, handed to update_inplace callbacks.

    Reading or assigning ``ref.value`` goes straight to the cell's storage.
    The view is only valid while the callback runs; afterwards any access
    raises InvalidatedRefError.

    Example:
        ```python
        items = Dynamic([1, 2])

        def append_three(ref):
            ref.value.append(3)
            return True

        items.update_inplace(append_three)
        ```
    """

    __slots__ = ("_storage",)

    def __init__(self, storage: _Storage) -> None:
        self._storage = storage

    @property
    def value(self) -> T:
        return self._live().value

    @value.setter
    def value(self, new_value: T) -> None:
        self._live().value = new_value

    def _live(self) -> _Storage:
        if self._storage is None:
            raise InvalidatedRefError("ValueRef used outside of its update_inplace call")
        return self._storage

    def _invalidate(self) -> None:
        self._storage = None


class Dynamic(Generic[T]):
    """
    A shared, mutable value paired with a monotonic change counter.

    Mutation goes through set(), update() or update_inplace(). The first two
    compare old and new values and only bump the version on inequality;
    update_inplace() trusts the flag returned by its callback.

    Access is guarded at runtime: any number of readers or exactly one
    writer. Mutating a cell from inside a callback that is reading it (or
    reading it from inside update_inplace) raises an ExclusivityViolation
    before anything is written.
    """

    __slots__ = ("_storage",)

    def __init__(
        self, initial_value: T, *, copy_fn: Callable[[Any], Any] = copy.deepcopy
    ) -> None:
        """
        Create a new cell at version 0.

        Args:
            initial_value: The value the cell starts with.
            copy_fn: Function get() uses to copy the value out of the cell.
                     Defaults to copy.deepcopy; pass ``lambda x: x`` for
                     immutable payloads.
        """
        self._storage = _Storage(initial_value, copy_fn)

    @classmethod
    def _from_storage(cls, storage: _Storage) -> "Dynamic[T]":
        handle = cls.__new__(cls)
        handle._storage = storage
        return handle

    @property
    def version(self) -> int:
        """Number of semantic changes since the cell was created."""
        return self._storage.version

    def get(self) -> T:
        """Return a copy of the current value."""
        storage = self._storage
        with storage.flag.shared():
            return storage.copy_fn(storage.value)

    def set(self, new_value: T) -> None:
        """
        Replace the value if it differs from the current one.

        Args:
            new_value: Candidate value; compared with ``!=`` against the
                       current value.
        """
        storage = self._storage
        with storage.flag.shared():
            has_changed = storage.value != new_value
        if has_changed:
            self._commit(new_value)

    def update(self, func: Callable[[T], T]) -> None:
        """
        Compute a new value from the current one and store it if it differs.

        The callback receives the current value while a shared borrow is
        held, so it may read this cell but not mutate it.

        Args:
            func: Maps the current value to a candidate new value.
        """
        storage = self._storage
        with storage.flag.shared():
            new_value = func(storage.value)
            has_changed = storage.value != new_value
        if has_changed:
            self._commit(new_value)

    def update_inplace(self, func: Callable[[ValueRef[T]], bool]) -> None:
        """
        Mutate the value through a ValueRef, skipping the equality check.

        The version is incremented iff ``func`` returns a truthy value. The
        flag is not verified: returning True without changing anything, or
        False after changing something, leaves the version out of step with
        the value. Use this when equality is too expensive to compute.

        If ``func`` raises, the error propagates and the version is not
        bumped. Writes it made through the ValueRef before raising are kept,
        so the caller is responsible for leaving the value consistent.

        Args:
            func: Receives a ValueRef and returns whether it changed the value.
        """
        storage = self._storage
        with storage.flag.exclusive():
            ref: ValueRef[T] = ValueRef(storage)
            try:
                has_changed = func(ref)
            finally:
                ref._invalidate()
            if has_changed:
                storage.version += 1
                logging.debug(
                    f"update_inplace reported a change, version now {storage.version}"
                )

    def clone(self) -> "Dynamic[T]":
        """Return a new handle to the same storage."""
        return Dynamic._from_storage(self._storage)

    def shares_storage(self, other: "Dynamic[Any]") -> bool:
        """True if ``other`` is a handle to this cell's storage."""
        return isinstance(other, Dynamic) and other._storage is self._storage

    def into_consumer(self) -> "Consumer[T]":
        """Create a Consumer bound to a clone of this handle."""
        from .consumer import Consumer

        return Consumer(self.clone())

    @contextmanager
    def _borrow(self) -> Iterator[T]:
        """Yield the stored value while holding a shared borrow."""
        storage = self._storage
        with storage.flag.shared():
            yield storage.value

    def _commit(self, new_value: T) -> None:
        storage = self._storage
        with storage.flag.exclusive():
            storage.value = new_value
            storage.version += 1

    def __copy__(self) -> "Dynamic[T]":
        return self.clone()

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Dynamic[T]":
        # Copies of a handle still alias the same storage.
        return self.clone()

    def __repr__(self) -> str:
        storage = self._storage
        if storage.flag.is_writing:
            return f"Dynamic(<mutably borrowed>, version={storage.version})"
        return f"Dynamic({storage.value!r}, version={storage.version})"
