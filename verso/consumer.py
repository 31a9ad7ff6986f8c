"""
Verso Consumers - Polling Cursors over Dynamic Cells
====================================================

This module provides the read side of Verso:

- Consumer: a cursor over one Dynamic that remembers the last version it saw
- ConsumerN: a group of cursors polled and advanced as one atomic tuple
- Consumer2 / Consumer3: ConsumerN fixed to two or three members

Nothing here is push-based. A consumer only learns about changes when the host
calls on_change(), typically once per tick of its own update loop. When the
observed version has not moved, on_change() returns without calling anything.

Example:
    ```python
    from verso import Dynamic, into_consumer

    a = Dynamic(10)
    b = Dynamic(20)
    both = into_consumer((a, b))

    both.on_change(lambda x, y: print(x, y))   # prints 10 20
    both.on_change(lambda x, y: print(x, y))   # nothing changed, no call
    a.update(lambda x: x + 1)
    both.on_change(lambda x, y: print(x, y))   # prints 11 20
    ```
"""

from contextlib import ExitStack
from typing import Any, Callable, Generic, Optional, Sequence, Tuple, TypeVar

from .dynamic import Dynamic

T = TypeVar("T")
A = TypeVar("A")
B = TypeVar("B")
C = TypeVar("C")

# No real version is negative, so a fresh cursor always sees a change.
UNSEEN_VERSION = -1


class Consumer(Generic[T]):
    """
    Cursor over a single Dynamic.

    Each consumer keeps its own last-seen version, so several consumers can
    watch the same cell and each one sees every change exactly once.
    """

    __slots__ = ("_dynamic", "_seen_version")

    def __init__(self, dynamic: Dynamic[T]) -> None:
        self._dynamic = dynamic
        self._seen_version = UNSEEN_VERSION

    @property
    def dynamic(self) -> Dynamic[T]:
        return self._dynamic

    @property
    def seen_version(self) -> int:
        """Version consumed by the last successful on_change(), or UNSEEN_VERSION."""
        return self._seen_version

    def on_change(self, func: Callable[[T], Any]) -> bool:
        """
        Call ``func`` with the current value if the cell changed since the last call.

        The cell is borrowed for reading while ``func`` runs; mutating it from
        inside ``func`` raises BorrowMutError and leaves the cursor where it was.

        Args:
            func: Receives the current value.

        Returns:
            True if ``func`` was called, False if nothing changed.
        """
        version = self._dynamic.version
        if version == self._seen_version:
            return False
        with self._dynamic._borrow() as value:
            func(value)
        self._seen_version = version
        return True

    def get(self) -> T:
        """Return a copy of the current value without consuming the change."""
        return self._dynamic.get()

    def __repr__(self) -> str:
        return f"Consumer({self._dynamic!r}, seen_version={self._seen_version})"


class ConsumerN:
    """
    Atomic cursor over an ordered group of Dynamic cells.

    The group counts as changed when any member changed. In that case
    on_change() passes every member's current value to the callback, in
    order, and then marks every member as consumed, including the ones that
    did not change.

    Subclasses may pin ``arity`` to a fixed group size.
    """

    arity: Optional[int] = None

    __slots__ = ("_consumers",)

    def __init__(self, dynamics: Sequence[Dynamic[Any]]) -> None:
        dynamics = tuple(dynamics)
        if self.arity is not None and len(dynamics) != self.arity:
            raise ValueError(
                f"{type(self).__name__} needs exactly {self.arity} cells, got {len(dynamics)}"
            )
        if len(dynamics) < 2:
            raise ValueError("At least two cells must be provided for a combined consumer")
        self._consumers: Tuple[Consumer[Any], ...] = tuple(
            Consumer(dynamic) for dynamic in dynamics
        )

    @property
    def consumers(self) -> Tuple[Consumer[Any], ...]:
        return self._consumers

    def __len__(self) -> int:
        return len(self._consumers)

    def on_change(self, func: Callable[..., Any]) -> bool:
        """
        Call ``func(*values)`` once if any member changed since the last call.

        Args:
            func: Receives the current value of every member as positional
                  arguments, in group order.

        Returns:
            True if ``func`` was called, False if no member changed.
        """
        consumers = self._consumers
        versions = [consumer._dynamic.version for consumer in consumers]
        if all(
            version == consumer._seen_version
            for version, consumer in zip(versions, consumers)
        ):
            return False

        with ExitStack() as stack:
            values = [
                stack.enter_context(consumer._dynamic._borrow())
                for consumer in consumers
            ]
            func(*values)

        for version, consumer in zip(versions, consumers):
            consumer._seen_version = version
        return True

    def get(self) -> Tuple[Any, ...]:
        """Return copies of all current values without consuming anything."""
        return tuple(consumer.get() for consumer in self._consumers)

    def __repr__(self) -> str:
        members = ", ".join(repr(consumer) for consumer in self._consumers)
        return f"{type(self).__name__}({members})"


class Consumer2(ConsumerN, Generic[A, B]):
    """ConsumerN over exactly two cells."""

    arity = 2

    __slots__ = ()

    def __init__(self, dynamics: Tuple[Dynamic[A], Dynamic[B]]) -> None:
        super().__init__(dynamics)

    def on_change(self, func: Callable[[A, B], Any]) -> bool:
        return super().on_change(func)

    def get(self) -> Tuple[A, B]:
        return super().get()  # type: ignore


class Consumer3(ConsumerN, Generic[A, B, C]):
    """ConsumerN over exactly three cells."""

    arity = 3

    __slots__ = ()

    def __init__(self, dynamics: Tuple[Dynamic[A], Dynamic[B], Dynamic[C]]) -> None:
        super().__init__(dynamics)

    def on_change(self, func: Callable[[A, B, C], Any]) -> bool:
        return super().on_change(func)

    def get(self) -> Tuple[A, B, C]:
        return super().get()  # type: ignore
