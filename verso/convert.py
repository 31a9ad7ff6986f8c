"""
Verso Conversion - Building Consumers from Cells
================================================

into_consumer() turns a Dynamic, or an ordered group of them, into the
matching cursor:

- ``Dynamic``           -> Consumer
- ``(Dynamic, Dynamic)`` -> Consumer2
- three cells           -> Consumer3
- four or more cells    -> ConsumerN

Each cell handle is cloned, so the consumer shares storage with the caller's
cells but does not hold on to the caller's handle objects.
"""

import logging
from typing import Any, Dict, Sequence, Tuple, Type, TypeVar, Union, overload

from .consumer import Consumer, Consumer2, Consumer3, ConsumerN
from .dynamic import Dynamic

A = TypeVar("A")
B = TypeVar("B")
C = TypeVar("C")

_COMBINATORS: Dict[int, Type[ConsumerN]] = {
    2: Consumer2,
    3: Consumer3,
}


@overload
def into_consumer(source: Dynamic[A]) -> Consumer[A]: ...


@overload
def into_consumer(source: Tuple[Dynamic[A], Dynamic[B]]) -> Consumer2[A, B]: ...


@overload
def into_consumer(
    source: Tuple[Dynamic[A], Dynamic[B], Dynamic[C]],
) -> Consumer3[A, B, C]: ...


@overload
def into_consumer(source: Sequence[Dynamic[Any]]) -> ConsumerN: ...


def into_consumer(
    source: Union[Dynamic[Any], Sequence[Dynamic[Any]]],
) -> Union[Consumer[Any], ConsumerN]:
    """
    Build a Consumer or combined consumer from one cell or a group of cells.

    Args:
        source: A Dynamic, or a tuple/list of at least two Dynamic instances.

    Returns:
        A Consumer for a single cell, otherwise the combinator for the
        group's size.

    Raises:
        TypeError: If ``source`` is neither a Dynamic nor a tuple/list of them.
        ValueError: If the group holds fewer than two cells.

    Example:
        ```python
        a, b, c = Dynamic(1), Dynamic(2), Dynamic(3)

        into_consumer(a)          # Consumer
        into_consumer((a, b))     # Consumer2
        into_consumer([a, b, c])  # Consumer3
        ```
    """
    if isinstance(source, Dynamic):
        return Consumer(source.clone())

    if not isinstance(source, (tuple, list)):
        raise TypeError(
            f"into_consumer() expects a Dynamic or a tuple of Dynamic, got {type(source).__name__}"
        )

    for index, cell in enumerate(source):
        if not isinstance(cell, Dynamic):
            raise TypeError(
                f"Element {index} of the group is {type(cell).__name__}, not Dynamic"
            )
    if len(source) < 2:
        raise ValueError("A group needs at least two cells; pass a single Dynamic instead")

    combinator = _COMBINATORS.get(len(source), ConsumerN)
    logging.debug(f"Building {combinator.__name__} over {len(source)} cells")
    return combinator(tuple(cell.clone() for cell in source))
