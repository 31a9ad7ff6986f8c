"""
Verso Errors
============

Exceptions raised by Verso cells and cursors.

Only one class of runtime failure exists in Verso: breaking the
one-writer-XOR-many-readers discipline on a cell's storage. Those failures are
raised before anything is written, so a cell's value and version never
disagree after an error.
"""


class ExclusivityViolation(RuntimeError):
    """Raised when a cell's storage is accessed in a way that breaks exclusivity."""

    pass


class BorrowError(ExclusivityViolation):
    """Raised when a cell is read while it is being mutated."""

    pass


class BorrowMutError(ExclusivityViolation):
    """Raised when a cell is mutated while it is being read or mutated."""

    pass


class InvalidatedRefError(RuntimeError):
    """Raised when a ValueRef is used after its update_inplace call returned."""

    pass
