"""
Tests for Dynamic, the versioned cell.

Covers construction, the three mutation paths (set, update, update_inplace),
copy-out with get(), handle aliasing, and the runtime exclusivity rules.
"""

import copy
import logging

import pytest

from verso import (
    BorrowError,
    BorrowMutError,
    Consumer,
    Dynamic,
    InvalidatedRefError,
)


class Uncopyable:
    """Equality-comparable value that refuses to be copied."""

    def __init__(self, n):
        self.n = n

    def __eq__(self, other):
        return isinstance(other, Uncopyable) and other.n == self.n

    def __deepcopy__(self, memo):
        raise TypeError("Uncopyable cannot be copied")


@pytest.mark.unit
class TestDynamicCreation:
    """Tests for creating cells."""

    @pytest.mark.parametrize("initial", [0, "hello", [1, 2, 3], {"a": 1}, None])
    def test_get_returns_initial_value(self, initial):
        """get() right after construction returns the initial value."""
        cell = Dynamic(initial)

        assert cell.get() == initial

    def test_new_cell_starts_at_version_zero(self):
        """A new cell has version 0."""
        assert Dynamic(42).version == 0

    def test_repr_shows_value_and_version(self):
        """repr() shows the value and version."""
        assert repr(Dynamic(5)) == "Dynamic(5, version=0)"


@pytest.mark.unit
class TestDynamicSet:
    """Tests for set()."""

    def test_set_different_value_bumps_version(self, counter):
        """Setting a different value stores it and increments the version by one."""
        counter.set(11)

        assert counter.get() == 11
        assert counter.version == 1

    def test_set_equal_value_is_noop(self, counter):
        """Setting an equal value leaves the version unchanged."""
        counter.set(10)

        assert counter.get() == 10
        assert counter.version == 0

    def test_each_change_bumps_exactly_once(self, counter):
        """A sequence of changes increments the version once per change."""
        for value in [1, 2, 2, 3, 3, 3, 10]:
            counter.set(value)

        assert counter.version == 4
        assert counter.get() == 10

    def test_set_uses_equality_not_identity(self):
        """An equal but distinct object does not count as a change."""
        cell = Dynamic([1, 2])

        cell.set([1, 2])

        assert cell.version == 0


@pytest.mark.unit
class TestDynamicUpdate:
    """Tests for update()."""

    def test_update_with_new_value_bumps_version(self, counter):
        """update() storing a different value increments the version."""
        counter.update(lambda x: x * 2)

        assert counter.get() == 20
        assert counter.version == 1

    def test_update_returning_equal_value_is_noop(self, counter):
        """update() returning an equal value leaves the version unchanged."""
        counter.update(lambda x: x)

        assert counter.get() == 10
        assert counter.version == 0

    def test_update_receives_current_value(self, counter):
        """The update function receives the stored value."""
        seen = []

        def record(x):
            seen.append(x)
            return x + 1

        counter.update(record)

        assert seen == [10]

    def test_update_may_read_the_cell(self, counter):
        """Reading the cell from inside update() is allowed."""
        counter.update(lambda x: x + counter.get())

        assert counter.get() == 20

    def test_update_with_uncopyable_value(self):
        """update() and set() work on values that cannot be copied."""
        cell = Dynamic(Uncopyable(42))

        cell.update(lambda foo: Uncopyable(foo.n + 1))

        assert cell.version == 1


@pytest.mark.unit
class TestDynamicUpdateInplace:
    """Tests for update_inplace()."""

    def test_assigning_through_ref_with_true_bumps_version(self, counter):
        """Assigning ref.value and returning True stores the value and bumps the version."""

        def assign(ref):
            ref.value = 30
            return True

        counter.update_inplace(assign)

        assert counter.get() == 30
        assert counter.version == 1

    def test_returning_false_keeps_version(self, counter):
        """Returning False never bumps the version."""
        counter.update_inplace(lambda ref: False)

        assert counter.get() == 10
        assert counter.version == 0

    def test_mutating_container_in_place(self):
        """The stored object can be mutated through ref.value."""
        cell = Dynamic([1, 2])

        def append_three(ref):
            ref.value.append(3)
            return True

        cell.update_inplace(append_three)

        assert cell.get() == [1, 2, 3]
        assert cell.version == 1

    def test_flag_is_trusted_when_nothing_changed(self, counter):
        """Returning True without changing anything still bumps the version."""
        counter.update_inplace(lambda ref: True)

        assert counter.get() == 10
        assert counter.version == 1

    def test_flag_is_trusted_when_something_changed(self):
        """Returning False after a change leaves the version behind the value."""
        cell = Dynamic([1])

        def sneaky(ref):
            ref.value.append(2)
            return False

        cell.update_inplace(sneaky)

        assert cell.get() == [1, 2]
        assert cell.version == 0

    def test_ref_is_invalid_after_call(self, counter):
        """A ValueRef kept past its call raises InvalidatedRefError."""
        kept = []

        def keep(ref):
            kept.append(ref)
            return False

        counter.update_inplace(keep)

        with pytest.raises(InvalidatedRefError):
            kept[0].value
        with pytest.raises(InvalidatedRefError):
            kept[0].value = 99

    def test_reported_change_is_logged(self, counter, caplog):
        """A change reported by update_inplace is logged at debug level."""
        caplog.set_level(logging.DEBUG)

        counter.update_inplace(lambda ref: True)

        assert "update_inplace reported a change, version now 1" in caplog.text


@pytest.mark.unit
class TestDynamicGet:
    """Tests for get() and the copy it returns."""

    def test_get_returns_a_copy(self):
        """Mutating the result of get() does not touch the cell."""
        cell = Dynamic([1, 2])

        result = cell.get()
        result.append(3)

        assert cell.get() == [1, 2]
        assert cell.version == 0

    def test_get_copies_deeply_by_default(self):
        """Nested containers are copied too."""
        cell = Dynamic({"items": [1]})

        cell.get()["items"].append(2)

        assert cell.get() == {"items": [1]}

    def test_custom_copy_fn(self):
        """copy_fn controls how get() copies the value."""
        payload = [1, 2]
        cell = Dynamic(payload, copy_fn=lambda value: value)

        assert cell.get() is payload

    def test_copy_fn_is_shared_by_clones(self):
        """Clones use the copy function of the cell they alias."""
        payload = [1, 2]
        cell = Dynamic(payload, copy_fn=lambda value: value)

        assert cell.clone().get() is payload

    def test_get_on_uncopyable_value_raises(self):
        """get() reports values that cannot be copied."""
        cell = Dynamic(Uncopyable(1))

        with pytest.raises(TypeError):
            cell.get()

        # The failed copy released its borrow.
        cell.set(Uncopyable(2))
        assert cell.version == 1


@pytest.mark.unit
class TestDynamicAliasing:
    """Tests for handles sharing one storage."""

    def test_clone_shares_value_and_version(self):
        """Changes through one handle are visible through its clone."""
        a = Dynamic(0)
        b = a.clone()

        a.set(10)
        assert b.get() == 10
        assert b.version == 1

        a.set(10)
        assert b.version == 1

        b.update(lambda x: x * 2)
        assert a.get() == 20
        assert a.version == 2

        b.update_inplace(lambda ref: False)
        assert a.version == 2

    def test_clone_is_a_distinct_handle(self):
        """clone() returns a new handle object over the same storage."""
        a = Dynamic(0)
        b = a.clone()

        assert b is not a
        assert a.shares_storage(b)
        assert b.shares_storage(a)

    def test_copy_copy_clones_handle(self):
        """copy.copy() on a cell behaves like clone()."""
        a = Dynamic(0)
        b = copy.copy(a)

        assert a.shares_storage(b)

    def test_separate_cells_do_not_share_storage(self):
        """Two cells built from equal values are independent."""
        a = Dynamic(0)
        b = Dynamic(0)

        a.set(1)

        assert not a.shares_storage(b)
        assert b.get() == 0
        assert b.version == 0

    def test_shares_storage_with_non_cell(self):
        """shares_storage() is False for anything that is not a Dynamic."""
        assert not Dynamic(0).shares_storage(0)

    def test_deepcopy_of_handle_is_an_alias(self):
        """copy.deepcopy() on a cell returns another handle to the same storage."""
        a = Dynamic(0)
        b = copy.deepcopy(a)

        a.set(1)

        assert a.shares_storage(b)
        assert b.version == 1

    def test_get_on_cell_of_cells_returns_aliases(self):
        """Handles stored inside a cell come back from get() as aliases."""
        inner = Dynamic(1)
        outer = Dynamic([inner])

        copied = outer.get()
        inner.set(2)

        assert copied[0].shares_storage(inner)
        assert copied[0].get() == 2
        assert copied[0].version == 1

    def test_copy_taken_while_borrowed_is_writable(self):
        """A handle copied while its cell is being read does not inherit the borrow."""
        inner = Dynamic(1)
        outer = Dynamic([inner])
        copies = []

        Consumer(inner).on_change(lambda value: copies.append(outer.get()))
        copies[0][0].set(5)

        assert inner.get() == 5
        assert inner.version == 1


@pytest.mark.unit
@pytest.mark.edge_case
class TestDynamicExclusivity:
    """Tests for mutation attempted while the cell is borrowed."""

    def test_set_inside_update_raises(self, counter):
        """Setting the cell from inside its own update() is refused."""

        def reentrant(x):
            counter.set(x + 5)
            return x + 1

        with pytest.raises(BorrowMutError):
            counter.update(reentrant)

        assert counter.get() == 10
        assert counter.version == 0

    def test_alias_set_inside_update_raises(self, counter):
        """The check covers every handle to the storage, not just the one in use."""
        alias = counter.clone()

        with pytest.raises(BorrowMutError):
            counter.update(lambda x: alias.set(x + 1) or x)

        assert counter.version == 0

    def test_nested_update_inplace_raises(self, counter):
        """A second update_inplace() inside the first is refused."""

        def outer(ref):
            ref.value = 99
            counter.update_inplace(lambda inner: True)
            return True

        with pytest.raises(BorrowMutError):
            counter.update_inplace(outer)

        # The outer write already happened and is kept; the raising callback
        # never reported it, so the version stays behind (caller contract).
        assert counter.get() == 99
        assert counter.version == 0

    def test_get_inside_update_inplace_raises(self, counter):
        """Reading the cell through get() while it is mutably borrowed is refused."""
        with pytest.raises(BorrowError):
            counter.update_inplace(lambda ref: counter.get() == 10)

        assert counter.version == 0

    def test_equal_set_inside_update_is_allowed(self, counter):
        """A set() that does not change anything never asks for a write."""
        counter.update(lambda x: counter.set(x) or x + 1)

        assert counter.get() == 11
        assert counter.version == 1

    def test_cell_usable_after_violation(self, counter):
        """After a refused mutation the cell accepts new writes."""
        with pytest.raises(BorrowMutError):
            counter.update(lambda x: counter.set(0) or x)

        counter.set(12)

        assert counter.get() == 12
        assert counter.version == 1

    def test_exception_in_update_function_propagates(self, counter):
        """Errors from the update function propagate and release the borrow."""

        def explode(x):
            raise ValueError("bad input")

        with pytest.raises(ValueError, match="bad input"):
            counter.update(explode)

        counter.set(11)
        assert counter.version == 1

    def test_exception_in_update_inplace_releases_borrow(self, counter):
        """Errors from an update_inplace callback propagate without bumping the version."""

        def explode(ref):
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            counter.update_inplace(explode)

        assert counter.version == 0
        counter.set(11)
        assert counter.version == 1

    def test_repr_while_mutably_borrowed(self, counter):
        """repr() does not touch the value while it is being mutated."""
        seen = []

        def capture(ref):
            seen.append(repr(counter))
            return False

        counter.update_inplace(capture)

        assert seen == ["Dynamic(<mutably borrowed>, version=0)"]
