"""
Shared pytest fixtures for Verso tests.
"""

import pytest

from verso import Dynamic


@pytest.fixture
def counter():
    """A fresh integer cell starting at 10."""
    return Dynamic(10)


@pytest.fixture
def pair():
    """Two independent integer cells starting at 10 and 20."""
    return Dynamic(10), Dynamic(20)


@pytest.fixture
def triple():
    """Three independent integer cells starting at 10, 20 and 30."""
    return Dynamic(10), Dynamic(20), Dynamic(30)
