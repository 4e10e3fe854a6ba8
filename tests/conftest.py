"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from manager import BaseManageable, BaseManager, ManageableFactory

# =============================================================================
# Sample Children
# =============================================================================


class Widget(BaseManageable):
    """A child that counts how often its resources were released."""

    def __init__(self):
        self.released = 0

    def on_close(self):
        self.released += 1


class Gadget(BaseManageable):
    pass


# =============================================================================
# Fixtures: Fresh Factories and Managers
# =============================================================================


@pytest.fixture
def fresh_factory():
    """Create a fresh ManageableFactory subclass with Widget and Gadget registered."""

    class TestFactory(ManageableFactory):
        pass

    TestFactory.register(Widget)
    TestFactory.register(Gadget)
    TestFactory.register(Widget, identifier="widget")
    TestFactory.register(Gadget, identifier="gadget")
    yield TestFactory
    # Cleanup
    TestFactory.clear()


@pytest.fixture
def manager(fresh_factory):
    """An open manager backed by the fresh factory."""
    mgr = BaseManager(factory=fresh_factory)
    yield mgr
    if not mgr.is_closed():
        mgr.close()


@pytest.fixture
def widget_cls():
    return Widget


@pytest.fixture
def gadget_cls():
    return Gadget
