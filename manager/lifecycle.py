"""Lifecycle states for managers and their children.

Both state machines are one-way::

    ManagerState:     OPEN -> CLOSED
    ManageableState:  UNINITIALIZED -> ACTIVE -> CLOSED
"""

from enum import Enum

__all__ = ["ManagerState", "ManageableState"]


class ManagerState(str, Enum):
    """State of a `BaseManager`."""

    OPEN = "open"
    CLOSED = "closed"


class ManageableState(str, Enum):
    """State of a managed child."""

    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"
