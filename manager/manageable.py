r"""Child contract and its default implementation.

`Manageable` is the capability set every managed object implements: bind to
a parent manager and key, report them, and close itself. `BaseManageable`
is the reusable default.

A child moves through ``UNINITIALIZED -> ACTIVE -> CLOSED``. Its reference
to the manager is a `weakref.ref`, so the manager holds the only strong
reference in the pair.

Override points:
    `BaseManageable.on_close` releases resources owned by the child. It runs
    exactly once, whether the close was started by the child or by the
    manager.
"""

from __future__ import annotations

import logging
import weakref
from typing import TYPE_CHECKING, Any, Optional

from typing_extensions import Protocol, runtime_checkable

from .lifecycle import ManageableState
from .utils import ClosedError, LifecycleError, ValidationError, get_type_name
from .validate import KEY_MAX_LENGTH, validate_not_none, validate_string

if TYPE_CHECKING:
    from .base import BaseManager

logger = logging.getLogger(__name__)

__all__ = ["Manageable", "BaseManageable"]


@runtime_checkable
class Manageable(Protocol):
    """Protocol for objects owned by a `BaseManager`."""

    def initialize(self, parent: "BaseManager[Any]", key: str) -> None:
        """Bind the parent and key. Called once, by the manager."""
        ...

    def close(self) -> None:
        """Ask the parent to remove this child, then release resources."""
        ...

    def release(self) -> None:
        """Release resources without calling back into the parent."""
        ...

    def get_key(self) -> str: ...

    def get_parent(self) -> "BaseManager[Any]": ...


class BaseManageable:
    """Default `Manageable` implementation.

    Subclasses need a zero-argument constructor to be built by a factory.
    No ``__init__`` is required here; state lives in class-level defaults
    until `initialize` binds it.

    Equality:
        Two initialized children are equal when they have the same concrete
        type and the same key. Uninitialized children compare by identity.
        The hash follows the same rule, so an uninitialized child should not
        be kept in a set or used as a dict key across `initialize`.
    """

    _key: Optional[str] = None
    _parent: Optional["weakref.ref[BaseManager[Any]]"] = None
    _state: ManageableState = ManageableState.UNINITIALIZED

    # -----------------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------------

    def initialize(self, parent: "BaseManager[Any]", key: str) -> None:
        """Bind `parent` and `key` and become active.

        Raises:
            ValidationError: if `parent` is None or `key` is empty.
            LifecycleError: if the child is already initialized.
            ClosedError: if the child is closed.
        """
        if self._state is ManageableState.CLOSED:
            self._raise_closed("initialize")
        if self._state is ManageableState.ACTIVE:
            raise LifecycleError(
                f"{get_type_name(type(self))} is already bound to key '{self._key}'",
                ["A child is initialized exactly once, by its manager"],
                {"operation": "initialize", "key": self._key},
            )
        validate_not_none(parent, name="parent")
        key = validate_string(
            key,
            name="key",
            max_length=getattr(parent, "KEY_MAX_LENGTH", KEY_MAX_LENGTH),
        )
        try:
            parent_ref = weakref.ref(parent)
        except TypeError as e:
            raise ValidationError(
                f"{get_type_name(type(parent))} cannot be referenced weakly",
                ["Use a BaseManager subclass as the parent"],
                {
                    "argument": "parent",
                    "expected_type": "BaseManager",
                    "actual_type": get_type_name(type(parent)),
                },
            ) from e

        self._parent = parent_ref
        self._key = key
        self._state = ManageableState.ACTIVE
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s initialized with key %r", get_type_name(type(self)), key)

    def close(self) -> None:
        """Deregister from the parent manager and release resources.

        Raises:
            ClosedError: if the child is already closed.
        """
        if self._state is ManageableState.CLOSED:
            self._raise_closed("close")

        parent = self._parent() if self._parent is not None else None
        if (
            parent is not None
            and not parent.is_closed()
            and parent.get(self._key) is self
        ):
            # the manager pops the entry and calls release()
            parent.close_child(self._key)
        if self._state is not ManageableState.CLOSED:
            self.release()

    def release(self) -> None:
        """Run `on_close`, drop the parent reference and mark closed.

        Called by the manager after it removed this child's entry. A second
        call does nothing.
        """
        if self._state is ManageableState.CLOSED:
            return
        try:
            self.on_close()
        finally:
            self._parent = None
            self._state = ManageableState.CLOSED
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%s %r closed", get_type_name(type(self)), self._key)

    def on_close(self) -> None:
        """Release resources owned by this child. Default: nothing."""

    # -----------------------------------------------------------------------------
    # Accessors
    # -----------------------------------------------------------------------------

    def get_key(self) -> str:
        """Return the bound key; remains readable after close.

        Raises:
            LifecycleError: if the child was never initialized.
        """
        if self._key is None:
            self._raise_uninitialized("get_key")
        return self._key

    def get_parent(self) -> "BaseManager[Any]":
        """Return the owning manager.

        Raises:
            ClosedError: if the child is closed or the manager no longer exists.
            LifecycleError: if the child was never initialized.
        """
        if self._state is ManageableState.CLOSED:
            self._raise_closed("get_parent")
        if self._parent is None:
            self._raise_uninitialized("get_parent")
        parent = self._parent()
        if parent is None:
            raise ClosedError(
                f"The manager of '{self._key}' no longer exists",
                ["Keep a reference to the manager for as long as its children are used"],
                {"operation": "get_parent", "key": self._key},
            )
        return parent

    @property
    def key(self) -> str:
        return self.get_key()

    @property
    def parent(self) -> "BaseManager[Any]":
        return self.get_parent()

    @property
    def state(self) -> ManageableState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is ManageableState.CLOSED

    # -----------------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------------

    def _raise_closed(self, operation: str) -> None:
        raise ClosedError(
            f"This {get_type_name(type(self))} has been closed and may not be used.",
            ["Create a new child through the manager"],
            {"operation": operation, "key": self._key},
        )

    def _raise_uninitialized(self, operation: str) -> None:
        raise LifecycleError(
            f"This {get_type_name(type(self))} has not been initialized.",
            ["Create children through BaseManager.create()"],
            {"operation": operation},
        )

    # -----------------------------------------------------------------------------
    # Object protocol
    # -----------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, BaseManageable):
            return NotImplemented
        if type(self) is not type(other):
            return False
        if self._key is None or other._key is None:
            return False
        return self._key == other._key

    def __hash__(self) -> int:
        if self._key is None:
            return object.__hash__(self)
        return hash((type(self), self._key))

    def __repr__(self) -> str:
        return f"{get_type_name(type(self))}(key={self._key!r}, state={self._state.value})"
