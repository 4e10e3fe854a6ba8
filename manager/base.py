r"""Parent-owned object registry.

`BaseManager` creates, tracks and tears down uniquely-keyed children. Use it
directly, subclass it, or delegate to it::

    @ManageableFactory.register
    class Session(BaseManageable):
        ...

    sessions = BaseManager[Session]()
    s = sessions.create("alice", Session)
    s.close()          # removed from the manager
    sessions.close()   # closes every remaining child

A child stays in the manager until `close_child(key)` is called or the child
calls its own `close()`. `close()` on the manager closes every child and
poisons the manager: every later call except `is_closed()` raises
`ClosedError`. Unlike most shutdown methods, `close()` is not idempotent;
calling it twice raises `ClosedError`.

Thread safety:
    There is no internal locking. A manager must not be mutated (`create`,
    `close_child`, `close`) from more than one thread without external
    serialization, and reads interleaved with mutation carry the same
    requirement. `get_keys()` returns the only snapshot.

Configuration is passed as class keywords::

    class SessionManager(BaseManager[Session], factory=SessionFactory, strict=True,
                         key_max_length=64):
        pass
"""

from __future__ import annotations

import inspect
import logging
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Generic,
    Iterator,
    Optional,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
    overload,
)

from .factory import ManageableFactory
from .lifecycle import ManagerState
from .manageable import Manageable
from .utils import (
    ClosedError,
    DuplicateKeyError,
    InstantiationError,
    InvariantError,
    KeyNotFoundError,
    ManagerError,
    ValidationError,
    get_type_name,
)
from .validate import KEY_MAX_LENGTH, TYPE_NAME_MAX_LENGTH, validate_string

logger = logging.getLogger(__name__)

__all__ = ["BaseManager"]

C = TypeVar("C", bound=Manageable)


def _validate_factory(factory: Any) -> Type[ManageableFactory]:
    if inspect.isclass(factory) and issubclass(factory, ManageableFactory):
        return factory
    raise ValidationError(
        f"{factory!r} is not a ManageableFactory subclass",
        ["Pass a subclass of ManageableFactory"],
        {
            "argument": "factory",
            "expected_type": "Type[ManageableFactory]",
            "actual_type": get_type_name(type(factory)),
        },
    )


class BaseManager(Generic[C]):
    """Object manager for creating and handling child objects."""

    KEY_MAX_LENGTH: ClassVar[int] = KEY_MAX_LENGTH
    TYPE_NAME_MAX_LENGTH: ClassVar[int] = TYPE_NAME_MAX_LENGTH

    _default_factory: ClassVar[Type[ManageableFactory]] = ManageableFactory
    _strict: ClassVar[bool] = False

    def __init_subclass__(
        cls,
        factory: Optional[Type[ManageableFactory]] = None,
        strict: Optional[bool] = None,
        key_max_length: Optional[int] = None,
        type_name_max_length: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        """Configure a manager subclass.

        Args:
            factory: Factory used by `create` (inherited when omitted).
            strict: Require children to be instances of the generic argument.
            key_max_length: Maximum key length (inherited when omitted).
            type_name_max_length: Maximum type identifier length.
            **kwargs: Forwarded to the next class in the MRO.
        """
        super().__init_subclass__(**kwargs)
        if factory is not None:
            cls._default_factory = _validate_factory(factory)
        if strict is not None:
            cls._strict = strict
        if cls._strict and cls._child_type() is None:
            raise ValidationError(
                f"{get_type_name(cls)} is strict but declares no child type",
                ["Subclass BaseManager[ChildType] when passing strict=True"],
                {"argument": "strict", "manager": get_type_name(cls)},
            )
        if key_max_length is not None:
            cls.KEY_MAX_LENGTH = key_max_length
        if type_name_max_length is not None:
            cls.TYPE_NAME_MAX_LENGTH = type_name_max_length
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Initialized BaseManager subclass %s (factory=%s, strict=%s, key_max_length=%d)",
                get_type_name(cls),
                get_type_name(cls._default_factory),
                cls._strict,
                cls.KEY_MAX_LENGTH,
            )

    def __init__(self, factory: Optional[Type[ManageableFactory]] = None) -> None:
        self._children: Dict[str, C] = {}
        self._state = ManagerState.OPEN
        self._factory = (
            type(self)._default_factory
            if factory is None
            else _validate_factory(factory)
        )

    @classmethod
    def _child_type(cls) -> Optional[type]:
        """Return the concrete generic argument, e.g. ``Session`` in ``BaseManager[Session]``."""
        for base in getattr(cls, "__orig_bases__", ()):
            origin = get_origin(base)
            if inspect.isclass(origin) and issubclass(origin, BaseManager):
                args = get_args(base)
                if args and inspect.isclass(args[0]):
                    return args[0]
        return None

    @property
    def factory(self) -> Type[ManageableFactory]:
        return self._factory

    # -----------------------------------------------------------------------------
    # Creation
    # -----------------------------------------------------------------------------

    @overload
    def create(self, key: str, type_identifier: Union[str, Type[C]]) -> C: ...

    @overload
    def create(self, key: Union[str, Type[C]]) -> C: ...

    def create(
        self,
        key: Union[str, Type[C]],
        type_identifier: Union[str, Type[C], None] = None,
    ) -> C:
        """Create a child, bind it under `key` and return it.

        With a single argument, the key is the type identifier; a class is
        turned into its canonical ``module.QualName`` identifier.

        Raises:
            ClosedError: if the manager is closed.
            ValidationError: if the key or type identifier is malformed.
            DuplicateKeyError: if `key` is already bound.
            InstantiationError: if the child could not be constructed.
        """
        self._assert_open("create")
        if type_identifier is None:
            if inspect.isclass(key):
                key = self._factory.identifier_of(key)
            type_identifier = key
        elif inspect.isclass(type_identifier):
            type_identifier = self._factory.identifier_of(type_identifier)

        key = self._validate_key(key)
        type_identifier = validate_string(
            type_identifier,
            name="type_identifier",
            max_length=self.TYPE_NAME_MAX_LENGTH,
        )

        child = self._load_and_store(key, type_identifier)
        try:
            child.initialize(self, key)
        except ManagerError:
            self._rollback(key, child)
            raise
        except Exception as e:
            self._rollback(key, child)
            raise InstantiationError(
                f"Unable to initialize '{type_identifier}' under key '{key}': {e}",
                ["Check the child's initialize() implementation"],
                {"operation": "create", "key": key, "type_identifier": type_identifier},
            ) from e

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "%s: created %s under key %r",
                get_type_name(type(self)),
                type_identifier,
                key,
            )
        return child

    def _load_and_store(self, key: str, type_identifier: str) -> C:
        """Instantiate `type_identifier` and store it under `key`."""
        if key in self._children:
            raise DuplicateKeyError(
                f"A Manageable instance already exists with that key='{key}'",
                [
                    "Use a different key",
                    "Close the existing child first with close_child()",
                ],
                {
                    "operation": "create",
                    "key": key,
                    "existing_type": get_type_name(type(self._children[key])),
                },
            )
        expected_type = self._child_type() if self._strict else None
        child = self._factory.instantiate(type_identifier, expected_type=expected_type)
        return self._add_to_child_table(key, child)

    def _add_to_child_table(self, key: str, child: C) -> C:
        """Store `child` under `key`. Subclasses may override to add behavior."""
        self._children[key] = child
        return child

    def _rollback(self, key: str, child: C) -> None:
        """Unbind a child whose `initialize` failed and release it."""
        if self._children.get(key) is child:
            del self._children[key]
        try:
            child.release()
        except Exception:
            # the initialize() error is the one the caller sees
            logger.exception(
                "%s: release() failed while rolling back key %r",
                get_type_name(type(self)),
                key,
            )
        logger.warning(
            "%s: rolled back key %r after initialize() failed",
            get_type_name(type(self)),
            key,
        )

    # -----------------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------------

    def get(self, key: str) -> Optional[C]:
        """Return the child bound to `key`, or None."""
        self._assert_open("get")
        return self._children.get(self._validate_key(key))

    def contains_child(self, key: str) -> bool:
        self._assert_open("contains_child")
        return self._validate_key(key) in self._children

    def get_child_count(self) -> int:
        self._assert_open("get_child_count")
        return len(self._children)

    def get_keys(self) -> FrozenSet[str]:
        """Return an immutable snapshot of the bound keys."""
        self._assert_open("get_keys")
        return frozenset(self._children)

    def is_closed(self) -> bool:
        return self._state is ManagerState.CLOSED

    # -----------------------------------------------------------------------------
    # Teardown
    # -----------------------------------------------------------------------------

    def close_child(self, key: str) -> Optional[C]:
        """Remove and release the child bound to `key`.

        Returns:
            The removed child, or None if `key` was unbound.
        """
        self._assert_open("close_child")
        key = self._validate_key(key)
        child = self._children.pop(key, None)
        if child is not None:
            child.release()
            if key in self._children:
                raise InvariantError(
                    f"The child table still holds key '{key}' after its child was closed",
                    ["Do not re-register a child from its on_close() hook"],
                    {"operation": "close_child", "key": key},
                )
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%s: closed child %r", get_type_name(type(self)), key)
        return child

    def close(self) -> None:
        """Close every child, then close the manager.

        Raises:
            ClosedError: if the manager is already closed.
            InvariantError: if a child survived the sweep.
        """
        self._assert_open("close")
        keys = tuple(self._children)
        for key in keys:
            self.close_child(key)
        if self._children:
            raise InvariantError(
                "The child table should be empty after closing every child",
                ["Do not create children from an on_close() hook"],
                {"operation": "close", "remaining_keys": sorted(self._children)},
            )
        self._state = ManagerState.CLOSED
        logger.info("%s closed (%d children closed)", get_type_name(type(self)), len(keys))

    # -----------------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------------

    def _assert_open(self, operation: str) -> None:
        if self._state is ManagerState.CLOSED:
            raise ClosedError(
                "This manager is closed and unable to process calls.",
                ["Create a new manager"],
                {"operation": operation, "manager": get_type_name(type(self))},
            )

    def _validate_key(self, key: Any) -> str:
        return validate_string(key, name="key", max_length=self.KEY_MAX_LENGTH)

    # -----------------------------------------------------------------------------
    # Python protocols
    # -----------------------------------------------------------------------------

    def __contains__(self, key: object) -> bool:
        return self.contains_child(key)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return self.get_child_count()

    def __bool__(self) -> bool:
        # truthiness must not depend on the child count or the closed state
        return True

    def __iter__(self) -> Iterator[str]:
        self._assert_open("__iter__")
        return iter(tuple(self._children))

    def __getitem__(self, key: str) -> C:
        child = self.get(key)
        if child is None:
            raise KeyNotFoundError(
                f"Key '{key}' is not bound in {get_type_name(type(self))}",
                ["Use get() to receive None instead", "Check get_keys() for bound keys"],
                {"operation": "__getitem__", "key": key},
            )
        return child

    def __enter__(self) -> "BaseManager[C]":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if not self.is_closed():
            self.close()

    def __repr__(self) -> str:
        return (
            f"{get_type_name(type(self))}(state={self._state.value}, "
            f"children={sorted(self._children)})"
        )
