r"""Factory registry turning stable type identifiers into live children.

`ManageableFactory` is a class-level registry of text identifiers to
zero-argument constructors. Constructors are registered explicitly, usually
with the class decorator form::

    @ManageableFactory.register
    class Widget(BaseManageable):
        ...

    ManageableFactory.instantiate("my_app.widgets.Widget")

Every construction failure is folded into `InstantiationError` with the
original exception chained as ``__cause__``. Each subclass owns an isolated
table, so separate applications can keep separate factories.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, ClassVar, Dict, Iterator, Optional, TypeVar, Union

from .manageable import Manageable
from .utils import (
    ConformanceError,
    DuplicateKeyError,
    InstantiationError,
    KeyNotFoundError,
    ValidationError,
    get_canonical_name,
    get_type_name,
)
from .validate import TYPE_NAME_MAX_LENGTH, validate_string

logger = logging.getLogger(__name__)

__all__ = ["ManageableFactory"]

Constructor = Callable[[], Any]
F = TypeVar("F", bound=Constructor)


def _constructor_name(constructor: Constructor) -> str:
    return getattr(constructor, "__qualname__", None) or get_type_name(type(constructor))


class ManageableFactory:
    """Registry of zero-argument constructors for managed children."""

    _repository: ClassVar[Dict[str, Constructor]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._repository = {}
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Initialized ManageableFactory subclass %s", get_type_name(cls))

    # -----------------------------------------------------------------------------
    # Table guards
    # -----------------------------------------------------------------------------

    @classmethod
    def _registered_constructor(cls, identifier: str, operation: str) -> Constructor:
        """Return the constructor registered under `identifier`, or raise."""
        constructor = cls._repository.get(identifier)
        if constructor is None:
            known = sorted(cls._repository)
            raise KeyNotFoundError(
                f"Type identifier '{identifier}' is not registered in {get_type_name(cls)}",
                [
                    f"Register the type with @{get_type_name(cls)}.register",
                    "Check the identifier spelling (module.QualName)",
                ],
                {
                    "operation": operation,
                    "factory": get_type_name(cls),
                    "type_identifier": identifier,
                    "registered_count": len(known),
                    "registered_identifiers": known[:10],
                },
            )
        return constructor

    @classmethod
    def _assert_unregistered(cls, identifier: str, constructor: Constructor) -> None:
        existing = cls._repository.get(identifier)
        if existing is not None:
            raise DuplicateKeyError(
                f"Type identifier '{identifier}' is already registered in {get_type_name(cls)}",
                [
                    "Pass a different identifier= to register()",
                    "Unregister the existing constructor first",
                ],
                {
                    "operation": "register",
                    "factory": get_type_name(cls),
                    "type_identifier": identifier,
                    "existing_constructor": _constructor_name(existing),
                    "rejected_constructor": _constructor_name(constructor),
                },
            )

    # -----------------------------------------------------------------------------
    # Registration
    # -----------------------------------------------------------------------------

    @classmethod
    def identifier_of(cls, descriptor: Union[type, Constructor]) -> str:
        """Return the canonical identifier (``module.QualName``) of a descriptor."""
        if inspect.isclass(descriptor):
            return get_canonical_name(descriptor)
        if callable(descriptor) and hasattr(descriptor, "__qualname__"):
            return f"{descriptor.__module__}.{descriptor.__qualname__}"
        raise ValidationError(
            f"{descriptor!r} is not a class or named callable",
            ["Pass a class or a zero-argument function"],
            {
                "expected_type": "class or function",
                "actual_type": get_type_name(type(descriptor)),
            },
        )

    @classmethod
    def register(
        cls, target: Optional[F] = None, *, identifier: Optional[str] = None
    ) -> Any:
        """Register a zero-argument constructor.

        Usable as ``@register``, ``@register(identifier="...")`` or as a plain
        call ``register(Widget)``.

        Raises:
            ValidationError: if the target is not callable or the identifier is malformed.
            DuplicateKeyError: if the identifier is already registered.
        """

        def decorator(constructor: F) -> F:
            if not callable(constructor):
                raise ValidationError(
                    f"{constructor!r} is not callable",
                    ["Register a class or a zero-argument function"],
                    {
                        "expected_type": "callable",
                        "actual_type": get_type_name(type(constructor)),
                    },
                )
            key = cls.identifier_of(constructor) if identifier is None else identifier
            key = validate_string(
                key, name="identifier", max_length=TYPE_NAME_MAX_LENGTH
            )
            cls._assert_unregistered(key, constructor)
            cls._repository[key] = constructor
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%s: registered %s", get_type_name(cls), key)
            return constructor

        if target is None:
            return decorator
        return decorator(target)

    @classmethod
    def unregister(cls, identifier: str) -> Constructor:
        """Remove and return the constructor registered under `identifier`.

        Raises:
            KeyNotFoundError: if `identifier` is not registered.
        """
        constructor = cls._registered_constructor(identifier, "unregister")
        del cls._repository[identifier]
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s: unregistered %s", get_type_name(cls), identifier)
        return constructor

    @classmethod
    def has_identifier(cls, identifier: str) -> bool:
        return identifier in cls._repository

    @classmethod
    def iter_identifiers(cls) -> Iterator[str]:
        """Iterate over a snapshot of the registered identifiers."""
        return iter(list(cls._repository))

    @classmethod
    def count(cls) -> int:
        return len(cls._repository)

    @classmethod
    def clear(cls) -> None:
        """Forget every registered constructor."""
        cls._repository.clear()

    # -----------------------------------------------------------------------------
    # Instantiation
    # -----------------------------------------------------------------------------

    @classmethod
    def instantiate(
        cls, identifier: str, expected_type: Optional[type] = None
    ) -> Manageable:
        """Construct a new child from its type identifier.

        Args:
            identifier: A registered type identifier.
            expected_type: If given, the new object must be an instance of it.

        Returns:
            Manageable: A new, uninitialized child.

        Raises:
            InstantiationError: for every failure; the cause is chained.
        """
        context: Dict[str, Any] = {
            "operation": "instantiate",
            "factory": get_type_name(cls),
            "type_identifier": identifier,
        }
        try:
            constructor = cls._registered_constructor(identifier, "instantiate")
        except KeyNotFoundError as e:
            raise InstantiationError(
                f"Unable to locate the type identifier '{identifier}'",
                list(e.suggestions),
                {**context, "registered_identifiers": e.context["registered_identifiers"]},
            ) from e

        try:
            instance = constructor()
        except Exception as e:
            raise InstantiationError(
                f"Unable to instantiate '{identifier}': {e}",
                ["Ensure the constructor takes no arguments and does not raise"],
                context,
            ) from e

        if not isinstance(instance, Manageable):
            cause = ConformanceError(
                f"{get_type_name(type(instance))} does not implement Manageable",
                ["Inherit from BaseManageable or implement the Manageable methods"],
                {
                    "expected_type": "Manageable",
                    "actual_type": get_type_name(type(instance)),
                },
            )
            raise InstantiationError(
                f"Unable to instantiate '{identifier}': {cause.message}",
                list(cause.suggestions),
                context,
            ) from cause

        if expected_type is not None and not isinstance(instance, expected_type):
            cause = ConformanceError(
                f"{get_type_name(type(instance))} is not a {get_type_name(expected_type)}",
                [f"Inherit from {get_type_name(expected_type)}"],
                {
                    "expected_type": get_type_name(expected_type),
                    "actual_type": get_type_name(type(instance)),
                },
            )
            raise InstantiationError(
                f"Unable to instantiate '{identifier}': {cause.message}",
                list(cause.suggestions),
                context,
            ) from cause

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s: instantiated %s", get_type_name(cls), identifier)
        return instance
