from ._version import __version__, get_version_info, print_version_info
from .base import BaseManager
from .factory import ManageableFactory
from .lifecycle import ManageableState, ManagerState
from .manageable import BaseManageable, Manageable
from .utils import (
    ClosedError,
    ConformanceError,
    DuplicateKeyError,
    InstantiationError,
    InvariantError,
    KeyNotFoundError,
    LifecycleError,
    ManagerError,
    ValidationError,
)
from .validate import KEY_MAX_LENGTH, TYPE_NAME_MAX_LENGTH

__all__ = [
    "BaseManager",
    "BaseManageable",
    "Manageable",
    "ManageableFactory",
    "ManagerState",
    "ManageableState",
    "ManagerError",
    "ValidationError",
    "ConformanceError",
    "DuplicateKeyError",
    "KeyNotFoundError",
    "InstantiationError",
    "LifecycleError",
    "ClosedError",
    "InvariantError",
    "KEY_MAX_LENGTH",
    "TYPE_NAME_MAX_LENGTH",
    "__version__",
    "get_version_info",
    "print_version_info",
]
