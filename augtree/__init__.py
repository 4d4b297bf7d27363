"""augtree - Python bindings for the Augeas configuration editing library."""

__version__ = "0.4.0"
__description__ = "Python bindings for augeas"

from augtree.core.augeas import Augeas
from augtree.core.errors import (
    AugeasError,
    CapabilityUnavailableError,
    ClosedSessionError,
    ConfigError,
    LibraryInitError,
    LibraryLoadError,
    NativeCallError,
)
from augtree.core.flags import Flags
from augtree.core.native import ErrorCode, ErrorDetails
from augtree.core.transform import Transform

__all__ = [
    "Augeas",
    "AugeasError",
    "CapabilityUnavailableError",
    "ClosedSessionError",
    "ConfigError",
    "ErrorCode",
    "ErrorDetails",
    "Flags",
    "LibraryInitError",
    "LibraryLoadError",
    "NativeCallError",
    "Transform",
    "__version__",
]
