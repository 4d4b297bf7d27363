"""
Exceptions raised by augtree.

Everything derives from AugeasError so callers can catch the whole family.
Argument misuse (e.g. a transform without a lens) raises the builtin
ValueError instead, before any native call is made.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from augtree.core.native import ErrorDetails


class AugeasError(Exception):
    """
    Base class for all augtree errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class LibraryLoadError(AugeasError):
    """The shared library could not be loaded or lacks a required symbol."""


class LibraryInitError(AugeasError):
    """aug_init returned a NULL handle."""


class ClosedSessionError(AugeasError):
    """An operation was attempted on a closed Augeas instance."""


class CapabilityUnavailableError(AugeasError):
    """The installed libaugeas does not export the requested optional API."""


class ConfigError(AugeasError, ValueError):
    """A session configuration file is malformed."""


class NativeCallError(AugeasError):
    """
    A native call reported failure.

    Attributes:
        operation: Name of the facade operation (e.g. "match", "save").
        status: Raw status code returned by libaugeas.
        details: Error details read from the native error API, when available.
    """

    def __init__(
        self,
        operation: str,
        status: int,
        message: str,
        details: Optional["ErrorDetails"] = None,
    ) -> None:
        if details is not None and details.message:
            message = f"{message}: {details.describe()}"
        super().__init__(message)
        self.operation = operation
        self.status = status
        self.details = details
