"""
ctypes declarations for libaugeas.

Every aug_* entry point used by augtree is declared here with explicit
argtypes/restype. The AugeasLib methods take and return plain Python values
(str, int, bool, lists), so callers never touch pointers. Strings are UTF-8.

The error API (aug_error and friends) appeared later than the rest of the
library. It is attached when present; `AugeasLib.has_error_api` tells
callers whether it can be used.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
from ctypes import POINTER, c_char_p, c_int, c_uint, c_void_p
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from augtree.core.errors import CapabilityUnavailableError, LibraryLoadError

logger = logging.getLogger(__name__)

# Environment variable naming an explicit shared library to load
LIBRARY_ENV_VAR = "AUGEAS_LIBRARY"
FALLBACK_LIBRARY_NAME = "libaugeas.so.0"

Handle = int

_REQUIRED_FUNCTIONS: Tuple[Tuple[str, Tuple[Any, ...], Any], ...] = (
    ("aug_init", (c_char_p, c_char_p, c_uint), c_void_p),
    ("aug_defvar", (c_void_p, c_char_p, c_char_p), c_int),
    ("aug_defnode", (c_void_p, c_char_p, c_char_p, c_char_p, POINTER(c_int)), c_int),
    ("aug_get", (c_void_p, c_char_p, POINTER(c_char_p)), c_int),
    ("aug_set", (c_void_p, c_char_p, c_char_p), c_int),
    ("aug_insert", (c_void_p, c_char_p, c_char_p, c_int), c_int),
    ("aug_rm", (c_void_p, c_char_p), c_int),
    ("aug_mv", (c_void_p, c_char_p, c_char_p), c_int),
    ("aug_match", (c_void_p, c_char_p, POINTER(POINTER(c_void_p))), c_int),
    ("aug_save", (c_void_p,), c_int),
    ("aug_load", (c_void_p,), c_int),
    ("aug_close", (c_void_p,), None),
)

_ERROR_FUNCTIONS: Tuple[Tuple[str, Tuple[Any, ...], Any], ...] = (
    ("aug_error", (c_void_p,), c_int),
    ("aug_error_message", (c_void_p,), c_char_p),
    ("aug_error_minor_message", (c_void_p,), c_char_p),
    ("aug_error_details", (c_void_p,), c_char_p),
)


class ErrorCode(IntEnum):
    """Mirror of aug_errcode_t."""

    NOERROR = 0
    ENOMEM = 1
    EINTERNAL = 2
    EPATHX = 3
    ENOMATCH = 4
    EMMATCH = 5
    ESYNTAX = 6
    ENOLENS = 7
    EMXFM = 8
    ENOSPAN = 9
    EMVDESC = 10
    ECMDRUN = 11
    EBADARG = 12
    ELABEL = 13
    ECPDESC = 14


@dataclass(frozen=True)
class ErrorDetails:
    """Snapshot of the native error state of one handle."""

    code: Union[ErrorCode, int]
    message: Optional[str] = None
    minor_message: Optional[str] = None
    details: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.code == ErrorCode.NOERROR

    def describe(self) -> str:
        parts = [p for p in (self.message, self.minor_message, self.details) if p]
        return " - ".join(parts) if parts else f"error code {int(self.code)}"


def _encode(value: Optional[str]) -> Optional[bytes]:
    if value is None:
        return None
    return value.encode("utf-8", "surrogateescape")


def _decode(value: Optional[bytes]) -> Optional[str]:
    if value is None:
        return None
    return value.decode("utf-8", "surrogateescape")


def find_library() -> str:
    """
    Locate the libaugeas shared library.

    Order: $AUGEAS_LIBRARY, ctypes.util.find_library("augeas"),
    then the SONAME libaugeas.so.0.
    """
    explicit = os.environ.get(LIBRARY_ENV_VAR)
    if explicit:
        return explicit
    return ctypes.util.find_library("augeas") or FALLBACK_LIBRARY_NAME


def _c_runtime_free() -> Callable[[Any], None]:
    libc_name = ctypes.util.find_library("c")
    libc = ctypes.CDLL(libc_name) if libc_name else ctypes.CDLL(None)
    free = libc.free
    free.argtypes = [c_void_p]
    free.restype = None
    return free


class AugeasLib:
    """
    Typed wrapper around a loaded libaugeas.

    Args:
        dll: Object exposing the aug_* symbols as attributes (normally a
            ctypes.CDLL). A missing attribute means a missing symbol.
        free: Callable releasing memory allocated by the library. Defaults to
            the C runtime's free().
    """

    def __init__(self, dll: Any, free: Optional[Callable[[Any], None]] = None):
        self._dll = dll
        self._fn: Dict[str, Any] = {}
        for name, argtypes, restype in _REQUIRED_FUNCTIONS:
            try:
                self._attach(name, argtypes, restype)
            except AttributeError as e:
                raise LibraryLoadError(f"libaugeas is missing required symbol {name}") from e

        self.has_error_api = True
        for name, argtypes, restype in _ERROR_FUNCTIONS:
            try:
                self._attach(name, argtypes, restype)
            except AttributeError:
                logger.debug("libaugeas has no %s; error details unavailable", name)
                self.has_error_api = False
                break

        self._free = free if free is not None else _c_runtime_free()

    @classmethod
    def open(cls, path: Optional[str] = None) -> "AugeasLib":
        """Open the shared library at `path` (or the discovered one) and bind it."""
        path = path or find_library()
        logger.debug("Loading libaugeas from %s", path)
        try:
            dll = ctypes.CDLL(path)
        except OSError as e:
            raise LibraryLoadError(f"Could not load libaugeas ({path}): {e}") from e
        return cls(dll)

    def _attach(self, name: str, argtypes: Tuple[Any, ...], restype: Any) -> None:
        fn = getattr(self._dll, name)
        fn.argtypes = list(argtypes)
        fn.restype = restype
        self._fn[name] = fn

    # Standard API

    def init(self, root: Optional[str], loadpath: Optional[str], flags: int) -> Optional[Handle]:
        return self._fn["aug_init"](_encode(root), _encode(loadpath), int(flags))

    def defvar(self, handle: Handle, name: str, expr: Optional[str]) -> int:
        return self._fn["aug_defvar"](handle, _encode(name), _encode(expr))

    def defnode(
        self, handle: Handle, name: str, expr: str, value: Optional[str]
    ) -> Tuple[int, bool]:
        created = c_int(0)
        status = self._fn["aug_defnode"](
            handle, _encode(name), _encode(expr), _encode(value), ctypes.pointer(created)
        )
        return status, bool(created.value)

    def get(self, handle: Handle, path: str) -> Tuple[int, Optional[str]]:
        # The returned string belongs to the tree; it must not be freed.
        out = c_char_p()
        status = self._fn["aug_get"](handle, _encode(path), ctypes.pointer(out))
        return status, _decode(out.value)

    def probe(self, handle: Handle, path: str) -> int:
        """aug_get with a NULL value pointer: only the match status."""
        return self._fn["aug_get"](handle, _encode(path), None)

    def set(self, handle: Handle, path: str, value: Optional[str]) -> int:
        return self._fn["aug_set"](handle, _encode(path), _encode(value))

    def insert(self, handle: Handle, path: str, label: str, before: bool) -> int:
        return self._fn["aug_insert"](handle, _encode(path), _encode(label), 1 if before else 0)

    def rm(self, handle: Handle, path: str) -> int:
        return self._fn["aug_rm"](handle, _encode(path))

    def mv(self, handle: Handle, src: str, dst: str) -> int:
        return self._fn["aug_mv"](handle, _encode(src), _encode(dst))

    def match(self, handle: Handle, expr: str) -> Tuple[int, List[str]]:
        """
        Run aug_match and copy the result into Python strings.

        libaugeas hands ownership of the array and each string to the
        caller; both are released here once copied. NULL entries are skipped.
        """
        out = POINTER(c_void_p)()
        count = self._fn["aug_match"](handle, _encode(expr), ctypes.pointer(out))
        paths: List[str] = []
        if not out:
            return count, paths
        try:
            for i in range(max(count, 0)):
                addr = out[i]
                if addr:
                    paths.append(_decode(ctypes.string_at(addr)))
        finally:
            for i in range(max(count, 0)):
                if out[i]:
                    self._free(out[i])
            self._free(ctypes.cast(out, c_void_p))
        return count, paths

    def save(self, handle: Handle) -> int:
        return self._fn["aug_save"](handle)

    def load(self, handle: Handle) -> int:
        return self._fn["aug_load"](handle)

    def close(self, handle: Handle) -> None:
        self._fn["aug_close"](handle)

    # Error API

    def _require_error_api(self) -> None:
        if not self.has_error_api:
            raise CapabilityUnavailableError(
                "The installed libaugeas does not provide aug_error()"
            )

    def error(self, handle: Handle) -> int:
        self._require_error_api()
        return self._fn["aug_error"](handle)

    def error_message(self, handle: Handle) -> Optional[str]:
        self._require_error_api()
        return _decode(self._fn["aug_error_message"](handle))

    def error_minor_message(self, handle: Handle) -> Optional[str]:
        self._require_error_api()
        return _decode(self._fn["aug_error_minor_message"](handle))

    def error_details(self, handle: Handle) -> Optional[str]:
        self._require_error_api()
        return _decode(self._fn["aug_error_details"](handle))

    def error_info(self, handle: Handle) -> ErrorDetails:
        """Read all four error fields at once."""
        code = self.error(handle)
        try:
            code = ErrorCode(code)
        except ValueError:
            pass
        return ErrorDetails(
            code=code,
            message=self.error_message(handle),
            minor_message=self.error_minor_message(handle),
            details=self.error_details(handle),
        )


_default_library: Optional[AugeasLib] = None


def default_library() -> AugeasLib:
    """Return the process-wide AugeasLib, loading it on first use."""
    global _default_library
    if _default_library is None:
        _default_library = AugeasLib.open()
    return _default_library
