"""
High-level wrapper around one libaugeas session.

For the semantics of each call see http://augeas.net/docs/api.html. In
general a method called `foo` here corresponds to `aug_foo` in the library.
"""

from __future__ import annotations

import logging
import threading
import weakref
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Iterator, List, Optional, Union

from augtree.core import native
from augtree.core.errors import (
    ClosedSessionError,
    LibraryInitError,
    NativeCallError,
)
from augtree.core.flags import Flags
from augtree.core.native import AugeasLib, ErrorCode, ErrorDetails, Handle
from augtree.core.transform import LOAD_ROOT, Patterns, Transform

if TYPE_CHECKING:
    from augtree.core.config import SessionConfig

logger = logging.getLogger(__name__)


class Augeas:
    """
    One open Augeas session.

    The instance owns its native handle: it is created by the constructor and
    released by `close()` (or when leaving a `with` block, or by the callback
    form of `open()`). After closing, every other method raises
    ClosedSessionError. Calling `close()` again is a no-op.

    Native calls are serialized by a per-instance lock, but the tree itself is
    shared state: interleaving edits from several threads on one instance is
    the caller's problem.

    Instances cannot be copied or pickled.
    """

    NONE = Flags.NONE
    SAVE_BACKUP = Flags.SAVE_BACKUP
    SAVE_NEWFILE = Flags.SAVE_NEWFILE
    TYPE_CHECK = Flags.TYPE_CHECK
    NO_STDINC = Flags.NO_STDINC
    SAVE_NOOP = Flags.SAVE_NOOP
    NO_LOAD = Flags.NO_LOAD
    NO_MODL_AUTOLOAD = Flags.NO_MODL_AUTOLOAD

    def __init__(
        self,
        root: Optional[str] = None,
        loadpath: Optional[str] = None,
        flags: Union[Flags, int] = Flags.NONE,
        *,
        library: Optional[AugeasLib] = None,
    ):
        """
        Create a new session.

        Args:
            root: Filesystem root. When None, libaugeas uses $AUGEAS_ROOT, or "/".
            loadpath: Colon-separated lens directories searched in addition to
                the standard load path and $AUGEAS_LENS_LIB.
            flags: Bitmask of Flags.
            library: Bound library to use; defaults to the process-wide one.

        Raises:
            LibraryLoadError: If libaugeas cannot be loaded.
            LibraryInitError: If aug_init fails.
        """
        self._lib = library if library is not None else native.default_library()
        self._flags = Flags(flags)
        self._lock = threading.RLock()

        handle = self._lib.init(root, loadpath, self._flags)
        if not handle:
            raise LibraryInitError(
                f"aug_init failed (root={root!r}, loadpath={loadpath!r}, flags={self._flags!r})"
            )
        self._handle: Optional[Handle] = handle
        self._finalizer = weakref.finalize(self, self._lib.close, handle)
        logger.debug("Opened Augeas session (root=%r, flags=%r)", root, self._flags)

    @classmethod
    def open(
        cls,
        root: Optional[str] = None,
        loadpath: Optional[str] = None,
        flags: Union[Flags, int] = Flags.NONE,
        callback: Optional[Callable[["Augeas"], Any]] = None,
        *,
        library: Optional[AugeasLib] = None,
    ) -> Any:
        """
        Open a session.

        Without `callback`, the open instance is returned. With one, the
        instance is passed to `callback`, closed when it returns or raises,
        and the callback's return value is returned.
        """
        aug = cls(root, loadpath, flags, library=library)
        return aug._run(callback)

    @classmethod
    def from_config(
        cls,
        config: "SessionConfig",
        callback: Optional[Callable[["Augeas"], Any]] = None,
    ) -> Any:
        """
        Open a session described by a SessionConfig.

        The config's transforms are registered and, if there are any, the
        tree is loaded before the instance is returned (or handed to
        `callback`, as in `open`).
        """
        library = AugeasLib.open(config.library) if config.library else None
        aug = cls(config.root, config.loadpath, config.flags, library=library)
        if config.transforms:
            try:
                for xfm in config.transforms:
                    aug.add_transform(xfm)
                aug.load_or_raise()
            except BaseException:
                aug.close()
                raise
        return aug._run(callback)

    def _run(self, callback: Optional[Callable[["Augeas"], Any]]) -> Any:
        if callback is None:
            return self
        try:
            return callback(self)
        finally:
            self.close()

    def __enter__(self) -> "Augeas":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __copy__(self):
        raise TypeError("Augeas sessions cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("Augeas sessions cannot be copied")

    def __reduce__(self):
        raise TypeError("Augeas sessions cannot be pickled")

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<Augeas {state} flags={self._flags!r}>"

    @property
    def closed(self) -> bool:
        return self._handle is None

    @property
    def flags(self) -> Flags:
        return self._flags

    @property
    def has_error_api(self) -> bool:
        """Whether the loaded libaugeas exports aug_error() and friends."""
        return self._lib.has_error_api

    @contextmanager
    def _native(self) -> Iterator[Handle]:
        with self._lock:
            if self._handle is None:
                raise ClosedSessionError("Augeas handle is closed")
            yield self._handle

    def _details(self, handle: Handle) -> Optional[ErrorDetails]:
        if not self._lib.has_error_api:
            return None
        return self._lib.error_info(handle)

    def _fail(self, handle: Handle, operation: str, status: int, message: str) -> NativeCallError:
        logger.debug("%s failed with status %d", operation, status)
        return NativeCallError(operation, status, message, self._details(handle))

    # Tree access

    def get(self, path: str) -> Optional[str]:
        """
        Return the value at `path`, or None if there is no node or no value.

        Raises:
            NativeCallError: If libaugeas reports an error, e.g. `path`
                matches more than one node.
        """
        with self._native() as h:
            status, value = self._lib.get(h, path)
            if status < 0:
                raise self._fail(h, "get", status, f"Getting value of '{path}' failed")
        return value

    def exists(self, path: str) -> bool:
        """Return True if at least one node matches `path`."""
        with self._native() as h:
            status = self._lib.probe(h, path)
            if status == 1:
                return True
            # Several matches make aug_get fail; the error code tells them apart
            # from a bad expression.
            if status < 0 and self._lib.has_error_api:
                return self._lib.error(h) == ErrorCode.EMMATCH
        return False

    def set(self, path: str, value: Optional[str]) -> bool:
        """Make the value of `path` be `value`. Returns True on success."""
        with self._native() as h:
            rv = self._lib.set(h, path, value)
        return rv == 0

    def set_or_raise(self, path: str, value: Optional[str]) -> None:
        """The same as `set`, but raises NativeCallError on failure."""
        with self._native() as h:
            rv = self._lib.set(h, path, value)
            if rv != 0:
                raise self._fail(h, "set", rv, f"Setting '{path}' failed")

    def clear(self, path: str) -> bool:
        """Clear the value of `path`, i.e. make it None."""
        return self.set(path, None)

    def insert(self, path: str, label: str, before: bool = False) -> int:
        """
        Insert a new sibling node called `label` next to `path`.

        The node goes after `path` unless `before` is True. Returns the raw
        native status (0 on success, -1 on failure).
        """
        with self._native() as h:
            return self._lib.insert(h, path, label, before)

    def match(self, path: str) -> List[str]:
        """
        Return the paths of all nodes matching `path`, in the order
        libaugeas returns them. No match gives an empty list.

        Raises:
            NativeCallError: If the path expression is invalid.
        """
        with self._native() as h:
            count, paths = self._lib.match(h, path)
            if count < 0:
                raise self._fail(h, "match", count, f"Matching path expression '{path}' failed")
        return paths

    def rm(self, path: str) -> int:
        """Remove `path` and its subtree; returns the number of nodes removed."""
        with self._native() as h:
            return self._lib.rm(h, path)

    def remove(self, path: str) -> int:
        """See `rm`."""
        return self.rm(path)

    def mv(self, source: str, dest: str) -> int:
        """Move the subtree at `source` to `dest`. Returns the raw native status."""
        with self._native() as h:
            return self._lib.mv(h, source, dest)

    def move(self, source: str, dest: str) -> int:
        """See `mv`."""
        return self.mv(source, dest)

    # Variables

    def defvar(self, name: str, expression: Optional[str]) -> bool:
        """
        Define variable `name` as the result of evaluating `expression`.
        A None expression removes the variable. Returns True on success.
        """
        with self._native() as h:
            rv = self._lib.defvar(h, name, expression)
        return rv >= 0

    def define_variable(self, name: str, expression: Optional[str]) -> bool:
        """See `defvar`."""
        return self.defvar(name, expression)

    def defnode(self, name: str, expression: str, value: Optional[str]) -> Union[bool, int]:
        """
        Define variable `name` as the nodeset of `expression`, creating a
        node with `value` when nothing matches.

        Returns False on failure, else the number of nodes in the nodeset.
        """
        with self._native() as h:
            rv, _created = self._lib.defnode(h, name, expression, value)
        return False if rv < 0 else rv

    def define_node(self, name: str, expression: str, value: Optional[str]) -> Union[bool, int]:
        """See `defnode`."""
        return self.defnode(name, expression, value)

    # Transforms

    def transform(
        self,
        lens: Optional[str] = None,
        incl: Patterns = None,
        name: Optional[str] = None,
        excl: Patterns = None,
    ) -> Transform:
        """
        Add a transform under /augeas/load.

        Args:
            lens: Lens to use, e.g. "Hosts.lns".
            incl: Glob pattern(s) of the files to transform.
            name: Unique name; the module name of `lens` when omitted.
            excl: Glob pattern(s) removed from the files matched by `incl`.

        Raises:
            ValueError: If `lens` or `incl` is missing. Nothing is written.
            NativeCallError: If a write fails. Entries written before the
                failure are left in place.
        """
        return self.add_transform(Transform(lens, incl, name, excl))

    def add_transform(self, xfm: Transform) -> Transform:
        """Write a Transform under /augeas/load/<name>."""
        base = xfm.base_path + "/"
        self.set_or_raise(base + "lens", xfm.lens)
        for inc in xfm.incl:
            self.set_or_raise(base + "incl[last()+1]", inc)
        for exc in xfm.excl:
            self.set_or_raise(base + "excl[last()+1]", exc)
        return xfm

    def transforms(self) -> List[Transform]:
        """Read back the transforms currently under /augeas/load."""
        result: List[Transform] = []
        for path in self.match(f"{LOAD_ROOT}/*"):
            lens = self.get(path + "/lens")
            incl = [v for v in (self.get(p) for p in self.match(path + "/incl")) if v]
            excl = [v for v in (self.get(p) for p in self.match(path + "/excl")) if v]
            if not lens or not incl:
                logger.debug("Skipping incomplete transform at %s", path)
                continue
            name = path.rsplit("/", 1)[-1].split("[", 1)[0]
            result.append(Transform(lens, incl, name, excl))
        return result

    def clear_transforms(self) -> int:
        """
        Remove every transform under /augeas/load. Calling `load` right
        after this leaves nothing under /files.
        """
        return self.rm(f"{LOAD_ROOT}/*")

    # Persistence

    def save(self) -> bool:
        """Write all pending changes to disk. Returns True on success."""
        with self._native() as h:
            rv = self._lib.save(h)
        return rv == 0

    def save_or_raise(self) -> None:
        """The same as `save`, but raises NativeCallError on failure."""
        with self._native() as h:
            rv = self._lib.save(h)
            if rv != 0:
                raise self._fail(h, "save", rv, "Saving the tree failed")

    def load(self) -> bool:
        """(Re)load files according to the transforms in /augeas/load."""
        with self._native() as h:
            rv = self._lib.load(h)
        return rv == 0

    def load_or_raise(self) -> None:
        """The same as `load`, but raises NativeCallError on failure."""
        with self._native() as h:
            rv = self._lib.load(h)
            if rv != 0:
                raise self._fail(h, "load", rv, "Loading the tree failed")

    # Errors

    def error(self) -> ErrorDetails:
        """
        Return the error state of the last native call.

        Raises:
            CapabilityUnavailableError: If the library has no error API.
        """
        with self._native() as h:
            return self._lib.error_info(h)

    def close(self) -> None:
        """Release the native handle. Closing twice is harmless."""
        with self._lock:
            if self._handle is None:
                return
            self._handle = None
            self._finalizer()
        logger.debug("Closed Augeas session")
