"""
Transform descriptors.

A transform binds a lens to include/exclude glob patterns. libaugeas reads
them from /augeas/load/<name>/{lens,incl,excl}; `load()` then parses every
matching file into /files.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

LOAD_ROOT = "/augeas/load"

Patterns = Union[str, List[str], Tuple[str, ...], None]


def _as_patterns(value: Patterns, field_name: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ValueError(f"'{field_name}' must be a string or a list of strings")


def lens_module_name(lens: str) -> str:
    """
    Derive a transform name from a lens identifier.

    "Hosts.lns" -> "Hosts", "@Hosts" -> "Hosts".
    """
    name = lens.split(".")[0]
    if name.startswith("@"):
        name = name[1:]
    return name


@dataclass(frozen=True)
class Transform:
    """
    A lens plus the files it applies to.

    Args:
        lens: Lens identifier, e.g. "Hosts.lns".
        incl: One glob pattern or several; at least one is required.
        name: Transform name under /augeas/load. Defaults to the lens module name.
        excl: Glob patterns removed from the `incl` matches. Defaults to none.
    """

    lens: str
    incl: Patterns
    name: Optional[str] = None
    excl: Patterns = ()

    def __post_init__(self) -> None:
        if not self.lens:
            raise ValueError("No lens specified")
        if not isinstance(self.lens, str):
            raise ValueError("'lens' must be a string")
        if self.name is not None and not isinstance(self.name, str):
            raise ValueError("'name' must be a string")
        incl = _as_patterns(self.incl, "incl")
        if not incl:
            raise ValueError("No files to include")
        # Frozen: normalized values go through object.__setattr__
        object.__setattr__(self, "incl", incl)
        object.__setattr__(self, "excl", _as_patterns(self.excl, "excl"))
        object.__setattr__(self, "name", self.name or lens_module_name(self.lens))

    @property
    def base_path(self) -> str:
        return f"{LOAD_ROOT}/{self.name}"
