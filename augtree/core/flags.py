"""Session flags accepted by aug_init (enum aug_flags)."""

from __future__ import annotations

from enum import IntFlag
from typing import Iterable


class Flags(IntFlag):
    NONE = 0

    # Keep the original file with a .augsave extension
    SAVE_BACKUP = 1 << 0

    # Save changes into a file with extension .augnew, and do not overwrite the
    # original file. Takes precedence over SAVE_BACKUP
    SAVE_NEWFILE = 1 << 1

    # Typecheck lenses; since it can be very expensive it is not done by default
    TYPE_CHECK = 1 << 2

    # Do not use the builtin load path for modules
    NO_STDINC = 1 << 3

    # Make save a no-op process, just record what would have changed
    SAVE_NOOP = 1 << 4

    # Do not load the tree during init
    NO_LOAD = 1 << 5

    # Do not load the modules marked as autoload
    NO_MODL_AUTOLOAD = 1 << 6


def parse_flags(names: Iterable[str]) -> Flags:
    """
    Combine flag names ("NO_LOAD", "save-backup", ...) into one Flags value.

    Raises:
        ValueError: If a name is not a known flag.
    """
    result = Flags.NONE
    for raw in names:
        if not isinstance(raw, str):
            raise ValueError(f"Flag names must be strings, got {raw!r}")
        key = raw.strip().upper().replace("-", "_")
        try:
            result |= Flags[key]
        except KeyError:
            valid = ", ".join(f.name for f in Flags if f.name)
            raise ValueError(f"Unknown flag '{raw}'. Valid flags: {valid}") from None
    return result
