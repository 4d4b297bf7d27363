"""Core modules for augtree."""

__all__ = [
    "native",
    "augeas",
    "flags",
    "transform",
    "errors",
    "config",
]
