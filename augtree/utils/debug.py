"""
Helpers for inspecting an Augeas tree.

These walk the tree with plain `match`/`get` calls, so they work with any
libaugeas version, and render it with rich.
"""

from typing import Iterator, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from augtree.core.augeas import Augeas

console = Console()


def _children(aug: Augeas, path: str) -> list:
    return aug.match(path.rstrip("/") + "/*")


def walk_tree(aug: Augeas, path: str = "/files") -> Iterator[Tuple[str, Optional[str]]]:
    """
    Yield (path, value) for every node below `path`, depth first.

    Args:
        aug: Open Augeas session
        path: Path expression of the starting node(s); the nodes themselves
              are not yielded, only their descendants.
    """
    stack = list(reversed(_children(aug, path)))
    while stack:
        node = stack.pop()
        yield node, aug.get(node)
        stack.extend(reversed(_children(aug, node)))


def _label(path: str, value: Optional[str]) -> str:
    name = escape(path.rsplit("/", 1)[-1])
    if value is None:
        return f"[bold]{name}[/]"
    return f"[bold]{name}[/] = [green]{escape(repr(value))}[/]"


def build_tree(aug: Augeas, path: str = "/files", max_depth: Optional[int] = None) -> Tree:
    """
    Build a rich Tree of the nodes below `path`.

    Args:
        aug: Open Augeas session
        path: Starting node
        max_depth: Stop descending after this many levels (None = unlimited)
    """
    root = Tree(f"[cyan]{escape(path)}[/]")

    def add(branch: Tree, node_path: str, depth: int) -> None:
        if max_depth is not None and depth >= max_depth:
            return
        for child in _children(aug, node_path):
            sub = branch.add(_label(child, aug.get(child)))
            add(sub, child, depth + 1)

    add(root, path, 0)
    return root


def display_tree(
    aug: Augeas,
    path: str = "/files",
    max_depth: Optional[int] = None,
    *,
    console: Optional[Console] = None,
) -> None:
    """Print the tree below `path`."""
    c = console or globals()["console"]
    if not aug.match(path):
        c.print(f"[yellow]No nodes match {escape(path)}[/]")
        return
    c.print(build_tree(aug, path, max_depth))
