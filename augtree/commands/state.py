"""Global CLI options shared by every command."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import typer

from augtree.core.config import SessionConfig, load_config
from augtree.core.flags import parse_flags


@dataclass
class CliState:
    """Global options collected by the top-level callback."""

    root: Optional[str] = None
    loadpath: Optional[str] = None
    config_file: Optional[Path] = None
    flags: List[str] = field(default_factory=list)

    def session_config(self) -> SessionConfig:
        """Load the config file and apply command-line overrides."""
        cfg = load_config(self.config_file)
        if self.root:
            cfg.root = self.root
        if self.loadpath:
            cfg.loadpath = self.loadpath
        if self.flags:
            cfg.flags |= parse_flags(self.flags)
        return cfg


def get_state(ctx: typer.Context) -> CliState:
    return ctx.obj if isinstance(ctx.obj, CliState) else CliState()
