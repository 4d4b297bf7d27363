"""
Session configuration for augtree.

A YAML file can describe how sessions are opened: filesystem root, lens
load path, flags, which shared library to use, and transforms to register.
Only the CLI and `Augeas.from_config` read it; the library API never looks
at configuration files on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from augtree.core.errors import ConfigError
from augtree.core.flags import Flags, parse_flags
from augtree.core.transform import Transform

CONFIG_FILENAMES = ("augtree.yaml", "augtree.yml")

TEMPLATE_HEADER = """\
# augtree session configuration
#
# root:      filesystem root (default: $AUGEAS_ROOT or /)
# loadpath:  extra lens directories, colon-separated
# library:   explicit path to libaugeas (default: $AUGEAS_LIBRARY or system search)
# flags:     any of SAVE_BACKUP, SAVE_NEWFILE, TYPE_CHECK, NO_STDINC,
#            SAVE_NOOP, NO_LOAD, NO_MODL_AUTOLOAD
# transforms: lens + incl (+ optional name, excl); loaded on open
"""


def get_config_path() -> Path:
    """Get the per-user config file path (~/.augtree/config.yaml)."""
    return Path.home() / ".augtree" / "config.yaml"


@dataclass
class SessionConfig:
    """Everything needed to open an Augeas session."""

    root: Optional[str] = None
    loadpath: Optional[str] = None
    flags: Flags = Flags.NONE
    library: Optional[str] = None
    transforms: List[Transform] = field(default_factory=list)
    source: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[Path] = None) -> "SessionConfig":
        """
        Build a config from parsed YAML.

        Raises:
            ConfigError: On unknown keys, bad flag names or bad transforms.
        """
        known = {"root", "loadpath", "flags", "library", "transforms"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        flags_raw = data.get("flags") or []
        if isinstance(flags_raw, str):
            flags_raw = [flags_raw]
        elif not isinstance(flags_raw, list):
            raise ConfigError("'flags' must be a flag name or a list of flag names")
        try:
            flags = parse_flags(flags_raw)
        except ValueError as e:
            raise ConfigError(str(e)) from e

        transforms_raw = data.get("transforms") or []
        if not isinstance(transforms_raw, list):
            raise ConfigError("'transforms' must be a list")
        transforms: List[Transform] = []
        for i, entry in enumerate(transforms_raw, 1):
            if not isinstance(entry, dict):
                raise ConfigError(f"Transform #{i} must be a mapping")
            try:
                transforms.append(
                    Transform(
                        lens=entry.get("lens"),
                        incl=entry.get("incl"),
                        name=entry.get("name"),
                        excl=entry.get("excl"),
                    )
                )
            except ValueError as e:
                raise ConfigError(f"Transform #{i}: {e}") from e

        return cls(
            root=_optional_str(data, "root"),
            loadpath=_optional_str(data, "loadpath"),
            flags=flags,
            library=_optional_str(data, "library"),
            transforms=transforms,
            source=source,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.root:
            data["root"] = self.root
        if self.loadpath:
            data["loadpath"] = self.loadpath
        if self.library:
            data["library"] = self.library
        data["flags"] = [f.name for f in Flags if f.value and f in self.flags]
        data["transforms"] = []
        for xfm in self.transforms:
            entry: Dict[str, Any] = {"lens": xfm.lens, "name": xfm.name, "incl": list(xfm.incl)}
            if xfm.excl:
                entry["excl"] = list(xfm.excl)
            data["transforms"].append(entry)
        return data

    def export_template(self, output_path: Path) -> None:
        """Write this config as an annotated YAML file."""
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(TEMPLATE_HEADER)
            f.write("\n")
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def get_config_summary(self) -> Dict[str, Any]:
        return {
            "source": str(self.source) if self.source else None,
            "root": self.root or "(default)",
            "loadpath": self.loadpath or "(default)",
            "library": self.library or "(auto)",
            "flags": [f.name for f in Flags if f.value and f in self.flags],
            "transform_count": len(self.transforms),
        }


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string")
    return value


def load_config(config_file: Optional[Path] = None) -> SessionConfig:
    """
    Load a session configuration.

    Args:
        config_file: Optional path to a config file (.yaml or .yml).
                    If None, looks for 'augtree.yaml' / 'augtree.yml' in the
                    current directory, then ~/.augtree/config.yaml.

    Returns:
        SessionConfig instance (defaults when no file is found)

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    if config_file is None:
        candidates = [Path(name) for name in CONFIG_FILENAMES] + [get_config_path()]
        config_file = next((p for p in candidates if p.exists()), None)
        if config_file is None:
            return SessionConfig()

    config_file = Path(config_file)
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, OSError) as e:
        raise ConfigError(f"Could not load config {config_file}: {e}") from e

    if data is None:
        return SessionConfig(source=config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_file} must contain a mapping")
    return SessionConfig.from_dict(data, source=config_file)
