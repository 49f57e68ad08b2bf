"""Preset loading: where the ordered list of renamers comes from."""

import importlib.util
import os
import sys
from pathlib import Path
from typing import Any

from .renamer import Renamer
from .util import debug
from .workspace import TextDocumentLocator, Workspace


def _get_config_dirs() -> list[Path]:
    """
    User config directories for lsprename, in XDG fallback order:
    $XDG_CONFIG_HOME/lsprename, ~/.config/lsprename, ~/.lsprename
    """
    dirs: list[Path] = []

    if xdg_config := os.environ.get('XDG_CONFIG_HOME'):
        dirs.append(Path(xdg_config) / 'lsprename')

    home = Path.home()
    dirs.append(home / '.config' / 'lsprename')
    dirs.append(home / '.lsprename')

    return dirs


def load_preset(
    name_or_path: str, workspace: Workspace, locator: TextDocumentLocator
) -> list[Renamer]:
    """
    Load a preset by name or file path and return its renamers.

    Names (no '/') are looked up in the user config directories first,
    then among the bundled presets.  A preset module defines
    `renamers(workspace, locator)` returning renamers in priority order.
    """
    if '/' in name_or_path:
        module = _load_preset_from_file(name_or_path)
    else:
        for config_dir in _get_config_dirs():
            preset_path = config_dir / f'{name_or_path}.py'
            if preset_path.exists():
                module = _load_preset_from_file(str(preset_path))
                break
        else:
            module = _load_preset_from_bundle(name_or_path)

    renamers_fn = getattr(module, 'renamers', None)
    if renamers_fn is None:
        raise AttributeError(f"Preset {name_or_path} defines no renamers()")

    renamers = list(renamers_fn(workspace, locator))
    debug(
        f"Preset {name_or_path}: "
        + ", ".join(type(r).__name__ for r in renamers)
    )
    return renamers


def _load_preset_from_file(filepath: str) -> Any:
    abs_path = os.path.abspath(filepath)
    if not os.path.isfile(abs_path):
        raise FileNotFoundError(f"Cannot load preset from {filepath}")

    spec = importlib.util.spec_from_file_location("_lsprename_preset", abs_path)
    if spec is None or spec.loader is None:
        raise FileNotFoundError(f"Cannot load preset from {filepath}")

    module = importlib.util.module_from_spec(spec)
    sys.modules["_lsprename_preset"] = module
    spec.loader.exec_module(module)
    return module


def _load_preset_from_bundle(name: str) -> Any:
    """Load bundled preset from the lsprename.presets subpackage."""
    presets_spec = importlib.util.find_spec('lsprename.presets')
    if presets_spec is None or presets_spec.origin is None:
        raise FileNotFoundError("Cannot find lsprename.presets package")

    presets_dir = os.path.dirname(presets_spec.origin)
    return _load_preset_from_file(os.path.join(presets_dir, f'{name}.py'))
