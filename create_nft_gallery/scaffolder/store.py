"""Template store access and layered composition.

A template store is a directory holding one ``base/`` tree and any number of
``variants/<name>/`` trees.  Composition copies an ordered list of trees into
a project directory, lowest precedence first, so that a file present in a
later layer replaces the file at the same relative path from an earlier one.
Directories are merged, never replaced wholesale.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import Iterable

from ..errors import TemplateNotFound


class TemplateStore:
    """Read-only view over a ``base`` + ``variants`` template directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.base_path = self.root / "base"
        self.variants_path = self.root / "variants"

    def variants(self) -> list[str]:
        """Return the sorted names of every variant tree in the store."""
        if not self.variants_path.is_dir():
            return []
        return sorted(p.name for p in self.variants_path.iterdir() if p.is_dir())

    def variant_path(self, name: str) -> Path:
        """Resolve *name* to its variant tree.

        Raises:
            TemplateNotFound: If *name* is not a directory under ``variants/``.
        """
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise TemplateNotFound(name, self.variants())
        path = self.variants_path / name
        if not path.is_dir():
            raise TemplateNotFound(name, self.variants())
        return path

    def layers(self, variant: str | None) -> list[Path]:
        """Return the trees to compose for *variant*, lowest precedence first."""
        if not self.base_path.is_dir():
            raise FileNotFoundError(f"Base template tree not found: {self.base_path}")
        layers = [self.base_path]
        if variant is not None:
            layers.append(self.variant_path(variant))
        return layers

