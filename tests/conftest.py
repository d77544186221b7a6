"""Shared pytest fixtures for the create-nft-gallery test suite.

Provides reusable fixtures for:
- A small on-disk template store (base tree + two variants)
- Config factories pointing at that store
- A clean environment without ``CNG_*`` variables
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from create_nft_gallery.config import Config


# ---------------------------------------------------------------------------
# Template store
# ---------------------------------------------------------------------------

BASE_MANIFEST: dict[str, Any] = {
    "name": "<%= name %>",
    "version": "0.1.0",
    "private": True,
    "type": "module",
    "scripts": {"dev": "vite", "build": "vite build"},
    "dependencies": {"react": "^18.3.1"},
    "devDependencies": {"vite": "^5.4.0"},
}

MANIFOLD_MANIFEST: dict[str, Any] = {
    "name": "not-the-project-name",
    "scripts": {"build": "vite build --mode manifold"},
    "dependencies": {"ethers": "^6.13.2"},
}

APP_TEMPLATE = """export const title = '<%= name %>';
<% if (includeManifold) { -%>
export const source = 'manifold';
<% } else { -%>
export const source = 'other';
<% } -%>
"""


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Write ``{relative path: content}`` under *root* and return *root*."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """A template store with a ``base`` tree and ``manifold``/``metaplex`` variants.

    ``metaplex`` deliberately ships no manifest fragment.
    """
    return write_tree(
        tmp_path / "templates",
        {
            "base/package.json.ejs": json.dumps(BASE_MANIFEST, indent=2),
            "base/README.md.ejs": "# <%= name %>\n\nServed from <%= domain %>.\n",
            "base/src/App.jsx.ejs": APP_TEMPLATE,
            "base/src/shared.js": "export const shared = true;\n",
            "base/src/lib/nfts.js": "// base loader\n",
            "variants/manifold/package.json.ejs": json.dumps(MANIFOLD_MANIFEST, indent=2),
            "variants/manifold/src/lib/nfts.js": "// manifold loader\n",
            "variants/manifold/src/lib/abi.js": "export const abi = [];\n",
            "variants/metaplex/src/lib/nfts.js": "// metaplex loader\n",
        },
    )


@pytest.fixture
def make_config(template_dir: Path, tmp_path: Path) -> Callable[..., Config]:
    """Factory for configs that scaffold into ``tmp_path / "out"`` without bootstrapping."""

    def _make(**overrides: Any) -> Config:
        settings: dict[str, Any] = {
            "project_name": "my-gallery",
            "domain": "mygallery",
            "variant": "manifold",
            "output_dir": tmp_path / "out",
            "template_dir": template_dir,
            "skip_install": True,
            "skip_git": True,
        }
        settings.update(overrides)
        return Config(**settings)

    return _make


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every ``CNG_*`` variable so tests see the built-in defaults."""
    import os

    for key in list(os.environ):
        if key.startswith("CNG_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def tree_writer() -> Callable[[Path, dict[str, str]], Path]:
    """Expose :func:`write_tree` to test modules."""
    return write_tree


@pytest.fixture
def base_manifest() -> dict[str, Any]:
    """The manifest template shipped by the ``template_dir`` base tree."""
    return json.loads(json.dumps(BASE_MANIFEST))
