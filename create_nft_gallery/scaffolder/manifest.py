"""Manifest (``package.json``) loading and merging.

The base and variant trees may each carry a manifest template.  The two are
merged field by field according to ``MERGE_POLICY``:

``ignore-variant``
    Identity fields always come from the base manifest.
``union-last-wins``
    Mapping fields are the union of both sides, the variant winning on key
    collisions.
``override``
    The variant's value replaces the base's when present.  Fields missing
    from the table use this strategy, so new fields are never dropped.
"""

from __future__ import annotations

import asyncio
import json
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from ..errors import ManifestParseError


class MergeStrategy(str, Enum):
    """How a manifest field is combined across base and variant."""

    OVERRIDE = "override"
    UNION_LAST_WINS = "union-last-wins"
    IGNORE_VARIANT = "ignore-variant"


MERGE_POLICY: dict[str, MergeStrategy] = {
    "name": MergeStrategy.IGNORE_VARIANT,
    "version": MergeStrategy.IGNORE_VARIANT,
    "private": MergeStrategy.IGNORE_VARIANT,
    "type": MergeStrategy.IGNORE_VARIANT,
    "scripts": MergeStrategy.UNION_LAST_WINS,
    "dependencies": MergeStrategy.UNION_LAST_WINS,
    "devDependencies": MergeStrategy.UNION_LAST_WINS,
}

DEFAULT_STRATEGY = MergeStrategy.OVERRIDE


class Manifest(BaseModel):
    """Shape check for a manifest template; unknown fields are kept."""

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    version: str | None = None
    private: bool | None = None
    type: str | None = None
    scripts: dict[str, str] | None = None
    dependencies: dict[str, str] | None = None
    devDependencies: dict[str, str] | None = None


def empty_manifest() -> dict[str, Any]:
    """Manifest used when a variant ships no manifest fragment."""
    return {"scripts": {}, "dependencies": {}, "devDependencies": {}}


def parse_manifest(text: str, path: str | Path = "<string>") -> dict[str, Any]:
    """Parse and validate manifest JSON, preserving key order.

    Raises:
        ManifestParseError: If *text* is not a JSON object of the expected shape.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(path, f"line {exc.lineno} column {exc.colno}: {exc.msg}") from exc

    if not isinstance(data, dict):
        raise ManifestParseError(path, f"expected a JSON object, got {type(data).__name__}")

    try:
        Manifest.model_validate(data, strict=True)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ManifestParseError(path, errors) from exc

    return data


async def load_manifest(path: str | Path) -> dict[str, Any]:
    """Read and parse the manifest template at *path*."""
    file_path = Path(path)
    text = await asyncio.to_thread(file_path.read_text, encoding="utf-8")
    return parse_manifest(text, file_path)


async def load_optional_manifest(path: str | Path) -> dict[str, Any]:
    """Like :func:`load_manifest`, but return the empty manifest when *path* is absent."""
    file_path = Path(path)
    if not file_path.is_file():
        return empty_manifest()
    return await load_manifest(file_path)


def merge_manifests(
    base: dict[str, Any],
    variant: dict[str, Any] | None = None,
    policy: dict[str, MergeStrategy] | None = None,
) -> dict[str, Any]:
    """Merge *variant* on top of *base* following *policy*.

    Field order follows the base manifest, then any fields only the variant
    has.  Mapping fields governed by ``union-last-wins`` are always present
    in the result, as an empty mapping when neither side defines them.
    """
    variant = variant if variant is not None else empty_manifest()
    policy = policy if policy is not None else MERGE_POLICY

    fields: list[str] = list(base)
    fields += [key for key in variant if key not in base]
    fields += [
        key
        for key, strategy in policy.items()
        if strategy is MergeStrategy.UNION_LAST_WINS and key not in fields
    ]

    merged: dict[str, Any] = {}
    for key in fields:
        strategy = policy.get(key, DEFAULT_STRATEGY)
        if strategy is MergeStrategy.IGNORE_VARIANT:
            if key in base:
                merged[key] = base[key]
        elif strategy is MergeStrategy.UNION_LAST_WINS:
            merged[key] = {**(base.get(key) or {}), **(variant.get(key) or {})}
        elif key in variant:
            merged[key] = variant[key]
        else:
            merged[key] = base[key]
    return merged
