"""Load metadata registries from JSON files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from deltamap.config.settings import Settings

from .descriptors import MetaRegistry, MetadataError


def load_registry(path: Path | str) -> MetaRegistry:
    """Read a JSON metadata file into a :class:`MetaRegistry`."""
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise MetadataError(f"Metadata file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise MetadataError(f"Metadata file {path} is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise MetadataError(f"Metadata file {path} must contain a JSON object")
    return MetaRegistry.from_mapping(raw)


def load_registry_from_settings(settings: Optional[Settings] = None) -> MetaRegistry:
    if settings is None:
        from deltamap.config.settings import settings as default_settings

        settings = default_settings
    if settings.meta_file is None:
        raise MetadataError("DELTAMAP_META_FILE is not configured")
    return load_registry(settings.meta_file)
