"""
Catalog loading.

A catalog file is JSON with ``divisions`` and ``configurations`` lists and an
optional ``project`` block of estimate settings.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .models import Catalog, ProjectSettings

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "sample_catalog.json"


def load_catalog_payload(path: Optional[Path] = None) -> Dict[str, Any]:
    base = path or DEFAULT_CATALOG_PATH
    with open(base, "r", encoding="utf-8") as fp:
        payload = json.load(fp)
    if not isinstance(payload, dict):
        raise ValueError(f"Catalog {base} must contain a JSON object")
    return payload


def load_catalog(path: Optional[Path] = None) -> Tuple[Catalog, ProjectSettings]:
    payload = load_catalog_payload(path)
    return Catalog.from_dict(payload), ProjectSettings.from_dict(payload.get("project"))
