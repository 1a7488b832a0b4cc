from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def write_manifest(path: str, payload: dict[str, Any]) -> str:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)
    return path


def mpd_manifest_payload(
    *,
    path: str,
    format_name: str,
    schema_version: int,
    n_types: int,
    n_particles: int,
    n_molecules: int,
    n_box_relaxations: int,
    size: tuple[float, float, float],
    generator: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "kind": "configuration",
        "schema": {
            "name": str(format_name),
            "version": int(schema_version),
        },
        "created_at_utc": _utc_now_iso(),
        "path": str(path),
        "n_types": int(n_types),
        "n_particles": int(n_particles),
        "n_molecules": int(n_molecules),
        "n_box_relaxations": int(n_box_relaxations),
        "size": [float(size[0]), float(size[1]), float(size[2])],
        "generator": dict(generator or {}),
    }
