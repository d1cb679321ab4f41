"""
Surface patch file I/O (.uvpatch)

A patch file is a zip container holding one JSON manifest. Mesh data is not
stored; the patch is replayed on the reloaded source mesh and ``data_id``
tells whether it still matches.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any
import zipfile

from .surface_patch import SurfaceDataPatch


PATCH_FORMAT = "uvgen_surface_patch"
PATCH_VERSION = 1
MANIFEST_NAME = "patch.json"


class PatchFormatError(RuntimeError):
    pass


def save_patch(path: str | Path, patch: SurfaceDataPatch, *, meta: dict[str, Any] | None = None) -> str:
    """
    Write ``patch`` to ``path`` (parent directories are created).

    ``meta`` is free-form, e.g. the source file name and spacing.
    """
    body = patch.to_dict()
    # JSON numbers are doubles; keep all 64 bits of the id
    body["data_id"] = str(patch.data_id)

    doc = {
        "format": PATCH_FORMAT,
        "version": PATCH_VERSION,
        "saved_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "meta": dict(meta or {}),
        "patch": body,
    }

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(out_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(MANIFEST_NAME, json.dumps(doc, ensure_ascii=False))
    return str(out_path)


def _read_manifest(in_path: Path) -> str:
    if not zipfile.is_zipfile(in_path):
        # plain JSON is accepted for hand-edited patches
        return in_path.read_text(encoding="utf-8", errors="replace")
    with zipfile.ZipFile(in_path, "r") as zf:
        if MANIFEST_NAME not in zf.namelist():
            raise PatchFormatError(f"Missing {MANIFEST_NAME} in patch file")
        return zf.read(MANIFEST_NAME).decode("utf-8", errors="replace")


def load_patch_document(path: str | Path) -> dict[str, Any]:
    """
    Read and validate a patch file without building the patch.

    Returns:
        The manifest (format, version, saved_at, meta, patch); ``meta`` is
        always a dict.
    """
    in_path = Path(path)
    if not in_path.exists():
        raise FileNotFoundError(str(in_path))

    try:
        doc = json.loads(_read_manifest(in_path))
    except json.JSONDecodeError as e:
        raise PatchFormatError(f"Invalid JSON: {e}") from e

    if not isinstance(doc, dict):
        raise PatchFormatError("Invalid patch document (expected JSON object)")
    if doc.get("format") != PATCH_FORMAT:
        raise PatchFormatError(f"Unsupported patch format: {doc.get('format')!r}")
    if doc.get("version") != PATCH_VERSION:
        raise PatchFormatError(f"Unsupported patch version: {doc.get('version')!r}")
    if not isinstance(doc.get("patch"), dict):
        raise PatchFormatError("Invalid patch document: missing 'patch' object")

    meta = doc.get("meta")
    if meta is None:
        doc["meta"] = {}
    elif not isinstance(meta, dict):
        doc["meta"] = {"_raw": meta}
    return doc


def load_patch(path: str | Path) -> SurfaceDataPatch:
    """Load a patch written by :func:`save_patch`."""
    body = load_patch_document(path)["patch"]
    try:
        patch = SurfaceDataPatch.from_dict(body)
    except (TypeError, ValueError) as e:
        raise PatchFormatError(f"Invalid patch data: {e}") from e

    if patch.triangles.size and int(patch.triangles.max()) >= patch.vertex_count:
        raise PatchFormatError(
            f"Patch triangles reference vertex {int(patch.triangles.max())}, "
            f"only {patch.vertex_count} tex coords stored"
        )
    return patch
