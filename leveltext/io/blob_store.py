"""Filesystem blob storage for uploaded source documents.

Responsibilities:
- Store PDF bytes under unique, filesystem- and URL-safe keys.
- Load stored bytes back for the extraction phase.
"""

from __future__ import annotations

from pathlib import Path
import re
from urllib.parse import unquote
import uuid


_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_SEPARATOR_CHARS = re.compile(r"[/\\<>:\"|?*]")
_DASH_RUNS = re.compile(r"[\s-]+")
_EDGE_DOTS = re.compile(r"^[\s.]+|[\s.]+$")
_UNSAFE_CHARS = re.compile(r"[^\w\-.]", re.UNICODE)
_MAX_SAFE_NAME_CHARS = 100
_MAX_KEY_NAME_CHARS = 50


def sanitize_file_name(name: str) -> str:
    """Return a readable storage-safe version of a file name."""

    if not name:
        return "untitled"
    safe = _CONTROL_CHARS.sub("", unquote(name))
    safe = _SEPARATOR_CHARS.sub("-", safe)
    safe = _DASH_RUNS.sub("-", safe)
    safe = _EDGE_DOTS.sub("", safe)
    safe = _UNSAFE_CHARS.sub("", safe)
    if len(safe) > _MAX_SAFE_NAME_CHARS:
        safe = safe[:_MAX_SAFE_NAME_CHARS].rstrip("-._")
    if not safe or safe == "-":
        return "untitled"
    return safe


def pdf_storage_key(original_name: str) -> str:
    """Return a unique key of the form `pdfs/{uuid}_{safe-name}.pdf`."""

    stem = re.sub(r"\.pdf$", "", original_name, flags=re.IGNORECASE)
    safe_name = sanitize_file_name(stem)[:_MAX_KEY_NAME_CHARS]
    return f"pdfs/{uuid.uuid4()}_{safe_name}.pdf"


class BlobStore:
    """Filesystem-backed blob store rooted at a data directory."""

    def __init__(self, root: Path) -> None:
        """Initialize the store with a root directory."""

        self.root = root

    def put(self, key: str, data: bytes) -> str:
        """Write bytes under `key` and return the key."""

        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_name(f"{path.name}.tmp")
        temp_path.write_bytes(data)
        temp_path.replace(path)
        return key

    def get(self, key: str) -> bytes:
        """Read the bytes stored under `key`."""

        return self._path(key).read_bytes()

    def exists(self, key: str) -> bool:
        """Return whether a blob exists under `key`."""

        return self._path(key).is_file()

    def _path(self, key: str) -> Path:
        """Resolve a key inside the store root, rejecting traversal."""

        path = (self.root / key).resolve()
        root = self.root.resolve()
        if root not in path.parents:
            raise ValueError(f"Blob key escapes the store root: {key}")
        return path
