"""Safe static-file resolution and content-type helpers."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Optional

from .errors import PathTraversalError

# Pre-compressed variants in order of preference.
_ENCODED_SUFFIXES = (("br", ".br"), ("gzip", ".gz"))


def check_directory_traversal(root: Path, candidate: Path) -> None:
    """Raise `PathTraversalError` unless `candidate` resolves inside `root`.

    Both paths are canonicalized first, so `..` segments and symlinks are
    followed before the comparison.
    """
    canonical_root = Path(root).resolve()
    canonical_candidate = Path(candidate).resolve()
    if canonical_candidate == canonical_root:
        return
    if canonical_root not in canonical_candidate.parents:
        raise PathTraversalError(Path(root), Path(candidate))


def resolve_static_file(root: Path, request_path: str) -> Optional[Path]:
    """Resolve a safe static file path within `root`."""
    if not request_path or "\x00" in request_path:
        return None

    relative = request_path.lstrip("/")
    if not relative:
        return None

    base = root.resolve()
    candidate = (base / relative).resolve()
    if base not in candidate.parents:
        return None

    if not candidate.is_file():
        return None

    return candidate


def resolve_encoded_variant(
    path: Path,
    accept_encoding: Optional[str],
) -> tuple[Path, Optional[str]]:
    """Return a pre-compressed sibling of `path` the client accepts, if any."""
    accepted = {
        token.split(";")[0].strip().lower()
        for token in (accept_encoding or "").split(",")
        if token.strip()
    }
    for encoding, suffix in _ENCODED_SUFFIXES:
        if encoding not in accepted:
            continue
        variant = path.with_name(path.name + suffix)
        if variant.is_file():
            return variant, encoding
    return path, None


def guess_content_type(path: Path) -> str:
    """Guess an HTTP content type and append UTF-8 charset for text payloads."""
    mime_type, _ = mimetypes.guess_type(path.name)
    if not mime_type:
        return "application/octet-stream"
    if mime_type.startswith("text/") or mime_type in {
        "application/javascript",
        "application/json",
        "application/xml",
    }:
        return f"{mime_type}; charset=utf-8"
    return mime_type
