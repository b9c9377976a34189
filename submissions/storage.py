"""Document file storage on top of Django's default storage.

Files live under `submissions/<submission id>/`. `store` writes the
whole upload before returning the reference; callers create the
Document row only afterwards and call `discard` if that fails.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from django.core.files.storage import default_storage
from django.utils import timezone

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


def _safe_name(original: str) -> str:
    p = Path(original or "file")
    stem = _UNSAFE.sub("_", p.stem)[:80] or "file"
    return f"{stem}{p.suffix.lower()}"


def store(submission_id: int, document_type: str, uploaded) -> str:
    """Persist `uploaded` and return its storage reference."""
    stamp = timezone.now().strftime("%Y%m%d%H%M%S%f")
    name = f"submissions/{submission_id}/{document_type}_{stamp}_{_safe_name(uploaded.name)}"
    if hasattr(uploaded, "seek"):
        uploaded.seek(0)
    saved = default_storage.save(name, uploaded)
    logger.debug("stored %s (%s bytes)", saved, getattr(uploaded, "size", "?"))
    return saved


def retrieve(reference: str):
    """Open a stored file for reading."""
    return default_storage.open(reference, "rb")


def discard(references: Iterable[str]) -> None:
    """Delete stored files; missing files are ignored."""
    for ref in references:
        if ref and default_storage.exists(ref):
            default_storage.delete(ref)
            logger.debug("discarded %s", ref)
