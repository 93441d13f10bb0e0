"""Spool multipart uploads to local files for the storage client."""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from fastapi import UploadFile


@contextmanager
def saved_uploads(files: Sequence[UploadFile]) -> Iterator[list[str]]:
    """Write each upload to a temporary file and yield their paths.

    The files are removed when the block exits.
    """
    paths: list[str] = []
    try:
        for upload in files:
            suffix = Path(upload.filename or "").suffix
            with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as handle:
                shutil.copyfileobj(upload.file, handle)
            paths.append(handle.name)
        yield paths
    finally:
        for path in paths:
            Path(path).unlink(missing_ok=True)
