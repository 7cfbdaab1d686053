from __future__ import annotations

import os
import re
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


SAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def slugify(value: str, max_length: int = 120) -> str:
    normalized = SAFE_FILENAME_RE.sub("-", value.strip())
    normalized = re.sub("-+", "-", normalized)
    normalized = normalized.replace("-.", ".")
    normalized = normalized.strip("-._")
    if not normalized:
        normalized = "file"
    if len(normalized) > max_length:
        normalized = normalized[:max_length]
    return normalized


def replace_extension(filename: str, extension: str) -> str:
    """Swap the extension of *filename* for *extension* (given with its dot).

    Only the stem is slugified, so *extension* survives even when the stem has
    no safe characters left.
    """

    name = Path(filename or "file").name
    stem = Path(name).stem if Path(name).suffix else name
    return f"{slugify(stem, max_length=120 - len(extension))}{extension}"


@contextmanager
def scratch_dir(prefix: str = "convert-") -> Iterator[Path]:
    """Yield a fresh temporary directory, removed recursively on every exit path."""

    path = Path(tempfile.mkdtemp(prefix=prefix))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("wb", delete=False, dir=path.parent) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


__all__ = ["atomic_write_bytes", "replace_extension", "scratch_dir", "slugify"]
