"""Local filesystem blob storage for uploaded evidence."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path

from config.settings import settings


class LocalBlobStorage:
    """Stores blobs under ``root`` keyed by relative path.

    Writes go to a temporary file in the target directory and are moved
    into place, so a reader never sees a partial file.
    """

    def __init__(self, root: str | os.PathLike[str] | None = None) -> None:
        self.root = Path(root or settings.BLOB_DIR).resolve()

    def put(self, path: str, data: bytes) -> str:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=".upload-")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp, target)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
        return target.relative_to(self.root).as_posix()

    def read(self, ref: str) -> bytes:
        return self._resolve(ref).read_bytes()

    def exists(self, ref: str) -> bool:
        return self._resolve(ref).is_file()

    def _resolve(self, path: str) -> Path:
        target = (self.root / path.lstrip("/")).resolve()
        if self.root not in target.parents:
            raise OSError(f"Blob path escapes storage root: {path}")
        return target


__all__ = ["LocalBlobStorage"]
