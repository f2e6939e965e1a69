"""Screenshot blob cache owned by one viewer session."""

from __future__ import annotations

import hashlib
import mimetypes
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Optional

from ..errors import InventoryError, StoreError
from ..logging_utils import get_logger
from ..storage.store import BlobRecord

BlobLoader = Callable[[str], Optional[BlobRecord]]


class BlobCache:
    """Materialize blobs to local files once per id and release them on close.

    Ids whose lookup failed are remembered and never fetched again for the
    lifetime of the cache.
    """

    def __init__(self, loader: BlobLoader, directory: Path | str | None = None) -> None:
        self._loader = loader
        self._log = get_logger("viewer.blobs")
        self._owns_directory = directory is None
        if directory is None:
            self._directory = Path(tempfile.mkdtemp(prefix="ui-inventory-blobs-"))
        else:
            self._directory = Path(directory)
            self._directory.mkdir(parents=True, exist_ok=True)
        self._paths: dict[str, Path] = {}
        self._missing: set[str] = set()
        self._closed = False

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def closed(self) -> bool:
        return self._closed

    def is_missing(self, blob_id: str) -> bool:
        return blob_id in self._missing

    def __len__(self) -> int:
        return len(self._paths)

    def resolve(self, blob_id: Optional[str]) -> Optional[Path]:
        if self._closed:
            raise InventoryError("Blob cache is closed")
        if not blob_id:
            return None
        cached = self._paths.get(blob_id)
        if cached is not None:
            return cached
        if blob_id in self._missing:
            return None

        try:
            blob = self._loader(blob_id)
        except StoreError as exc:
            self._log.warning("Blob {} could not be loaded: {}", blob_id, exc)
            blob = None
        if blob is None or not blob.data:
            self._missing.add(blob_id)
            return None

        suffix = mimetypes.guess_extension(blob.mime_type or "") or ".bin"
        path = self._directory / f"{_safe_name(blob_id)}{suffix}"
        path.write_bytes(blob.data)
        self._paths[blob_id] = path
        return path

    def close(self) -> None:
        if self._closed:
            return
        for path in self._paths.values():
            path.unlink(missing_ok=True)
        if self._owns_directory:
            shutil.rmtree(self._directory, ignore_errors=True)
        self._log.debug("Released {} cached blobs", len(self._paths))
        self._paths.clear()
        self._missing.clear()
        self._closed = True

    def __enter__(self) -> "BlobCache":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _safe_name(blob_id: str) -> str:
    # Sanitized ids can collide; the digest keeps file names distinct.
    digest = hashlib.sha1(blob_id.encode("utf-8")).hexdigest()[:10]
    stem = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in blob_id)[:64]
    return f"{stem}-{digest}"
