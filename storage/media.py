"""Local-disk storage for recorded answers."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


class MediaStorage(Protocol):
    def write(self, data: bytes, content_type: str, name: str) -> str: ...

    def read(self, url: str) -> bytes: ...


def extension_for(content_type: str) -> str:
    """Return a filesystem-safe extension from a MIME type (``audio/webm;codecs=opus`` -> ``webm``)."""

    subtype = content_type.split("/", 1)[-1].split(";", 1)[0]
    return _UNSAFE.sub("_", subtype) or "bin"


class LocalMediaStorage:
    """Write blobs under ``root`` and address them by ``<url_prefix>/<file name>``."""

    def __init__(self, root: Path, url_prefix: str = "/uploads") -> None:
        self._root = Path(root)
        self._prefix = url_prefix.rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    def write(self, data: bytes, content_type: str, name: str) -> str:
        self._root.mkdir(parents=True, exist_ok=True)
        file_name = f"{_UNSAFE.sub('_', name)}.{extension_for(content_type)}"
        path = self._root / file_name
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_bytes(data)
        tmp_path.replace(path)
        logger.info("Stored media file=%s bytes=%d", file_name, len(data))
        return f"{self._prefix}/{file_name}"

    def read(self, url: str) -> bytes:
        if not url.startswith(self._prefix + "/"):
            raise FileNotFoundError(url)
        file_name = url[len(self._prefix) + 1 :]
        if "/" in file_name or file_name.startswith("."):
            raise FileNotFoundError(url)
        return (self._root / file_name).read_bytes()


__all__ = ["LocalMediaStorage", "MediaStorage", "extension_for"]
