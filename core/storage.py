from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

import firebase_admin
from firebase_admin import credentials, storage

from core import config


logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def exists(self, key: str) -> bool: ...

    def download(self, key: str) -> bytes: ...

    def upload(self, key: str, data: bytes, *, content_type: Optional[str] = None, metadata: Optional[Dict[str, str]] = None) -> None: ...


class LocalBlobStore:
    """Blob store backed by a directory; used when no cloud bucket is configured."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / Path(key).name

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def download(self, key: str) -> bytes:
        return self._path(key).read_bytes()

    def upload(self, key: str, data: bytes, *, content_type: Optional[str] = None, metadata: Optional[Dict[str, str]] = None) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        target = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{target.name}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        meta = {"contentType": content_type, **(metadata or {})}
        target.with_name(target.name + ".meta.json").write_text(json.dumps(meta), encoding="utf-8")


class FirebaseBlobStore:
    def __init__(self, bucket_name: str) -> None:
        try:
            app = firebase_admin.get_app()
        except ValueError:
            app = firebase_admin.initialize_app(credentials.ApplicationDefault(), {"storageBucket": bucket_name})
        self.bucket = storage.bucket(bucket_name, app=app)

    def exists(self, key: str) -> bool:
        return bool(self.bucket.blob(key).exists())

    def download(self, key: str) -> bytes:
        return self.bucket.blob(key).download_as_bytes()

    def upload(self, key: str, data: bytes, *, content_type: Optional[str] = None, metadata: Optional[Dict[str, str]] = None) -> None:
        blob = self.bucket.blob(key)
        if metadata:
            blob.metadata = dict(metadata)
        blob.upload_from_string(data, content_type=content_type or "application/octet-stream")


def build_blob_store(backend: str = config.BLOB_BACKEND) -> BlobStore:
    if backend == "firebase":
        try:
            store = FirebaseBlobStore(config.FIREBASE_BUCKET)
            logger.info("Firebase blob store initialized for bucket %s", config.FIREBASE_BUCKET)
            return store
        except Exception as exc:
            logger.warning("Firebase initialization failed, using local blob store: %s", exc)
    return LocalBlobStore(config.BLOB_DIR)
