from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from functools import lru_cache
import logging
import math
from pathlib import PurePath
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, File, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import DataStatusModel, DataStatusResponse, ErrorResponse, ReloadResponse, UploadResponse
from core import config
from core.errors import RequestProcessingError, SourceUnavailable, UploadRejected
from core.filters import normalize_window
from core.ingest import DataLoader
from core.metrics_finance import compute_finance
from core.metrics_operations import compute_operations
from core.metrics_overview import compute_overview
from core.metrics_quality import compute_quality
from core.metrics_staff import compute_staff
from core.metrics_strategic import compute_strategic
from core.scheduler import PeriodicReloader
from core.storage import BlobStore, build_blob_store
from core.store import RecordSnapshot, RecordStore


logger = logging.getLogger(__name__)

_store = RecordStore()


def get_store() -> RecordStore:
    return _store


@lru_cache(maxsize=1)
def get_blob_store() -> BlobStore:
    return build_blob_store()


def get_loader(blob_store: BlobStore = Depends(get_blob_store)) -> DataLoader:
    return DataLoader(blob_store)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = get_store()
    loader = get_loader(get_blob_store())
    await run_in_threadpool(store.reload, loader.load)
    reloader = PeriodicReloader(store, loader.load, config.REFRESH_INTERVAL_SECONDS)
    reloader.start()
    try:
        yield
    finally:
        reloader.stop()


app = FastAPI(title="Hospital Dashboard API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                type(pd.NaT): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(status_code: int, kind: str, message: str) -> JSONResponse:
    return _json(ErrorResponse(error=message, kind=kind).model_dump(), status_code=status_code)


def _internal_error() -> JSONResponse:
    return _error(500, RequestProcessingError.kind, "Internal server error")


def _data_status(snapshot: RecordSnapshot) -> DataStatusModel:
    return DataStatusModel(**snapshot.counts())


def _validate_upload(filename: Optional[str], size: int) -> None:
    if not filename:
        raise UploadRejected("No file uploaded")
    if PurePath(filename).suffix.lower() not in config.UPLOAD_EXTENSIONS:
        raise UploadRejected("Only Excel files are allowed!")
    if size > config.UPLOAD_MAX_BYTES:
        raise UploadRejected(f"File exceeds the {config.UPLOAD_MAX_BYTES // (1024 * 1024)}MB limit")
    if size == 0:
        raise UploadRejected("Uploaded file is empty")


@app.get("/health")
def health(store: RecordStore = Depends(get_store)):
    return _json({"status": "ok", "generation": store.snapshot().generation})


@app.get("/api/dashboard/overview")
def overview(
    store: RecordStore = Depends(get_store),
    start_year: Optional[int] = Query(default=None),
    end_year: Optional[int] = Query(default=None),
    year: Optional[int] = Query(default=None),
):
    try:
        window = normalize_window({"start_year": start_year, "end_year": end_year, "reporting_year": year})
        return _json(compute_overview(store.snapshot(), window))
    except Exception:
        logger.exception("overview failed")
        return _internal_error()


@app.get("/api/dashboard/financial")
def financial(
    store: RecordStore = Depends(get_store),
    start_year: Optional[int] = Query(default=None),
    end_year: Optional[int] = Query(default=None),
):
    try:
        window = normalize_window({"start_year": start_year, "end_year": end_year})
        return _json(compute_finance(store.snapshot(), window))
    except Exception:
        logger.exception("financial failed")
        return _internal_error()


@app.get("/api/dashboard/operations")
def operations(
    store: RecordStore = Depends(get_store),
    start_year: Optional[int] = Query(default=None),
    end_year: Optional[int] = Query(default=None),
):
    try:
        window = normalize_window({"start_year": start_year, "end_year": end_year})
        return _json(compute_operations(store.snapshot(), window))
    except Exception:
        logger.exception("operations failed")
        return _internal_error()


@app.get("/api/dashboard/quality")
def quality(
    store: RecordStore = Depends(get_store),
    start_year: Optional[int] = Query(default=None),
    end_year: Optional[int] = Query(default=None),
):
    try:
        window = normalize_window({"start_year": start_year, "end_year": end_year})
        return _json(compute_quality(store.snapshot(), window))
    except Exception:
        logger.exception("quality failed")
        return _internal_error()


@app.get("/api/dashboard/staff")
def staff(store: RecordStore = Depends(get_store)):
    try:
        return _json(compute_staff(store.snapshot()))
    except Exception:
        logger.exception("staff failed")
        return _internal_error()


@app.get("/api/dashboard/strategic")
def strategic(
    store: RecordStore = Depends(get_store),
    start_year: Optional[int] = Query(default=None),
    end_year: Optional[int] = Query(default=None),
):
    try:
        window = normalize_window({"start_year": start_year, "end_year": end_year})
        return _json(compute_strategic(store.snapshot(), window))
    except Exception:
        logger.exception("strategic failed")
        return _internal_error()


@app.post("/api/reload-data")
def reload_data(store: RecordStore = Depends(get_store), loader: DataLoader = Depends(get_loader)):
    try:
        logger.info("Manual data reload requested")
        snapshot = store.reload(loader.load)
        payload = ReloadResponse(
            message="Data reloaded successfully",
            timestamp=datetime.now(timezone.utc),
            source=snapshot.source,
            generation=snapshot.generation,
            dataStatus=_data_status(snapshot),
        )
        return _json(payload.model_dump())
    except Exception:
        logger.exception("reload_data failed")
        return _internal_error()


@app.get("/api/data-status")
def data_status(store: RecordStore = Depends(get_store)):
    snapshot = store.snapshot()
    payload = DataStatusResponse(
        dataStatus=_data_status(snapshot),
        lastUpdated=snapshot.loaded_at,
        source=snapshot.source,
        generation=snapshot.generation,
    )
    return _json(payload.model_dump())


@app.post("/api/upload-excel")
def upload_excel(
    excel_file: Optional[UploadFile] = File(default=None, alias=config.UPLOAD_FIELD),
    store: RecordStore = Depends(get_store),
    blob_store: BlobStore = Depends(get_blob_store),
    loader: DataLoader = Depends(get_loader),
):
    try:
        if excel_file is None:
            raise UploadRejected("No file uploaded")
        data = excel_file.file.read(config.UPLOAD_MAX_BYTES + 1)
        _validate_upload(excel_file.filename, len(data))
    except UploadRejected as exc:
        logger.warning("Upload rejected: %s", exc)
        return _error(400, exc.kind, str(exc))

    try:
        logger.info("Uploading %s (%s bytes) to blob store", excel_file.filename, len(data))
        blob_store.upload(
            loader.blob_key,
            data,
            content_type=excel_file.content_type,
            metadata={
                "uploadedAt": datetime.now(timezone.utc).isoformat(),
                "originalName": excel_file.filename or "",
            },
        )
    except Exception:
        logger.exception("upload_excel failed to store file")
        return _error(500, SourceUnavailable.kind, "Failed to upload file")

    try:
        snapshot = store.reload(loader.load)
        payload = UploadResponse(
            message="File uploaded and data reloaded successfully",
            timestamp=datetime.now(timezone.utc),
            source=snapshot.source,
            dataStatus=_data_status(snapshot),
        )
        return _json(payload.model_dump())
    except Exception:
        logger.exception("upload_excel reload failed")
        return _internal_error()
