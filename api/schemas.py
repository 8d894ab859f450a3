from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class DataStatusModel(BaseModel):
    doctors: int = 0
    patients: int = 0
    visits: int = 0
    financial: int = 0
    quality: int = 0
    performance: int = 0


class DataStatusResponse(BaseModel):
    dataStatus: DataStatusModel = Field(default_factory=DataStatusModel)
    lastUpdated: Optional[datetime] = None
    source: str = "empty"
    generation: int = 0


class ReloadResponse(BaseModel):
    message: str
    timestamp: datetime
    source: str
    generation: int
    dataStatus: DataStatusModel


class UploadResponse(BaseModel):
    message: str
    timestamp: datetime
    source: str
    dataStatus: DataStatusModel


class ErrorResponse(BaseModel):
    error: str
    kind: str
