from __future__ import annotations


class DashboardError(Exception):
    """Base class for errors surfaced to API clients with a machine-readable kind."""

    kind = "DashboardError"


class SourceUnavailable(DashboardError):
    """A fallback tier (remote blob, local workbook) could not provide data."""

    kind = "SourceUnavailable"

    def __init__(self, tier: str, reason: str) -> None:
        super().__init__(f"{tier} source unavailable: {reason}")
        self.tier = tier
        self.reason = reason


class UploadRejected(DashboardError):
    kind = "UploadRejected"


class RequestProcessingError(DashboardError):
    kind = "RequestProcessingError"
