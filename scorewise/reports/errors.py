from __future__ import annotations

__all__ = ["ReportError", "EmptyReportError", "ReportParseError", "UploadRejectedError"]


class ReportError(RuntimeError):
    """Base exception for credit report processing."""


class EmptyReportError(ReportError):
    """Raised when the uploaded document yields no credit report data."""

    def __init__(self, message: str = "Credit report is empty or the uploaded file is invalid.") -> None:
        super().__init__(message)


class ReportParseError(ReportError):
    """Raised when the model's structured output cannot be decoded."""


class UploadRejectedError(ReportError):
    """Raised when an upload is not an acceptable PDF."""
