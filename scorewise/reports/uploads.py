from __future__ import annotations

import re
import time
from pathlib import PurePath

from scorewise.reports.errors import UploadRejectedError

__all__ = ["ALLOWED_CONTENT_TYPES", "MAX_UPLOAD_BYTES", "validate_upload"]

ALLOWED_CONTENT_TYPES = {"application/pdf": "pdf"}
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]+")


def validate_upload(
    filename: str,
    content_type: str,
    size: int,
    *,
    now_ms: int | None = None,
) -> str:
    """Check an uploaded credit report and return the name to store it under.

    The stored name is the original stem, a millisecond timestamp and the
    extension for the content type, e.g. ``report1718000000000.pdf``.
    """
    extension = ALLOWED_CONTENT_TYPES.get((content_type or "").split(";")[0].strip().lower())
    if extension is None:
        raise UploadRejectedError("Only PDF files are allowed")
    if size <= 0:
        raise UploadRejectedError("Please select a file.")
    if size > MAX_UPLOAD_BYTES:
        raise UploadRejectedError(
            f"File is larger than the {MAX_UPLOAD_BYTES // (1024 * 1024)} MB limit"
        )

    # Windows clients send full paths.
    basename = PurePath(filename.replace("\\", "/")).name if filename else ""
    stem = _UNSAFE_CHARS_RE.sub("_", basename.rsplit(".", 1)[0]).strip("._") or "report"
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{stem}{stamp}.{extension}"
