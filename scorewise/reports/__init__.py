"""Credit report extraction, translation and payment-gated presentation."""

from .access import PREMIUM_FIELDS, PaymentLookup, build_report_response, redact_report, resolve_is_pro
from .analyzer import ReportAnalyzer
from .errors import EmptyReportError, ReportError, ReportParseError, UploadRejectedError
from .language import language_display_name, normalize_report_language, resolve_report_language
from .models import ActionStep, CreditReportSummary, FactorAnalysis, PaymentRecord, ReportExtraction
from .schema import SUMMARIZE_REPORT_TOOL, parse_report_arguments
from .service import ReportService
from .uploads import MAX_UPLOAD_BYTES, validate_upload

__all__ = [
    "PREMIUM_FIELDS",
    "PaymentLookup",
    "build_report_response",
    "redact_report",
    "resolve_is_pro",
    "ReportAnalyzer",
    "ReportError",
    "EmptyReportError",
    "ReportParseError",
    "UploadRejectedError",
    "language_display_name",
    "resolve_report_language",
    "normalize_report_language",
    "ActionStep",
    "CreditReportSummary",
    "FactorAnalysis",
    "PaymentRecord",
    "ReportExtraction",
    "SUMMARIZE_REPORT_TOOL",
    "parse_report_arguments",
    "ReportService",
    "MAX_UPLOAD_BYTES",
    "validate_upload",
]
