"""Tool schema and prompts for structured credit report extraction."""

from __future__ import annotations

from typing import Any, Mapping

from openai import pydantic_function_tool
from pydantic import ValidationError

from scorewise.reports.errors import EmptyReportError, ReportParseError
from scorewise.reports.models import CreditReportSummary, ReportExtraction

__all__ = [
    "SUMMARIZE_REPORT_TOOL_NAME",
    "SUMMARIZE_REPORT_TOOL",
    "ANALYZE_SYSTEM_PROMPT",
    "TRANSLATE_SYSTEM_PROMPT",
    "build_analyze_instruction",
    "parse_report_arguments",
]

SUMMARIZE_REPORT_TOOL_NAME = "summarize_credit_report"

SUMMARIZE_REPORT_TOOL = pydantic_function_tool(
    ReportExtraction,
    name=SUMMARIZE_REPORT_TOOL_NAME,
    description=(
        "Generates a plain-language summary of a user's credit report with score, "
        "factor analysis, and action plan."
    ),
)

ANALYZE_SYSTEM_PROMPT = (
    "You are a financial assistant that summarizes Canadian credit reports "
    "(e.g., Equifax Canada) from uploaded PDF files. Extract the credit score (numeric), "
    "factor breakdowns (payment history, utilization, account age, new credit, credit mix), "
    "and identify delinquencies, public records, and inquiries. Provide a plain-language "
    "summary, a 3-month action plan, and an 'isEmpty' flag if no data is available. "
    "Account for Canadian reporting rules, like 6-year expiry for delinquencies, and "
    "R/I/O codes. Only return clean structured data, not raw text or narrative summaries."
)

TRANSLATE_SYSTEM_PROMPT = (
    "You translate structured credit report summaries. Keep every number, date, status "
    "code and list order unchanged; translate only the prose. Return the result through "
    "the summarize_credit_report function."
)

_ANALYZE_CHECKLIST = (
    "My credit score",
    "All account types: revolving, installment, mortgage, and open",
    "Details of each account: opening dates, current balances, and credit limits",
    "Monthly payment history for the last 24 months",
    "Status codes like R1, R2, I2, etc.",
    "Credit inquiries: hard and soft, with dates",
    "Any public records: bankruptcies, collections, judgments",
    "Any missed or delinquent payments",
    "Details of installment loans",
    "Any employment or personal information, if available",
)


def build_analyze_instruction(language: str) -> str:
    checklist = "\n".join(f"- {item}" for item in _ANALYZE_CHECKLIST)
    return (
        "I've uploaded my Canadian credit report in PDF format. Please extract and "
        f"analyze the following:\n\n{checklist}\n\n"
        "Use text extraction or OCR to capture this data from the uploaded PDF. Then "
        "generate a plain-language summary, identify concerns, and provide a 3-month "
        f"action plan to improve my credit health. Respond in {language}."
    )


def parse_report_arguments(arguments: Any, *, language: str) -> CreditReportSummary:
    """Build a summary from ``summarize_credit_report`` arguments.

    Missing or null sections become empty. Raises :class:`ReportParseError`
    when the arguments do not validate against :class:`ReportExtraction`, and
    :class:`EmptyReportError` when the model flags the document as empty or
    nothing usable remains.
    """
    try:
        if isinstance(arguments, Mapping):
            extraction = ReportExtraction.model_validate(arguments)
        else:
            extraction = ReportExtraction.model_validate_json(arguments or "")
    except (ValidationError, TypeError) as exc:
        raise ReportParseError(f"Report tool arguments are invalid: {exc}") from exc

    if extraction.isEmpty:
        raise EmptyReportError()

    summary = CreditReportSummary(
        credit_score=[item for item in extraction.creditScore or [] if item.strip()],
        factor_analysis=extraction.factorAnalysis or [],
        action_plan=extraction.actionPlan or [],
        delinquency_status=(extraction.delinquencyStatus or "").strip(),
        language=language,
    )
    if not summary.has_data:
        raise EmptyReportError()
    return summary
