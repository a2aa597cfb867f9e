from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from scorewise.reports.access import PaymentLookup, build_report_response, resolve_is_pro
from scorewise.reports.analyzer import ReportAnalyzer
from scorewise.reports.language import normalize_report_language, resolve_report_language
from scorewise.reports.models import CreditReportSummary

log = logging.getLogger(__name__)

__all__ = ["ReportService"]


class ReportService:
    """Analyze uploads and present reports with payment-gated sections."""

    def __init__(self, analyzer: ReportAnalyzer, payments: PaymentLookup) -> None:
        self._analyzer = analyzer
        self._payments = payments

    async def analyze_upload(
        self,
        pdf_path: str | Path,
        *,
        accept_language: str | None,
        user_id: str | None = None,
        report_id: str | None = None,
    ) -> tuple[CreditReportSummary, dict[str, Any]]:
        language = resolve_report_language(accept_language)
        is_pro = await resolve_is_pro(self._payments, user_id=user_id, report_id=report_id)
        summary = await self._analyzer.analyze(pdf_path, language=language)
        return summary, build_report_response(summary.to_dict(), is_pro=is_pro)

    async def present(
        self,
        summary: CreditReportSummary | None,
        *,
        user_id: str | None,
        report_id: str | None,
        language: str | None = None,
    ) -> dict[str, Any]:
        is_pro = await resolve_is_pro(self._payments, user_id=user_id, report_id=report_id)
        if summary is None:
            return build_report_response(None, is_pro=is_pro)
        target = normalize_report_language(language) if language else summary.language
        if target != summary.language:
            log.debug("Translating report %s from %s to %s", report_id, summary.language, target)
            summary = await self._analyzer.translate(summary, language=target)
        return build_report_response(summary.to_dict(), is_pro=is_pro)
