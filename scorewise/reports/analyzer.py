from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Protocol, Sequence

from scorewise.reports.errors import EmptyReportError
from scorewise.reports.models import CreditReportSummary
from scorewise.reports.schema import (
    ANALYZE_SYSTEM_PROMPT,
    SUMMARIZE_REPORT_TOOL,
    SUMMARIZE_REPORT_TOOL_NAME,
    TRANSLATE_SYSTEM_PROMPT,
    build_analyze_instruction,
    parse_report_arguments,
)

log = logging.getLogger(__name__)

__all__ = ["ReportProvider", "ReportAnalyzer"]

_FORCED_TOOL_CHOICE = {"type": "function", "function": {"name": SUMMARIZE_REPORT_TOOL_NAME}}


class ReportProvider(Protocol):
    async def upload_file(self, path: str | Path, *, purpose: str = "user_data") -> str: ...

    async def complete(
        self,
        messages: Sequence[Mapping[str, Any]],
        *,
        tools: Sequence[Mapping[str, Any]] | None = None,
        tool_choice: Any = None,
        model: str | None = None,
    ) -> Any: ...


def _remove_quietly(path: Path) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError:
        log.warning("Could not remove uploaded report %s", path, exc_info=True)


class ReportAnalyzer:
    """Turn uploaded credit report PDFs into structured summaries."""

    def __init__(self, provider: ReportProvider, *, model: str | None = None) -> None:
        self._provider = provider
        self._model = model

    async def _summarize(self, messages: list[dict[str, Any]], *, language: str) -> CreditReportSummary:
        message = await self._provider.complete(
            messages,
            tools=[SUMMARIZE_REPORT_TOOL],
            tool_choice=_FORCED_TOOL_CHOICE,
            model=self._model,
        )
        tool_call = next(
            (
                call
                for call in getattr(message, "tool_calls", None) or []
                if call.function.name == SUMMARIZE_REPORT_TOOL_NAME
            ),
            None,
        )
        if tool_call is None:
            log.warning("Report model returned no %s call", SUMMARIZE_REPORT_TOOL_NAME)
            raise EmptyReportError()
        return parse_report_arguments(tool_call.function.arguments, language=language)

    async def analyze(self, pdf_path: str | Path, *, language: str) -> CreditReportSummary:
        """Upload ``pdf_path`` and extract its summary.

        The local file is deleted whether or not the upload succeeds.
        """
        path = Path(pdf_path)
        try:
            file_id = await self._provider.upload_file(path, purpose="user_data")
        finally:
            _remove_quietly(path)

        messages = [
            {"role": "system", "content": ANALYZE_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "file", "file": {"file_id": file_id}},
                    {"type": "text", "text": build_analyze_instruction(language)},
                ],
            },
        ]
        summary = await self._summarize(messages, language=language)
        log.info(
            "Extracted credit report (factors=%s, plan_steps=%s, language=%s)",
            len(summary.factor_analysis),
            len(summary.action_plan),
            language,
        )
        return summary

    async def translate(self, summary: CreditReportSummary, *, language: str) -> CreditReportSummary:
        if summary.language == language:
            return summary

        payload = summary.to_dict()
        payload.pop("reportLanguage", None)
        messages = [
            {"role": "system", "content": TRANSLATE_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    f"Translate this credit report summary into {language}:\n"
                    f"{json.dumps(payload, ensure_ascii=False)}"
                ),
            },
        ]
        return await self._summarize(messages, language=language)
