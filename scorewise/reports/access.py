from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from scorewise.reports.models import PaymentRecord

__all__ = [
    "PREMIUM_FIELDS",
    "PaymentLookup",
    "resolve_is_pro",
    "redact_report",
    "build_report_response",
]

# Sections only shown once the report has been paid for.
PREMIUM_FIELDS: tuple[str, ...] = ("factorAnalysis", "actionPlan")


class PaymentLookup(Protocol):
    async def find_paid(self, report_id: str) -> Optional[PaymentRecord]: ...


async def resolve_is_pro(
    lookup: PaymentLookup,
    *,
    user_id: str | None,
    report_id: str | None,
) -> bool:
    if not user_id or not report_id:
        return False
    payment = await lookup.find_paid(report_id)
    return payment is not None and payment.is_paid


def redact_report(report: Mapping[str, Any], *, is_pro: bool) -> dict[str, Any]:
    result = dict(report)
    if is_pro:
        return result
    for name in PREMIUM_FIELDS:
        if name in result:
            result[name] = []
    return result


def build_report_response(report: Mapping[str, Any] | None, *, is_pro: bool) -> dict[str, Any]:
    result = redact_report(report, is_pro=is_pro) if report else {}
    return {
        "count": len(result),
        "ispro": is_pro,
        "result": result,
    }
