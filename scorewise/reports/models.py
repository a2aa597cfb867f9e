from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class FactorAnalysis(BaseModel):
    factor: str
    status: str
    details: str


class ActionStep(BaseModel):
    month: str
    actions: list[str]


class ReportExtraction(BaseModel):
    """Arguments the model passes to ``summarize_credit_report``."""

    creditScore: Optional[list[str]] = Field(
        default=None,
        description=(
            "Brief explanation of the user's credit score category (e.g., Fair, Good) "
            "and numeric value. Return an empty array or null if not available."
        ),
    )
    factorAnalysis: Optional[list[FactorAnalysis]] = Field(
        default=None,
        description="Analysis of key credit score factors like payment history, utilization, etc.",
    )
    actionPlan: Optional[list[ActionStep]] = Field(
        default=None,
        description="Step-by-step plan to improve the score over the next 3 months.",
    )
    delinquencyStatus: Optional[str] = Field(
        default=None,
        description=(
            "Summary of delinquency or public record items and their expiry, "
            "or a clean record note."
        ),
    )
    isEmpty: bool = Field(
        description=(
            "True if no meaningful credit report data is available "
            "(i.e., all sections are empty or null)."
        ),
    )


class CreditReportSummary(BaseModel):
    """Structured credit report extracted from an uploaded PDF."""

    model_config = ConfigDict(populate_by_name=True)

    credit_score: list[str] = Field(default_factory=list, alias="creditScore")
    factor_analysis: list[FactorAnalysis] = Field(default_factory=list, alias="factorAnalysis")
    action_plan: list[ActionStep] = Field(default_factory=list, alias="actionPlan")
    delinquency_status: str = Field(default="", alias="delinquencyStatus")
    language: str = Field(default="english", alias="reportLanguage")

    @property
    def has_data(self) -> bool:
        return bool(
            self.credit_score
            or self.factor_analysis
            or self.action_plan
            or self.delinquency_status
        )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


@dataclass(slots=True)
class PaymentRecord:
    """Payment made to unlock the premium sections of one report."""

    user_id: str
    report_id: str
    amount: float
    currency: str
    method: str
    status: str
    session_id: str
    payment_intent_id: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.status == "paid"
