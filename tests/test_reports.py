import json
from types import SimpleNamespace

import pytest

from scorewise.reports.access import build_report_response, redact_report, resolve_is_pro
from scorewise.reports.analyzer import ReportAnalyzer
from scorewise.reports.errors import EmptyReportError, ReportParseError, UploadRejectedError
from scorewise.reports.language import language_display_name, normalize_report_language, resolve_report_language
from scorewise.reports.models import CreditReportSummary, FactorAnalysis, PaymentRecord
from scorewise.reports.schema import SUMMARIZE_REPORT_TOOL, SUMMARIZE_REPORT_TOOL_NAME, parse_report_arguments
from scorewise.reports.service import ReportService
from scorewise.reports.uploads import MAX_UPLOAD_BYTES, validate_upload


@pytest.fixture
def anyio_backend():
    return "asyncio"


REPORT_ARGS = {
    "creditScore": ["Good", "712"],
    "factorAnalysis": [
        {"factor": "Payment history", "status": "Strong", "details": "No missed payments."},
    ],
    "actionPlan": [{"month": "Month 1", "actions": ["Lower utilization below 30%"]}],
    "delinquencyStatus": "Clean record",
    "isEmpty": False,
}


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, "english"),
        ("", "english"),
        ("en-US,en;q=0.9", "english"),
        ("ru-RU", "russian"),
        ("uk", "ukrainian"),
        ("ES-mx", "spanish"),
        ("fr-CA,fr;q=0.8", "french"),
        ("ar", "arabic"),
        ("hi-IN", "hindi"),
        ("de-DE", "english"),
    ],
)
def test_resolve_report_language(header, expected):
    assert resolve_report_language(header) == expected


def test_language_display_name_falls_back_to_code():
    assert language_display_name("fr") == "Français"
    assert language_display_name("pt") == "pt"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("fr", "french"),
        ("fr-CA", "french"),
        ("Spanish", "spanish"),
        ("english", "english"),
        ("hindi", "hindi"),
        ("de", "english"),
    ],
)
def test_normalize_report_language_accepts_names_and_tags(value, expected):
    assert normalize_report_language(value) == expected


def test_parse_report_arguments_from_json_text():
    summary = parse_report_arguments(json.dumps(REPORT_ARGS), language="french")

    assert summary.credit_score == ["Good", "712"]
    assert summary.factor_analysis == [
        FactorAnalysis(factor="Payment history", status="Strong", details="No missed payments.")
    ]
    assert summary.action_plan[0].actions == ["Lower utilization below 30%"]
    assert summary.to_dict()["reportLanguage"] == "french"
    assert summary.to_dict()["delinquencyStatus"] == "Clean record"


def test_null_sections_become_empty():
    summary = parse_report_arguments(
        {"creditScore": None, "factorAnalysis": None, "actionPlan": None, "delinquencyStatus": "Clean", "isEmpty": False},
        language="english",
    )

    assert summary.credit_score == []
    assert summary.factor_analysis == []
    assert summary.action_plan == []


def test_empty_flag_raises():
    with pytest.raises(EmptyReportError):
        parse_report_arguments({**REPORT_ARGS, "isEmpty": True}, language="english")


def test_no_usable_data_raises():
    with pytest.raises(EmptyReportError):
        parse_report_arguments({"isEmpty": False}, language="english")


@pytest.mark.parametrize("raw", ["{broken", "[1, 2]", None])
def test_invalid_arguments_raise_parse_error(raw):
    with pytest.raises(ReportParseError):
        parse_report_arguments(raw, language="english")


@pytest.mark.parametrize(
    "raw",
    [
        '{"factorAnalysis": [{}], "isEmpty": false}',
        '{"actionPlan": [{"month": "Month 1"}], "isEmpty": false}',
        '{"creditScore": "712", "isEmpty": false}',
        {"factorAnalysis": [{"factor": "Utilization", "status": None, "details": "x"}]},
    ],
)
def test_arguments_failing_validation_raise_parse_error(raw):
    with pytest.raises(ReportParseError):
        parse_report_arguments(raw, language="english")


def test_summarize_tool_is_derived_from_extraction_model():
    function = SUMMARIZE_REPORT_TOOL["function"]

    assert function["name"] == SUMMARIZE_REPORT_TOOL_NAME
    assert set(function["parameters"]["properties"]) == {
        "creditScore",
        "factorAnalysis",
        "actionPlan",
        "delinquencyStatus",
        "isEmpty",
    }


def test_validate_upload_builds_stored_name():
    name = validate_upload("C:\\Users\\me\\My Report (1).pdf", "application/pdf", 2048, now_ms=1718000000000)

    assert name == "My_Report_11718000000000.pdf"


@pytest.mark.parametrize(
    ("content_type", "size", "message"),
    [
        ("image/png", 100, "Only PDF files are allowed"),
        ("application/pdf", 0, "Please select a file."),
        ("application/pdf", MAX_UPLOAD_BYTES + 1, "10 MB limit"),
    ],
)
def test_validate_upload_rejections(content_type, size, message):
    with pytest.raises(UploadRejectedError) as excinfo:
        validate_upload("report.pdf", content_type, size)
    assert message in str(excinfo.value)


def test_redact_report_hides_premium_sections():
    report = parse_report_arguments(REPORT_ARGS, language="english").to_dict()

    redacted = redact_report(report, is_pro=False)

    assert redacted["factorAnalysis"] == []
    assert redacted["actionPlan"] == []
    assert redacted["creditScore"] == ["Good", "712"]
    assert report["factorAnalysis"], "original report must not be mutated"
    assert redact_report(report, is_pro=True) == report


def test_build_report_response_shape():
    response = build_report_response({"creditScore": ["Fair"], "actionPlan": [{"month": "1"}]}, is_pro=False)

    assert response == {
        "count": 2,
        "ispro": False,
        "result": {"creditScore": ["Fair"], "actionPlan": []},
    }
    assert build_report_response(None, is_pro=True) == {"count": 0, "ispro": True, "result": {}}


class FakePayments:
    def __init__(self, records=None) -> None:
        self.records = records or {}
        self.lookups: list[str] = []

    async def find_paid(self, report_id: str):
        self.lookups.append(report_id)
        return self.records.get(report_id)


def _payment(report_id: str, status: str = "paid") -> PaymentRecord:
    return PaymentRecord(
        user_id="user_1",
        report_id=report_id,
        amount=25.0,
        currency="cad",
        method="card",
        status=status,
        session_id="cs_test",
    )


@pytest.mark.anyio
async def test_resolve_is_pro():
    payments = FakePayments({"r1": _payment("r1"), "r2": _payment("r2", status="unpaid")})

    assert await resolve_is_pro(payments, user_id="user_1", report_id="r1") is True
    assert await resolve_is_pro(payments, user_id="user_1", report_id="r2") is False
    assert await resolve_is_pro(payments, user_id="user_1", report_id="r3") is False
    assert await resolve_is_pro(payments, user_id=None, report_id="r1") is False
    assert payments.lookups == ["r1", "r2", "r3"]


class FakeReportProvider:
    def __init__(self, messages) -> None:
        self._messages = list(messages)
        self.uploads: list = []
        self.complete_calls: list[dict] = []

    async def upload_file(self, path, *, purpose="user_data"):
        self.uploads.append((path, purpose, path.exists()))
        return "file-abc"

    async def complete(self, messages, *, tools=None, tool_choice=None, model=None):
        self.complete_calls.append(
            {"messages": messages, "tools": tools, "tool_choice": tool_choice, "model": model}
        )
        return self._messages.pop(0)


def _report_message(arguments):
    call = SimpleNamespace(
        id="call_r",
        function=SimpleNamespace(name=SUMMARIZE_REPORT_TOOL_NAME, arguments=json.dumps(arguments)),
    )
    return SimpleNamespace(content=None, tool_calls=[call])


@pytest.mark.anyio
async def test_analyze_uploads_deletes_file_and_parses(tmp_path):
    pdf = tmp_path / "report1718000000000.pdf"
    pdf.write_bytes(b"%PDF-1.4")
    provider = FakeReportProvider([_report_message(REPORT_ARGS)])
    analyzer = ReportAnalyzer(provider, model="gpt-4.1")

    summary = await analyzer.analyze(pdf, language="spanish")

    assert provider.uploads == [(pdf, "user_data", True)]
    assert not pdf.exists()
    assert summary.language == "spanish"
    call = provider.complete_calls[0]
    assert call["model"] == "gpt-4.1"
    assert call["tool_choice"]["function"]["name"] == SUMMARIZE_REPORT_TOOL_NAME
    user_content = call["messages"][1]["content"]
    assert user_content[0] == {"type": "file", "file": {"file_id": "file-abc"}}
    assert "Respond in spanish." in user_content[1]["text"]


@pytest.mark.anyio
async def test_analyze_deletes_file_when_upload_fails(tmp_path):
    pdf = tmp_path / "report.pdf"
    pdf.write_bytes(b"%PDF-1.4")

    class FailingProvider(FakeReportProvider):
        async def upload_file(self, path, *, purpose="user_data"):
            raise RuntimeError("upload failed")

    with pytest.raises(RuntimeError):
        await ReportAnalyzer(FailingProvider([])).analyze(pdf, language="english")

    assert not pdf.exists()


@pytest.mark.anyio
async def test_analyze_without_tool_call_is_empty(tmp_path):
    pdf = tmp_path / "report.pdf"
    pdf.write_bytes(b"%PDF-1.4")
    provider = FakeReportProvider([SimpleNamespace(content="I could not read it", tool_calls=None)])

    with pytest.raises(EmptyReportError):
        await ReportAnalyzer(provider).analyze(pdf, language="english")


@pytest.mark.anyio
async def test_translate_same_language_is_a_no_op():
    provider = FakeReportProvider([])
    summary = CreditReportSummary(credit_score=["Good"], language="english")

    assert await ReportAnalyzer(provider).translate(summary, language="english") is summary
    assert provider.complete_calls == []


@pytest.mark.anyio
async def test_service_present_translates_and_redacts():
    translated_args = {**REPORT_ARGS, "delinquencyStatus": "Historique propre"}
    provider = FakeReportProvider([_report_message(translated_args)])
    service = ReportService(ReportAnalyzer(provider), FakePayments())
    summary = parse_report_arguments(REPORT_ARGS, language="english")

    response = await service.present(summary, user_id="user_1", report_id="r1", language="french")

    assert response["ispro"] is False
    assert response["result"]["reportLanguage"] == "french"
    assert response["result"]["delinquencyStatus"] == "Historique propre"
    assert response["result"]["factorAnalysis"] == []
    translate_prompt = provider.complete_calls[0]["messages"][1]["content"]
    assert "into french" in translate_prompt
    assert "reportLanguage" not in translate_prompt


@pytest.mark.anyio
async def test_service_analyze_upload_for_paid_report(tmp_path):
    pdf = tmp_path / "report.pdf"
    pdf.write_bytes(b"%PDF-1.4")
    provider = FakeReportProvider([_report_message(REPORT_ARGS)])
    service = ReportService(ReportAnalyzer(provider), FakePayments({"r1": _payment("r1")}))

    summary, response = await service.analyze_upload(
        pdf,
        accept_language="uk-UA",
        user_id="user_1",
        report_id="r1",
    )

    assert summary.language == "ukrainian"
    assert response["ispro"] is True
    assert response["result"]["actionPlan"] == [
        {"month": "Month 1", "actions": ["Lower utilization below 30%"]}
    ]


@pytest.mark.anyio
async def test_service_present_normalizes_language_tags():
    provider = FakeReportProvider([_report_message(REPORT_ARGS)])
    service = ReportService(ReportAnalyzer(provider), FakePayments())
    summary = parse_report_arguments(REPORT_ARGS, language="english")

    response = await service.present(summary, user_id="user_1", report_id="r1", language="fr")

    assert response["result"]["reportLanguage"] == "french"
    assert "into french" in provider.complete_calls[0]["messages"][1]["content"]


@pytest.mark.anyio
async def test_service_present_skips_translation_for_same_language_tag():
    provider = FakeReportProvider([])
    service = ReportService(ReportAnalyzer(provider), FakePayments())
    summary = parse_report_arguments(REPORT_ARGS, language="english")

    response = await service.present(summary, user_id=None, report_id=None, language="en-US")

    assert provider.complete_calls == []
    assert response["result"]["reportLanguage"] == "english"
