from __future__ import annotations

import argparse
import asyncio
import json
import shutil
import tempfile
from pathlib import Path

from scorewise.core import configure_logging, load_runtime_config
from scorewise.reports import (
    ReportAnalyzer,
    ReportError,
    ReportService,
    build_report_response,
    validate_upload,
)
from scorewise.utils.openai_client import OpenAIProvider, ProviderError


class _UnpaidLookup:
    async def find_paid(self, report_id: str):
        return None


async def main() -> int:
    config = load_runtime_config()
    parser = argparse.ArgumentParser(description="Summarize a credit report PDF.")
    parser.add_argument("pdf", type=Path)
    parser.add_argument("--language", default="en", help="Accept-Language style tag.")
    parser.add_argument("--pro", action="store_true", help="Include the premium sections.")
    args = parser.parse_args()
    configure_logging(config.log_level)

    try:
        stored_name = validate_upload(args.pdf.name, "application/pdf", args.pdf.stat().st_size)
    except ReportError as exc:
        print(exc)
        return 1

    provider = OpenAIProvider(
        config.openai.api_key,
        chat_model=config.openai.report_model,
        timeout=config.openai.timeout,
    )
    service = ReportService(
        ReportAnalyzer(provider, model=config.openai.report_model),
        _UnpaidLookup(),
    )
    # The analyzer deletes the file it uploads, so hand it a copy.
    with tempfile.TemporaryDirectory() as workdir:
        upload_path = Path(workdir) / stored_name
        shutil.copyfile(args.pdf, upload_path)
        try:
            summary, response = await service.analyze_upload(
                upload_path,
                accept_language=args.language,
            )
        except (ReportError, ProviderError) as exc:
            print(f"Report analysis failed: {exc}")
            return 1
        finally:
            await provider.client.close()

    if args.pro:
        response = build_report_response(summary.to_dict(), is_pro=True)
    print(json.dumps(response, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
