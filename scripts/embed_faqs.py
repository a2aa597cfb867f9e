from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from scorewise.core import configure_logging, load_runtime_config
from scorewise.faq import embed_faqs
from scorewise.utils.openai_client import OpenAIProvider


async def main() -> None:
    config = load_runtime_config()
    parser = argparse.ArgumentParser(description="Embed the FAQ source file into the corpus file.")
    parser.add_argument("--source", default=config.faq.source_path)
    parser.add_argument("--target", default=config.faq.corpus_path)
    parser.add_argument(
        "--force",
        action="store_true",
        help="Delete an existing corpus file before embedding.",
    )
    args = parser.parse_args()
    configure_logging(config.log_level)

    target = Path(args.target)
    if args.force and target.exists():
        target.unlink()

    provider = OpenAIProvider(
        config.openai.api_key,
        embedding_model=config.openai.embedding_model,
        timeout=config.openai.timeout,
    )
    try:
        written = await embed_faqs(args.source, target, embedder=provider.embed)
    finally:
        await provider.client.close()

    if written:
        print(f"Embedded FAQs from {args.source} into {target}.")
    else:
        print(f"{target} already exists; pass --force to rebuild it.")


if __name__ == "__main__":
    asyncio.run(main())
