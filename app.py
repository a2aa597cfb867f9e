from __future__ import annotations

import asyncio
import logging

from scorewise.assistant import AssistantService, AssistantStreamConfig, AssistantStreamProcessor
from scorewise.core import configure_logging, load_runtime_config
from scorewise.faq import FAQCorpusStore, FAQError, embed_faqs
from scorewise.utils.openai_client import OpenAIProvider, ProviderError


async def _main() -> None:
    config = load_runtime_config()
    configure_logging(config.log_level)
    logger = logging.getLogger("scorewise.startup")
    logger.info("Log level resolved to %s", config.log_level)

    if not config.openai.api_key:
        logger.critical("OPENAI_API_KEY is not set. Exiting.")
        return

    provider = OpenAIProvider(
        config.openai.api_key,
        embedding_model=config.openai.embedding_model,
        chat_model=config.openai.chat_model,
        timeout=config.openai.timeout,
    )

    if config.faq.precompute_on_start:
        try:
            await embed_faqs(
                config.faq.source_path,
                config.faq.corpus_path,
                embedder=provider.embed,
            )
        except FileNotFoundError:
            logger.warning("FAQ source %s not found; skipping precompute", config.faq.source_path)
        except (FAQError, ProviderError):
            logger.exception("FAQ precompute failed; assistant answers will fall back")

    store = FAQCorpusStore(config.faq.corpus_path)
    service = AssistantService(provider, store, model=config.openai.chat_model)
    stream_config = AssistantStreamConfig.from_env()
    processor = AssistantStreamProcessor(service, stream_config)

    if not await processor.start():
        logger.critical("Assistant stream %s did not start. Exiting.", stream_config.stream)
        return

    logger.info("Assistant ready on stream %s", stream_config.stream)
    try:
        await processor.wait_stopped()
    finally:
        logger.info("Entering shutdown cleanup")
        try:
            await processor.stop()
        except Exception:
            logger.exception("Failed to stop assistant stream cleanly")
        try:
            await provider.client.close()
        except Exception:
            logger.exception("Failed to close OpenAI client cleanly")


if __name__ == "__main__":
    asyncio.run(_main())
