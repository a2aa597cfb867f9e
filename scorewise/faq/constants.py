"""Default file locations for the FAQ corpus."""

DEFAULT_SOURCE_FILENAME = "faq.json"
DEFAULT_CORPUS_FILENAME = "faqs_with_embeddings.json"

__all__ = [
    "DEFAULT_SOURCE_FILENAME",
    "DEFAULT_CORPUS_FILENAME",
]
