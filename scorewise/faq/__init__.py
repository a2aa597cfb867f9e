"""FAQ corpus loading, embedding precompute, and nearest-neighbour lookup."""

from .constants import DEFAULT_CORPUS_FILENAME, DEFAULT_SOURCE_FILENAME
from .corpus import CorpusShape, ParsedCorpus, assert_corpus, load_corpus_file, normalize_corpus, parse_corpus
from .errors import (
    DegenerateVectorError,
    DimensionMismatchError,
    EmptyOrInvalidCorpusError,
    FAQError,
    NoEmbeddedEntriesError,
    NonFiniteVectorError,
    VectorError,
)
from .matcher import Embedder, find_best_faq, select_best_entry
from .models import FAQAnswer, FAQEntry, FAQMatch
from .precompute import embed_faqs
from .similarity import cosine_similarity
from .storage import FAQCorpusStore

__all__ = [
    "DEFAULT_CORPUS_FILENAME",
    "DEFAULT_SOURCE_FILENAME",
    "CorpusShape",
    "ParsedCorpus",
    "parse_corpus",
    "normalize_corpus",
    "assert_corpus",
    "load_corpus_file",
    "FAQError",
    "EmptyOrInvalidCorpusError",
    "NoEmbeddedEntriesError",
    "VectorError",
    "DimensionMismatchError",
    "DegenerateVectorError",
    "NonFiniteVectorError",
    "Embedder",
    "select_best_entry",
    "find_best_faq",
    "FAQEntry",
    "FAQAnswer",
    "FAQMatch",
    "embed_faqs",
    "cosine_similarity",
    "FAQCorpusStore",
]
