# Storage modules

from src.storage.corpus_loader import CorpusValidationError, load_corpus
from src.storage.section_store import InMemorySectionStore

__all__ = [
    "CorpusValidationError",
    "load_corpus",
    "InMemorySectionStore",
]
