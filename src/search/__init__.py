# Search modules

from src.search.ranking import (
    RankingContractError,
    ScoredSection,
    SectionRanker,
    compile_literal,
    normalize_terms,
)
from src.search.highlight import find_match_spans, highlight
from src.search.term_extractor import (
    TermExtraction,
    TermExtractionError,
    TermExtractor,
    parse_terms,
    split_query_terms,
)
from src.search.search_service import SearchService

__all__ = [
    "RankingContractError",
    "ScoredSection",
    "SectionRanker",
    "compile_literal",
    "normalize_terms",
    "find_match_spans",
    "highlight",
    "TermExtraction",
    "TermExtractionError",
    "TermExtractor",
    "parse_terms",
    "split_query_terms",
    "SearchService",
]
