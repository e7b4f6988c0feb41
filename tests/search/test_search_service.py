# 検索サービスのテスト
"""
SearchService の単体テスト

テスト観点:
- 通常検索（クエリ全体を1用語）
- 高度検索（LLM 用語・法令情報・ハイライト・件数上限）
- 用語抽出失敗時のフォールバック（クエリ全体 → 分割トークン）
- スコアなしの部分一致フィルタ
"""

import pytest
from unittest.mock import MagicMock

from src.config.search_config import SearchConfig
from src.llm.claude_client import ClaudeClientError, ClaudeResponse
from src.models.section import Act, Locale, Section
from src.search.search_service import SearchService
from src.search.term_extractor import SOURCE_QUERY, TermExtraction, TermExtractor
from src.storage.section_store import InMemorySectionStore


@pytest.fixture
def acts():
    return [
        Act(id=1, name="Indian Penal Code", name_hindi="भारतीय दंड संहिता", short_name="IPC", year="1860"),
        Act(id=2, name="Code of Criminal Procedure", name_hindi="दंड प्रक्रिया संहिता", short_name="CrPC"),
    ]


@pytest.fixture
def sections():
    return [
        Section(
            id=1,
            act_id=1,
            number="302",
            title="Punishment for murder",
            title_hindi="हत्या के लिए दंड",
            content="Whoever commits murder shall be punished with death.",
            content_hindi="जो कोई हत्या करेगा, वह मृत्यु से दंडित किया जाएगा।",
        ),
        Section(
            id=2,
            act_id=2,
            number="154",
            title="Zero FIR",
            title_hindi="जीरो एफआईआर",
            content="The officer shall register the report.",
            content_hindi="अधिकारी रिपोर्ट दर्ज करेगा।",
        ),
        Section(
            id=3,
            act_id=1,
            number="304A",
            title="Causing death by negligence",
            content="Whoever causes death by a rash or negligent act owes a duty of care.",
        ),
    ]


@pytest.fixture
def store(acts, sections):
    return InMemorySectionStore(acts=acts, sections=sections)


def _failing_extractor(config=None):
    client = MagicMock()
    client.complete.side_effect = ClaudeClientError("API unavailable")
    return TermExtractor(client=client, config=config or SearchConfig())


class TestBasicSearch:
    """通常検索"""

    def test_whole_query_as_single_term(self, store):
        service = SearchService(store)

        results = service.search("murder", Locale.EN)

        assert [r.section.id for r in results] == [1]
        assert results[0].matched_terms == ["murder"]
        assert results[0].act is None
        assert results[0].highlighted_content is None

    def test_multi_word_query_is_not_split(self, store):
        service = SearchService(store)
        assert service.search("murder report", Locale.EN) == []

    def test_hindi_locale(self, store):
        service = SearchService(store)
        results = service.search("हत्या", Locale.HI)
        assert [r.section.id for r in results] == [1]

    def test_uncapped_by_default(self, acts):
        many = [Section(id=i, act_id=1, number=str(i), title="Murder") for i in range(1, 16)]
        service = SearchService(InMemorySectionStore(acts=acts, sections=many))

        assert len(service.search("murder")) == 15
        assert len(service.search("murder", limit=5)) == 5

    def test_blank_query(self, store):
        assert SearchService(store).search("   ") == []

    def test_does_not_call_extractor(self, store):
        extractor = MagicMock()
        SearchService(store, extractor=extractor).search("murder")
        extractor.extract.assert_not_called()

    def test_extractor_created_only_for_advanced_search(self, store):
        service = SearchService(store)

        service.search("murder")
        assert service._extractor is None

        service.advanced_search("murder")
        assert isinstance(service._extractor, TermExtractor)

    def test_close_stops_created_extractor(self, store):
        extractor = MagicMock()
        SearchService(store, extractor=extractor).close()
        extractor.close.assert_called_once()

        SearchService(store).close()


class TestAdvancedSearch:
    """高度検索"""

    def test_llm_terms_with_act_and_highlight(self, store):
        client = MagicMock()
        client.complete.return_value = ClaudeResponse(content='["murder", "death"]', stop_reason="end_turn")
        extractor = TermExtractor(client=client)
        service = SearchService(store, extractor=extractor)

        try:
            results = service.advanced_search("killing someone", Locale.EN)
        finally:
            extractor.close()

        assert [r.section.id for r in results] == [1, 3]
        top = results[0]
        assert top.matched_terms == ["murder", "death"]
        assert top.act.short_name == "IPC"
        assert top.highlighted_content == (
            "Whoever commits <mark>murder</mark> shall be punished with <mark>death</mark>."
        )

    def test_highlight_can_be_disabled(self, store):
        extractor = MagicMock()
        extractor.extract.return_value = TermExtraction(terms=["murder"], source="llm")
        service = SearchService(store, extractor=extractor)

        results = service.advanced_search("murder", Locale.EN, with_highlights=False)

        assert results[0].highlighted_content is None
        assert results[0].act is not None

    def test_hindi_highlight_uses_hindi_body(self, store):
        extractor = MagicMock()
        extractor.extract.return_value = TermExtraction(terms=["हत्या"], source="llm")
        service = SearchService(store, extractor=extractor)

        results = service.advanced_search("हत्या", Locale.HI)

        assert results[0].highlighted_content == "जो कोई <mark>हत्या</mark> करेगा, वह मृत्यु से दंडित किया जाएगा।"
        assert results[0].act.name_for(Locale.HI) == "भारतीय दंड संहिता"

    def test_capped_at_ten(self, acts):
        many = [Section(id=i, act_id=1, number=str(i), title="Murder", content="murder") for i in range(1, 16)]
        extractor = MagicMock()
        extractor.extract.return_value = TermExtraction(terms=["murder"], source="llm")
        service = SearchService(InMemorySectionStore(acts=acts, sections=many), extractor=extractor)

        results = service.advanced_search("murder", Locale.EN)

        assert len(results) == 10
        assert [r.section.id for r in results] == list(range(1, 11))

    def test_explicit_limit(self, store):
        extractor = MagicMock()
        extractor.extract.return_value = TermExtraction(terms=["murder", "report"], source="llm")
        service = SearchService(store, extractor=extractor)

        assert len(service.advanced_search("x", Locale.EN, limit=1)) == 1

    def test_section_without_act(self, acts):
        orphan = Section(id=7, act_id=None, number="1", title="Murder")
        extractor = MagicMock()
        extractor.extract.return_value = TermExtraction(terms=["murder"], source="llm")
        service = SearchService(InMemorySectionStore(acts=acts, sections=[orphan]), extractor=extractor)

        results = service.advanced_search("murder", Locale.EN)

        assert results[0].act is None

    def test_blank_query(self, store):
        extractor = MagicMock()
        assert SearchService(store, extractor=extractor).advanced_search("  ") == []
        extractor.extract.assert_not_called()

    def test_store_failure_propagates(self):
        store = MagicMock()
        store.get_sections.side_effect = OSError("corpus unavailable")
        service = SearchService(store, extractor=MagicMock())

        with pytest.raises(OSError):
            service.advanced_search("murder", Locale.EN)


class TestAdvancedSearchFallback:
    """用語抽出失敗時のフォールバック"""

    def test_extraction_failure_uses_whole_query(self, store):
        extractor = _failing_extractor()
        service = SearchService(store, extractor=extractor)

        try:
            results = service.advanced_search("Zero FIR", Locale.EN)
        finally:
            extractor.close()

        assert [r.section.id for r in results] == [2]
        assert results[0].matched_terms == ["Zero FIR"]

    def test_negligence_duty_care_splits_into_tokens(self, store):
        extractor = _failing_extractor()
        service = SearchService(store, extractor=extractor)

        try:
            results = service.advanced_search("negligence duty care", Locale.EN)
        finally:
            extractor.close()

        assert [r.section.id for r in results] == [3]
        assert results[0].matched_terms == ["negligence", "duty", "care"]
        assert "<mark>duty</mark>" in results[0].highlighted_content

    def test_no_client_also_falls_back(self, store):
        service = SearchService(store, extractor=TermExtractor(client=None))

        results = service.advanced_search("negligence duty care", Locale.EN)

        assert [r.section.id for r in results] == [3]

    def test_tokens_not_used_when_llm_succeeded(self, store):
        extractor = MagicMock()
        extractor.extract.return_value = TermExtraction(terms=["bail"], source="llm")
        service = SearchService(store, extractor=extractor)

        assert service.advanced_search("negligence duty care", Locale.EN) == []
        extractor.fallback_terms.assert_not_called()

    def test_no_tokens_returns_empty(self, store):
        extractor = MagicMock()
        extractor.extract.return_value = TermExtraction(terms=["act of god"], source=SOURCE_QUERY)
        extractor.fallback_terms.return_value = []
        service = SearchService(store, extractor=extractor)

        assert service.advanced_search("act of god", Locale.EN) == []


class TestLookup:
    """スコアなしの部分一致フィルタ"""

    def test_matches_any_locale_and_number(self, store):
        service = SearchService(store)

        assert [s.id for s in service.lookup("MURDER")] == [1]
        assert [s.id for s in service.lookup("हत्या")] == [1]
        assert [s.id for s in service.lookup("304")] == [3]

    def test_blank(self, store):
        assert SearchService(store).lookup(" ") == []


class TestHighlightSection:
    def test_highlight_section(self, store, sections):
        service = SearchService(store)
        assert service.highlight_section(sections[1], ["report"], Locale.EN) == (
            "The officer shall register the <mark>report</mark>."
        )
