# 通常検索・高度検索のサービス層
"""
検索サービス

セクションストア・用語抽出・ランキング・ハイライトを組み合わせ、
HTTP 層や CLI から呼ばれる2種類の検索を提供する。

- search():          クエリ全体を1つの用語として照合（件数上限なし）
- advanced_search(): LLM で抽出した用語で照合し、上位10件に法令情報と
                     ハイライト済み本文を付与

用語抽出が失敗してクエリ全体でも一致がなかった場合は、
クエリを分割したトークン（3文字超）で再度ランキングする。
"""

import logging
from dataclasses import replace
from typing import List, Optional

from src.config.search_config import SearchConfig, config as default_config
from src.models.section import Locale, Section
from src.search.highlight import highlight
from src.search.ranking import ScoredSection, SectionRanker
from src.search.term_extractor import SOURCE_TOKENS, TermExtraction, TermExtractor
from src.storage.section_store import InMemorySectionStore


logger = logging.getLogger(__name__)


class SearchService:
    """検索サービス

    使用例:
        store = InMemorySectionStore.from_corpus()
        service = SearchService(store, TermExtractor(client))

        results = service.advanced_search("killing with intent", Locale.EN)
        payload = [r.to_api_dict() for r in results]
    """

    def __init__(
        self,
        store: InMemorySectionStore,
        extractor: Optional[TermExtractor] = None,
        ranker: Optional[SectionRanker] = None,
        config: Optional[SearchConfig] = None,
    ):
        self.store = store
        self.config = config or default_config
        self.ranker = ranker or SectionRanker(self.config)
        self._extractor = extractor

    @property
    def extractor(self) -> TermExtractor:
        """用語抽出器（高度検索で初めて必要になるまで作らない）"""
        if self._extractor is None:
            self._extractor = TermExtractor(config=self.config)
        return self._extractor

    def close(self) -> None:
        """作成済みの用語抽出器を停止"""
        if self._extractor is not None:
            self._extractor.close()

    def search(
        self,
        query: str,
        locale: "Locale | str" = Locale.EN,
        limit: Optional[int] = None,
    ) -> List[ScoredSection]:
        """通常検索: クエリ全体を1つの用語として照合

        Args:
            query: 検索クエリ
            locale: 照合する言語
            limit: 返却件数の上限（省略時は設定の basic_result_limit）

        Returns:
            関連度順の ScoredSection リスト。空クエリは空リスト
        """
        resolved_locale = Locale.parse(locale)
        stripped = (query or "").strip()
        if not stripped:
            return []

        if limit is None:
            limit = self.config.basic_result_limit

        return self.ranker.rank(
            self.store.get_sections(), [stripped], stripped, resolved_locale, limit=limit
        )

    def lookup(self, query: str) -> List[Section]:
        """スコアなしの部分一致フィルタ（両言語・条文番号が対象、ID 順）"""
        return self.store.search_sections(query)

    def advanced_search(
        self,
        query: str,
        locale: "Locale | str" = Locale.EN,
        with_highlights: bool = True,
        limit: Optional[int] = None,
    ) -> List[ScoredSection]:
        """高度検索: 抽出した用語で照合し、法令情報とハイライトを付与

        Args:
            query: 自然文のクエリ
            locale: 照合・プロンプトの言語
            with_highlights: ハイライト済み本文を付与するか
            limit: 返却件数の上限（省略時は設定の advanced_result_limit）

        Returns:
            関連度順の ScoredSection リスト（上限件数まで）
        """
        resolved_locale = Locale.parse(locale)
        stripped = (query or "").strip()
        if not stripped:
            return []

        if limit is None:
            limit = self.config.advanced_result_limit

        sections = self.store.get_sections()
        extraction = self.extractor.extract(stripped, resolved_locale)
        results = self.ranker.rank(
            sections, extraction.terms, stripped, resolved_locale, limit=limit
        )

        if not results and extraction.degraded:
            extraction = self._token_fallback(stripped, extraction)
            if extraction.terms:
                results = self.ranker.rank(
                    sections, extraction.terms, stripped, resolved_locale, limit=limit
                )

        logger.info(
            f"高度検索完了: query={stripped!r}, locale={resolved_locale.value}, "
            f"term_source={extraction.source}, terms={extraction.terms}, "
            f"returned={len(results)}"
        )

        return [self._enrich(result, resolved_locale, with_highlights) for result in results]

    def highlight_section(
        self,
        section: Section,
        matched_terms: List[str],
        locale: "Locale | str" = Locale.EN,
    ) -> str:
        """セクション本文（指定言語）のハイライト"""
        body = section.view().body_for(Locale.parse(locale))
        return highlight(body, matched_terms, self.config)

    def _token_fallback(self, query: str, previous: TermExtraction) -> TermExtraction:
        tokens = self.extractor.fallback_terms(query)
        if tokens == previous.terms:
            return previous
        logger.debug(f"クエリ全体で一致がないため分割トークンで再検索: tokens={tokens}")
        return TermExtraction(terms=tokens, source=SOURCE_TOKENS, error=previous.error)

    def _enrich(
        self,
        result: ScoredSection,
        locale: Locale,
        with_highlights: bool,
    ) -> ScoredSection:
        highlighted = None
        if with_highlights:
            highlighted = self.highlight_section(result.section, result.matched_terms, locale)
        return replace(
            result,
            act=self.store.get_act(result.section.act_id),
            highlighted_content=highlighted,
        )
