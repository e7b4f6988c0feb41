# キーワード関連度ランキングモジュール
"""
キーワード関連度ランキングモジュール

用語リストと元のクエリに対して各セクションをスコアリングし、
関連度の降順で並べた結果を返す。通常検索・高度検索の両方で共通に使う。

スコア計算:
    用語ごとに
        タイトルに含まれる: +weight_title (3)
        本文に含まれる:     +weight_body (1)
    元のクエリ全体（フレーズ）が
        タイトルに含まれる: +weight_phrase_title (5)
        本文に含まれる:     +weight_phrase_body (2)

設計方針:
- 照合は大文字小文字を区別しない部分一致。用語は re.escape でリテラル扱い
- 1つも用語が一致しないセクションはフレーズボーナスがあっても除外
- 同点は入力順を維持（安定ソート）。副次キーは意図的に設けない
- I/O なし。入力は変更しない
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from src.config.search_config import SearchConfig, config as default_config
from src.models.section import Act, Locale, Section


logger = logging.getLogger(__name__)


class RankingContractError(ValueError):
    """ランキングの呼び出し規約違反

    セクション集合に None を渡した場合や、サポート外の言語を指定した場合に送出。
    データ由来の空入力（空クエリ・空の用語リスト・空のセクション集合）では送出しない。
    """


@dataclass
class ScoredSection:
    """スコア計算済みのセクション"""

    section: Section
    """元のセクション"""

    relevance: int
    """関連度スコア（並び替えにのみ使用）"""

    matched_terms: List[str]
    """このセクションに一致した用語（用語リストの順）"""

    score_breakdown: Dict[str, int] = field(default_factory=dict)
    """スコア内訳（デバッグ用）
    例: {"title": 3, "body": 1, "phrase_title": 0, "phrase_body": 0, "total": 4}
    """

    act: Optional[Act] = None
    """所属法令（高度検索で付与）"""

    highlighted_content: Optional[str] = None
    """ハイライト済み本文（要求時のみ付与）"""

    def to_api_dict(self) -> Dict[str, Any]:
        """API レスポンス形式の辞書に変換

        Returns:
            {"section", "relevance", "matchedTerms"} と、
            付与されている場合は "act" / "highlightedContent"
        """
        data: Dict[str, Any] = {
            "section": self.section.to_dict(),
            "relevance": self.relevance,
            "matchedTerms": list(self.matched_terms),
        }
        if self.act is not None:
            data["act"] = self.act.to_dict()
        if self.highlighted_content is not None:
            data["highlightedContent"] = self.highlighted_content
        return data

    def __repr__(self) -> str:
        return (
            f"ScoredSection("
            f"section_id={self.section.id!r}, "
            f"relevance={self.relevance}, "
            f"matched_terms={self.matched_terms!r})"
        )


def normalize_terms(terms: Iterable[str]) -> List[str]:
    """用語リストを正規化

    - 前後の空白を除去し、空白のみの用語は捨てる
    - 大文字小文字を無視した重複は最初の出現のみ残す
    """
    normalized: List[str] = []
    seen = set()
    for term in terms:
        if not isinstance(term, str):
            continue
        stripped = term.strip()
        if not stripped:
            continue
        # re.IGNORECASE と同じ1文字単位の比較（casefold は使わない）
        key = stripped.lower()
        if key in seen:
            continue
        seen.add(key)
        normalized.append(stripped)
    return normalized


def compile_literal(text: str) -> Pattern[str]:
    """テキストをリテラルとして照合する大文字小文字無視のパターンを生成"""
    return re.compile(re.escape(text), re.IGNORECASE)


class SectionRanker:
    """セクションランキングエンジン

    使用例:
        ranker = SectionRanker()
        results = ranker.rank(sections, ["murder"], "murder", Locale.EN, limit=10)

        for scored in results:
            print(f"{scored.section.title} (relevance: {scored.relevance})")
    """

    def __init__(self, config: Optional[SearchConfig] = None):
        """ランキングエンジンを初期化

        Args:
            config: 検索設定（省略時はデフォルト設定を使用）
        """
        self.config = config or default_config
        self.config.validate()

        logger.debug(
            f"SectionRanker 初期化完了: "
            f"weights=(title={self.config.weight_title}, body={self.config.weight_body}, "
            f"phrase_title={self.config.weight_phrase_title}, "
            f"phrase_body={self.config.weight_phrase_body})"
        )

    def rank(
        self,
        sections: Optional[Sequence[Section]],
        terms: Sequence[str],
        original_query: str,
        locale: "Locale | str" = Locale.EN,
        limit: Optional[int] = None,
    ) -> List[ScoredSection]:
        """セクションをスコアリングして関連度順に返す

        Args:
            sections: 候補セクション（全件。絞り込みは呼び出し側の責務）
            terms: 照合する用語リスト
            original_query: 元のクエリ（フレーズ一致ボーナスに使用）
            locale: 照合するフィールドの言語
            limit: 返却件数の上限（None は上限なし）

        Returns:
            ScoredSection のリスト（関連度の降順、同点は入力順）

        Raises:
            RankingContractError: sections が None、言語がサポート外、limit が負の場合
        """
        if sections is None:
            raise RankingContractError("sections に None は指定できません")
        try:
            resolved_locale = Locale.parse(locale)
        except ValueError as e:
            raise RankingContractError(str(e)) from e
        if limit is not None and limit < 0:
            raise RankingContractError(f"limit は非負である必要があります: {limit}")

        sections = list(sections)
        normalized_terms = normalize_terms(terms)
        if not normalized_terms or not sections:
            logger.debug(
                f"用語またはセクションが空のため、空リストを返します: "
                f"terms={len(normalized_terms)}, sections={len(sections)}"
            )
            return []

        term_patterns = [(term, compile_literal(term)) for term in normalized_terms]

        phrase = (original_query or "").strip()
        phrase_pattern = compile_literal(phrase) if phrase else None

        results: List[ScoredSection] = []
        for section in sections:
            scored = self._score_section(
                section, term_patterns, phrase_pattern, resolved_locale
            )
            if scored is not None:
                results.append(scored)

        # 関連度の降順（sort は安定なので同点は入力順のまま）
        results.sort(key=lambda x: x.relevance, reverse=True)

        if limit is not None:
            results = results[:limit]

        logger.info(
            f"ランキング完了: "
            f"sections={len(sections)}, "
            f"terms={len(normalized_terms)}, "
            f"locale={resolved_locale.value}, "
            f"returned={len(results)}"
        )

        if results:
            logger.debug(
                f"トップスコア: {results[0].relevance}, "
                f"ボトムスコア: {results[-1].relevance}"
            )

        return results

    def _score_section(
        self,
        section: Section,
        term_patterns: List[Tuple[str, Pattern[str]]],
        phrase_pattern: Optional[Pattern[str]],
        locale: Locale,
    ) -> Optional[ScoredSection]:
        """1セクション分のスコアを計算

        Returns:
            一致した用語があれば ScoredSection、なければ None
        """
        view = section.view()
        title = view.title_for(locale)
        body = view.body_for(locale)

        title_score = 0
        body_score = 0
        matched_terms: List[str] = []

        for term, pattern in term_patterns:
            if pattern.search(title):
                title_score += self.config.weight_title
                matched_terms.append(term)

            if pattern.search(body):
                body_score += self.config.weight_body
                if term not in matched_terms:
                    matched_terms.append(term)

        if not matched_terms:
            return None

        phrase_title = 0
        phrase_body = 0
        if phrase_pattern is not None:
            if phrase_pattern.search(title):
                phrase_title = self.config.weight_phrase_title
            if phrase_pattern.search(body):
                phrase_body = self.config.weight_phrase_body

        total = title_score + body_score + phrase_title + phrase_body

        return ScoredSection(
            section=section,
            relevance=total,
            matched_terms=matched_terms,
            score_breakdown={
                "title": title_score,
                "body": body_score,
                "phrase_title": phrase_title,
                "phrase_body": phrase_body,
                "total": total,
            },
        )
