# 検索エンジンのパラメータ設定

import os
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass
class SearchConfig:
    """検索エンジンのパラメータ設定

    ランキング重み、件数上限、用語抽出のキャッシュ・タイムアウトを管理する。

    環境変数:
        LEXSEARCH_CORPUS: セクションコーパス（YAML）のパス（オプション）
    """

    # === ランキング重み ===
    weight_title: int = 3
    """用語がタイトルに含まれる場合の加点"""

    weight_body: int = 1
    """用語が本文に含まれる場合の加点"""

    weight_phrase_title: int = 5
    """元のクエリ全体がタイトルに含まれる場合のボーナス"""

    weight_phrase_body: int = 2
    """元のクエリ全体が本文に含まれる場合のボーナス"""

    # === 件数上限 ===
    advanced_result_limit: Optional[int] = 10
    """高度検索の返却件数上限"""

    basic_result_limit: Optional[int] = None
    """通常検索の返却件数上限（None は上限なし）"""

    # === 用語抽出 ===
    term_cache_size: int = 256
    """抽出済み用語の LRU キャッシュ件数"""

    term_extraction_timeout_seconds: float = 10.0
    """LLM による用語抽出の待ち時間上限（秒）"""

    fallback_min_token_length: int = 3
    """フォールバック分割時に残すトークンの最小長（この長さを超えるもののみ）"""

    # === ハイライト ===
    highlight_open_tag: str = "<mark>"
    highlight_close_tag: str = "</mark>"

    # === コーパス ===
    corpus_path: Optional[str] = None
    """セクションコーパスのパス（None の場合は同梱のシードデータ）"""

    def __post_init__(self) -> None:
        if self.corpus_path is None:
            env_corpus = os.getenv("LEXSEARCH_CORPUS")
            if env_corpus:
                self.corpus_path = env_corpus

    @property
    def highlight_tags(self) -> Tuple[str, str]:
        return self.highlight_open_tag, self.highlight_close_tag

    def validate(self) -> None:
        """設定値を検証

        Raises:
            ValueError: 値が無効な場合
        """
        # 用語の重みは正（タイトル + 本文 > 本文のみ）
        for name in ("weight_title", "weight_body"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} は正の整数である必要があります: {value}")

        for name in ("weight_phrase_title", "weight_phrase_body"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} は非負である必要があります: {value}")

        for name in ("advanced_result_limit", "basic_result_limit"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} は正の整数または None である必要があります: {value}")

        if self.term_cache_size <= 0:
            raise ValueError(f"term_cache_size は正の整数である必要があります: {self.term_cache_size}")

        if self.term_extraction_timeout_seconds <= 0:
            raise ValueError(
                "term_extraction_timeout_seconds は正の数である必要があります: "
                f"{self.term_extraction_timeout_seconds}"
            )

        if self.fallback_min_token_length < 0:
            raise ValueError(
                f"fallback_min_token_length は非負である必要があります: {self.fallback_min_token_length}"
            )

        if not self.highlight_open_tag or not self.highlight_close_tag:
            raise ValueError("ハイライトタグは空にできません")


# デフォルト設定のインスタンス
config = SearchConfig()
