# 法律用語抽出モジュール（LLM + 決定的フォールバック）
"""
自然文のクエリから照合用の用語リストを作る。

処理の流れ:
1. LRU キャッシュを参照
2. LLM（Claude）に用語の JSON 配列を返させる（タイムアウト付き）
3. 失敗・タイムアウト・解析不能の場合はフォールバック
   a. クエリ全体を1つの用語として使う
   b. それで一致がなければ、空白で分割して 3 文字を超えるトークンを使う
      （ランキング結果を見て判断するため SearchService 側で行う）

extract() は例外を送出しない。LLM 側の失敗は警告ログのみで呼び出し側には見せない。
"""

import json
import logging
import re
import threading
import time
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from src.config.search_config import SearchConfig, config as default_config
from src.llm.claude_client import ClaudeClient, ClaudeClientError
from src.models.section import Locale
from src.search.ranking import normalize_terms


logger = logging.getLogger(__name__)


# 用語の出所
SOURCE_LLM = "llm"
SOURCE_CACHE = "cache"
SOURCE_QUERY = "query"
SOURCE_TOKENS = "tokens"


SYSTEM_PROMPT = (
    "You extract search keywords for an Indian statute database. "
    "Reply with a JSON array of strings and nothing else."
)

PROMPTS = {
    Locale.EN: (
        'Extract the key legal terms and concepts from this query: "{query}".\n'
        "Return only a JSON array of strings with the terms, nothing else.\n"
        'Example: ["criminal negligence", "manslaughter", "intent"]'
    ),
    Locale.HI: (
        'इस खोज से मुख्य कानूनी शब्दों और अवधारणाओं को निकालें: "{query}".\n'
        "केवल एक JSON एरे में शब्दों को वापस करें, अन्य कुछ नहीं।\n"
        'उदाहरण: ["आपराधिक लापरवाही", "मानव वध", "इरादा"]'
    ),
}

_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_QUOTED_RE = re.compile(r'"([^"]+)"')


class TermExtractionError(Exception):
    """LLM による用語抽出の失敗（内部でフォールバックに置き換える）"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


@dataclass
class TermExtraction:
    """用語抽出の結果"""

    terms: List[str]
    """照合に使う用語（空の場合あり）"""

    source: str
    """用語の出所: "llm" | "cache" | "query" | "tokens" """

    error: Optional[str] = field(default=None)
    """フォールバックに至った理由（ログ・デバッグ用）"""

    @property
    def degraded(self) -> bool:
        """LLM の結果を使えずフォールバックしたか"""
        return self.source in (SOURCE_QUERY, SOURCE_TOKENS)


def parse_terms(text: str) -> List[str]:
    """LLM 応答から用語リストを取り出す

    JSON 配列（シングルクォートはダブルクォートに置換）を優先し、
    失敗した場合はダブルクォートで囲まれた文字列を拾う。
    """
    if not text:
        return []

    match = _JSON_ARRAY_RE.search(text)
    if match:
        json_str = match.group(0).replace("'", '"')
        try:
            parsed = json.loads(json_str)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            terms = normalize_terms(item for item in parsed if isinstance(item, str))
            if terms:
                return terms

    return normalize_terms(_QUOTED_RE.findall(text))


def split_query_terms(query: str, min_length: int = 3) -> List[str]:
    """クエリを空白で分割し、min_length 文字を超えるトークンを返す"""
    return normalize_terms(
        token for token in (query or "").split() if len(token) > min_length
    )


class TermCache:
    """抽出済み用語の LRU キャッシュ（スレッドセーフ）"""

    def __init__(self, max_size: int):
        self.max_size = max_size
        self._entries: "OrderedDict[Tuple[str, str], List[str]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Tuple[str, str]) -> Optional[List[str]]:
        with self._lock:
            terms = self._entries.get(key)
            if terms is None:
                return None
            self._entries.move_to_end(key)
            return list(terms)

    def put(self, key: Tuple[str, str], terms: List[str]) -> None:
        with self._lock:
            self._entries[key] = list(terms)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class TermExtractor:
    """クエリから用語リストを抽出する

    client を省略した場合（APIキー未設定など）は常にフォールバックを使う。

    使用例:
        extractor = TermExtractor(ClaudeClient(LLMConfig()))
        extraction = extractor.extract("punishment for killing someone", Locale.EN)
        print(extraction.terms, extraction.source)
    """

    def __init__(
        self,
        client: Optional[ClaudeClient] = None,
        config: Optional[SearchConfig] = None,
    ):
        self.client = client
        self.config = config or default_config
        self.cache = TermCache(self.config.term_cache_size)
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

        logger.info(
            f"TermExtractor 初期化完了: llm={'enabled' if client else 'disabled'}, "
            f"timeout={self.config.term_extraction_timeout_seconds}s, "
            f"cache_size={self.config.term_cache_size}"
        )

    def extract(self, query: str, locale: "Locale | str" = Locale.EN) -> TermExtraction:
        """クエリから用語を抽出（例外は送出しない）

        Args:
            query: ユーザーのクエリ
            locale: プロンプトの言語

        Returns:
            TermExtraction。LLM が使えない場合はフォールバックの結果
        """
        resolved_locale = Locale.parse(locale)
        stripped = (query or "").strip()
        if not stripped:
            return TermExtraction(terms=[], source=SOURCE_QUERY)

        cache_key = (resolved_locale.value, stripped)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"用語キャッシュにヒット: query={stripped!r}")
            return TermExtraction(terms=cached, source=SOURCE_CACHE)

        if self.client is None:
            return self._fallback(stripped, "LLM クライアント未設定")

        try:
            terms = self._extract_with_llm(stripped, resolved_locale)
        except TermExtractionError as e:
            logger.warning(f"用語抽出に失敗したためフォールバックします: {e}")
            return self._fallback(stripped, str(e))

        self.cache.put(cache_key, terms)
        logger.info(f"用語抽出完了: query={stripped!r}, terms={terms}")
        return TermExtraction(terms=terms, source=SOURCE_LLM)

    def fallback_terms(self, query: str) -> List[str]:
        """分割フォールバック: 3 文字を超えるトークン"""
        return split_query_terms(query, self.config.fallback_min_token_length)

    def close(self) -> None:
        """バックグラウンドのスレッドプールを停止"""
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None

    def _fallback(self, query: str, reason: str) -> TermExtraction:
        """フォールバックの第1段階: クエリ全体を1つの用語とする

        第2段階（分割トークン）は、この用語で一致がなかった場合に
        SearchService が fallback_terms() で行う。
        """
        return TermExtraction(terms=[query], source=SOURCE_QUERY, error=reason)

    def _extract_with_llm(self, query: str, locale: Locale) -> List[str]:
        """LLM 呼び出し（待ち時間上限付き）

        Raises:
            TermExtractionError: 呼び出し失敗・タイムアウト・解析不能の場合
        """
        timeout = self.config.term_extraction_timeout_seconds
        # LLM 側のリクエストと再試行も同じ期限で打ち切らせる
        deadline = time.monotonic() + timeout
        future = self._get_executor().submit(self._request_terms, query, locale, deadline)
        try:
            text = future.result(timeout=timeout)
        except FutureTimeoutError as e:
            # 実行中の呼び出しは deadline でクライアント側が終了する
            future.cancel()
            raise TermExtractionError(f"用語抽出が {timeout:.1f} 秒でタイムアウトしました") from e
        except ClaudeClientError as e:
            raise TermExtractionError("LLM 呼び出しに失敗しました", original_error=e) from e
        except Exception as e:
            raise TermExtractionError(
                f"予期せぬエラー: {type(e).__name__}", original_error=e
            ) from e

        terms = parse_terms(text)
        if not terms:
            raise TermExtractionError(f"LLM 応答から用語を取り出せません: {text[:100]!r}")
        return terms

    def _request_terms(self, query: str, locale: Locale, deadline: float) -> str:
        prompt = PROMPTS[locale].format(query=query)
        response = self.client.complete(prompt, system_prompt=SYSTEM_PROMPT, deadline=deadline)
        if response.truncated:
            logger.warning(f"LLM 応答が max_tokens で打ち切られました: query={query!r}")
        return response.content

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=4, thread_name_prefix="term-extractor"
                )
            return self._executor
