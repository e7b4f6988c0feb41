# 検索結果のハイライト生成
"""
一致した用語を本文中でマーカー（既定: <mark>…</mark>）で囲む。

一致箇所はすべて元のテキスト上で先に計算し、重なる箇所は
先に指定された用語を優先して後の用語の一致を捨てる。
そのためマーカーが入れ子になることはない。
例: 用語 ["Habeas corpus", "corpus"] では "Habeas corpus" 全体のみを囲む。
"""

from typing import List, Optional, Sequence, Tuple

from src.config.search_config import SearchConfig, config as default_config
from src.search.ranking import compile_literal, normalize_terms


Span = Tuple[int, int]


def find_match_spans(text: str, terms: Sequence[str]) -> List[Span]:
    """重なりのない一致区間を開始位置順に返す"""
    accepted: List[Span] = []
    for term in normalize_terms(terms):
        for match in compile_literal(term).finditer(text):
            start, end = match.span()
            if any(start < a_end and a_start < end for a_start, a_end in accepted):
                continue
            accepted.append((start, end))
    accepted.sort()
    return accepted


def highlight(
    text: Optional[str],
    matched_terms: Sequence[str],
    config: Optional[SearchConfig] = None,
) -> Optional[str]:
    """本文中の一致箇所をマーカーで囲む

    Args:
        text: 本文
        matched_terms: セクションに一致した用語
        config: マーカーのタグ設定（省略時はデフォルト）

    Returns:
        マーカー挿入済みの本文。本文または用語が空ならそのまま返す。
    """
    if not text or not matched_terms:
        return text

    open_tag, close_tag = (config or default_config).highlight_tags
    spans = find_match_spans(text, matched_terms)
    if not spans:
        return text

    parts: List[str] = []
    cursor = 0
    for start, end in spans:
        parts.append(text[cursor:start])
        parts.append(f"{open_tag}{text[start:end]}{close_tag}")
        cursor = end
    parts.append(text[cursor:])
    return "".join(parts)
