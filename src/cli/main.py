#!/usr/bin/env python3
from __future__ import annotations
"""
法令セクション検索 CLI

同梱（または指定）のコーパスに対して通常検索・高度検索を行う。
"""

import logging
import sys
from typing import Optional

import click

from src.config.llm_config import LLMConfig
from src.config.search_config import SearchConfig
from src.cli.utils.output import RESULT_HEADERS, echo_json, echo_table, result_rows
from src.llm.claude_client import ClaudeClient, ClaudeClientError
from src.models.section import Locale
from src.search.search_service import SearchService
from src.search.term_extractor import TermExtractor
from src.storage.corpus_loader import CorpusValidationError
from src.storage.section_store import InMemorySectionStore


LOCALE_CHOICE = click.Choice([locale.value for locale in Locale], case_sensitive=False)


class CLIContext:
    """CLI共通コンテキスト（依存関係を保持）"""

    def __init__(self):
        self.corpus_path: Optional[str] = None
        self.config: Optional[SearchConfig] = None
        self.store: Optional[InMemorySectionStore] = None
        self._service: Optional[SearchService] = None
        self._advanced_service: Optional[SearchService] = None
        self._initialized = False

    def initialize(self):
        """遅延初期化（必要時に呼び出される）"""
        if self._initialized:
            return

        try:
            self.config = SearchConfig(corpus_path=self.corpus_path)
            self.config.validate()
            self.store = InMemorySectionStore.from_corpus(self.config.corpus_path)
            self._initialized = True

        except (CorpusValidationError, OSError, ValueError) as e:
            click.echo(f"[初期化エラー] コーパスの読み込みに失敗しました: {e}", err=True)
            sys.exit(1)

    @property
    def service(self) -> SearchService:
        """通常検索用の SearchService（LLM クライアントは作らない）"""
        self.initialize()
        if self._service is None:
            self._service = SearchService(self.store, config=self.config)
        return self._service

    @property
    def advanced_service(self) -> SearchService:
        """高度検索用の SearchService（設定があれば LLM で用語抽出）"""
        self.initialize()
        if self._advanced_service is None:
            extractor = TermExtractor(client=self._build_llm_client(), config=self.config)
            self._advanced_service = SearchService(
                self.store, extractor=extractor, config=self.config
            )
        return self._advanced_service

    def close(self) -> None:
        """用語抽出のスレッドプールを停止"""
        for service in (self._service, self._advanced_service):
            if service is not None:
                service.close()

    def _build_llm_client(self) -> Optional[ClaudeClient]:
        llm_config = LLMConfig()
        if not llm_config.is_configured:
            return None
        try:
            return ClaudeClient(llm_config)
        except ClaudeClientError as e:
            click.echo(f"⚠ LLM を使わずに検索します: {e}", err=True)
            return None


# click の pass_context でCLIContextを共有
pass_context = click.make_pass_decorator(CLIContext, ensure=True)


@click.group()
@click.version_option(version="1.0.0", prog_name="lexsearch")
@click.option("--corpus", "corpus_path", type=click.Path(exists=True, dir_okay=False),
              default=None, help="セクションコーパス（YAML）のパス")
@click.option("--verbose", "-v", is_flag=True, help="デバッグログを表示")
@pass_context
def lexsearch(ctx: CLIContext, corpus_path: Optional[str], verbose: bool):
    """
    法令セクション検索 CLI

    英語・ヒンディー語の条文をキーワードで検索し、関連度順に表示します。
    """
    ctx.corpus_path = corpus_path
    click.get_current_context().call_on_close(ctx.close)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@lexsearch.command()
@click.argument("query")
@click.option("--lang", "locale", type=LOCALE_CHOICE, default="en", show_default=True,
              help="検索する言語")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="表示件数の上限")
@click.option("--json", "as_json", is_flag=True, help="JSON 形式で出力")
@pass_context
def search(ctx: CLIContext, query: str, locale: str, limit: Optional[int], as_json: bool):
    """クエリ全体を1つの用語として検索する"""
    if not query.strip():
        click.echo("[エラー] 検索クエリを指定してください", err=True)
        sys.exit(2)

    resolved_locale = Locale.parse(locale)
    results = ctx.service.search(query, resolved_locale, limit=limit)
    _echo_results(results, resolved_locale, as_json)


@lexsearch.command("advanced-search")
@click.argument("query")
@click.option("--lang", "locale", type=LOCALE_CHOICE, default="en", show_default=True,
              help="検索する言語")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="表示件数の上限（既定: 10）")
@click.option("--no-highlight", is_flag=True, help="ハイライト済み本文を付与しない")
@click.option("--json", "as_json", is_flag=True, help="JSON 形式で出力")
@pass_context
def advanced_search(
    ctx: CLIContext,
    query: str,
    locale: str,
    limit: Optional[int],
    no_highlight: bool,
    as_json: bool,
):
    """LLM で法律用語を抽出して検索する（失敗時はクエリから用語を作る）"""
    if not query.strip():
        click.echo("[エラー] 検索クエリを指定してください", err=True)
        sys.exit(2)

    resolved_locale = Locale.parse(locale)
    results = ctx.advanced_service.advanced_search(
        query, resolved_locale, with_highlights=not no_highlight, limit=limit
    )
    _echo_results(results, resolved_locale, as_json)

    if not as_json and not no_highlight:
        for result in results:
            if result.highlighted_content:
                click.echo(f"\n[{result.section.id}] {result.highlighted_content}")


@lexsearch.command()
@click.argument("section_id", type=int)
@click.option("--lang", "locale", type=LOCALE_CHOICE, default="en", show_default=True,
              help="表示する言語")
@click.option("--json", "as_json", is_flag=True, help="JSON 形式で出力")
@pass_context
def show(ctx: CLIContext, section_id: int, locale: str, as_json: bool):
    """セクションの詳細を表示する"""
    ctx.initialize()
    section = ctx.store.get_section(section_id)
    if section is None:
        click.echo(f"[エラー] セクションが見つかりません: {section_id}", err=True)
        sys.exit(1)

    act = ctx.store.get_act(section.act_id)
    if as_json:
        data = section.to_dict()
        data["act"] = act.to_dict() if act else None
        echo_json(data)
        return

    resolved_locale = Locale.parse(locale)
    view = section.view()
    act_label = act.name_for(resolved_locale) if act else "-"
    click.echo(f"{act_label} / {section.number}: {view.title_for(resolved_locale)}")
    click.echo("")
    click.echo(view.body_for(resolved_locale))

    interpretations = (
        section.interpretations if resolved_locale.is_primary else section.interpretations_hindi
    )
    if interpretations:
        click.echo("")
        for item in interpretations:
            click.echo(f"- {item}")
    if section.case_references:
        click.echo("")
        click.echo("Case references: " + "; ".join(section.case_references))


def _echo_results(results, locale: Locale, as_json: bool) -> None:
    if as_json:
        echo_json([result.to_api_dict() for result in results])
        return
    if not results:
        click.echo("一致するセクションはありません")
        return
    echo_table(RESULT_HEADERS, result_rows(results, locale))


if __name__ == '__main__':
    lexsearch()
