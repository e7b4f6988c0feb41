# インメモリのセクションストア
"""
検索エンジンにセクション・法令を供給する読み取り中心のストア。

コーパス YAML（省略時は同梱のシードデータ）から読み込み、ID 順に保持する。
get_sections() は呼び出しごとにスナップショット（新しいリスト）を返すため、
ランキング中に別スレッドから add_section() されても影響しない。
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional

from src.models.section import Act, Section
from src.storage.corpus_loader import load_corpus


logger = logging.getLogger(__name__)


class InMemorySectionStore:
    """セクションと法令のインメモリストア

    使用例:
        store = InMemorySectionStore.from_corpus()
        sections = store.get_sections()
        act = store.get_act(sections[0].act_id)
    """

    def __init__(
        self,
        acts: Iterable[Act] = (),
        sections: Iterable[Section] = (),
    ):
        self._acts: Dict[int, Act] = {}
        self._sections: Dict[int, Section] = {}
        self._lock = threading.Lock()

        for act in acts:
            self._acts[act.id] = act
        for section in sections:
            self._sections[section.id] = section

        logger.info(
            f"InMemorySectionStore 初期化完了: acts={len(self._acts)}, sections={len(self._sections)}"
        )

    @classmethod
    def from_corpus(cls, path: Optional[str] = None) -> "InMemorySectionStore":
        """コーパス YAML からストアを作成

        Args:
            path: コーパスのパス（省略時は同梱のシードデータ）

        Raises:
            CorpusValidationError: コーパスの形式が不正な場合
            OSError: ファイルを読めない場合
        """
        acts, sections = load_corpus(path)
        return cls(acts=acts, sections=sections)

    # === 法令 ===

    def get_acts(self) -> List[Act]:
        with self._lock:
            return [self._acts[key] for key in sorted(self._acts)]

    def get_act(self, act_id: Optional[int]) -> Optional[Act]:
        if act_id is None:
            return None
        with self._lock:
            return self._acts.get(act_id)

    # === セクション ===

    def get_sections(self) -> List[Section]:
        """全セクションのスナップショット（ID 順）"""
        with self._lock:
            return [self._sections[key] for key in sorted(self._sections)]

    def get_section(self, section_id: int) -> Optional[Section]:
        with self._lock:
            return self._sections.get(section_id)

    def get_sections_by_act(self, act_id: int) -> List[Section]:
        return [s for s in self.get_sections() if s.act_id == act_id]

    def get_section_by_act_and_number(self, act_id: int, number: str) -> Optional[Section]:
        for section in self.get_sections():
            if section.act_id == act_id and section.number == number:
                return section
        return None

    def search_sections(self, query: str) -> List[Section]:
        """単純な部分一致フィルタ（スコアなし）

        両言語のタイトル・本文と条文番号のいずれかにクエリを含むセクションを
        ID 順に返す。空白のみのクエリは空リスト。
        """
        if not query or not query.strip():
            return []

        needle = query.casefold()
        matched: List[Section] = []
        for section in self.get_sections():
            haystacks = (
                section.title,
                section.title_hindi,
                section.content,
                section.content_hindi,
                section.number,
            )
            if any(needle in (text or "").casefold() for text in haystacks):
                matched.append(section)
        return matched

    def add_section(self, section: Section) -> Section:
        """セクションを追加（同じ ID は置き換え）"""
        with self._lock:
            if section.act_id is not None and self._acts and section.act_id not in self._acts:
                raise ValueError(f"未定義の法令を参照しています: act_id={section.act_id}")
            self._sections[section.id] = section
        logger.debug(f"セクションを追加: {section!r}")
        return section

    def next_section_id(self) -> int:
        with self._lock:
            return max(self._sections, default=0) + 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._sections)
