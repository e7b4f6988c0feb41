# 法令セクション・法令（Act）モデル定義
# 英語（primary）とヒンディー語（secondary）の2言語フィールドを持つ

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Locale(str, Enum):
    """検索対象の言語

    EN: 英語（primary フィールド: title / content）
    HI: ヒンディー語（secondary フィールド: title_hindi / content_hindi）
    """

    EN = "en"
    HI = "hi"

    @classmethod
    def parse(cls, value: "Locale | str") -> Locale:
        """文字列またはLocaleからLocaleを取得

        Raises:
            ValueError: サポート外の言語コードの場合
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        raise ValueError(
            f"サポートされていない言語です: {value!r} "
            f"(指定可能: {', '.join(m.value for m in cls)})"
        )

    @property
    def is_primary(self) -> bool:
        return self is Locale.EN


@dataclass(frozen=True)
class Act:
    """法令（IPC, CrPC, BNS など）"""

    id: int
    name: str
    name_hindi: str
    short_name: str
    year: Optional[str] = None
    description: Optional[str] = None
    description_hindi: Optional[str] = None

    def name_for(self, locale: Locale) -> str:
        return self.name if locale.is_primary else self.name_hindi

    def to_dict(self) -> Dict[str, Any]:
        """API レスポンス形式（camelCase）の辞書に変換"""
        return {
            "id": self.id,
            "name": self.name,
            "nameHindi": self.name_hindi,
            "shortName": self.short_name,
            "year": self.year,
            "description": self.description,
            "descriptionHindi": self.description_hindi,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Act:
        return cls(
            id=int(data["id"]),
            name=data["name"],
            name_hindi=data.get("name_hindi") or "",
            short_name=data.get("short_name") or data["name"],
            year=_optional_str(data.get("year")),
            description=data.get("description"),
            description_hindi=data.get("description_hindi"),
        )


@dataclass(frozen=True)
class Section:
    """法令セクション（検索対象のレコード）

    ランキングエンジンへの入力としてイミュータブルに扱う。
    リスト系フィールドは tuple で保持する。
    """

    # === 識別子 ===
    id: int
    """セクションの一意識別子"""

    act_id: Optional[int]
    """所属する法令の ID"""

    number: str
    """条文番号（例: "302", "21"）"""

    # === 本文（2言語） ===
    title: str = ""
    title_hindi: str = ""
    content: str = ""
    content_hindi: str = ""

    # === 補足情報 ===
    interpretations: Tuple[str, ...] = field(default_factory=tuple)
    interpretations_hindi: Tuple[str, ...] = field(default_factory=tuple)
    related_sections: Tuple[str, ...] = field(default_factory=tuple)
    amendments: Tuple[str, ...] = field(default_factory=tuple)
    case_references: Tuple[str, ...] = field(default_factory=tuple)

    def view(self) -> SectionView:
        """2言語フィールドへのアクセサを返す"""
        return SectionView(self)

    def to_dict(self) -> Dict[str, Any]:
        """API レスポンス形式（camelCase）の辞書に変換"""
        return {
            "id": self.id,
            "actId": self.act_id,
            "number": self.number,
            "title": self.title,
            "titleHindi": self.title_hindi,
            "content": self.content,
            "contentHindi": self.content_hindi,
            "interpretations": list(self.interpretations),
            "interpretationsHindi": list(self.interpretations_hindi),
            "relatedSections": list(self.related_sections),
            "amendments": list(self.amendments),
            "caseReferences": list(self.case_references),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Section:
        """コーパス（snake_case の辞書）からインスタンスを生成

        Note:
            - 欠けているテキストフィールドは空文字列として扱う
            - リスト系フィールドは tuple に変換
        """
        act_id = data.get("act_id")
        return cls(
            id=int(data["id"]),
            act_id=int(act_id) if act_id is not None else None,
            number=str(data["number"]),
            title=data.get("title") or "",
            title_hindi=data.get("title_hindi") or "",
            content=data.get("content") or "",
            content_hindi=data.get("content_hindi") or "",
            interpretations=tuple(data.get("interpretations") or ()),
            interpretations_hindi=tuple(data.get("interpretations_hindi") or ()),
            related_sections=tuple(data.get("related_sections") or ()),
            amendments=tuple(data.get("amendments") or ()),
            case_references=tuple(data.get("case_references") or ()),
        )

    def __repr__(self) -> str:
        return (
            f"Section("
            f"id={self.id!r}, "
            f"act_id={self.act_id!r}, "
            f"number={self.number!r}, "
            f"title={self.title[:50]!r})"
        )


class SectionView:
    """セクションの2言語ビュー

    言語に応じたタイトル・本文の選択を、文字列キーによる動的参照ではなく
    明示的なアクセサで提供する。
    """

    __slots__ = ("_section",)

    def __init__(self, section: Section):
        self._section = section

    @property
    def section(self) -> Section:
        return self._section

    @property
    def primary_title(self) -> str:
        return self._section.title or ""

    @property
    def secondary_title(self) -> str:
        return self._section.title_hindi or ""

    @property
    def primary_body(self) -> str:
        return self._section.content or ""

    @property
    def secondary_body(self) -> str:
        return self._section.content_hindi or ""

    def title_for(self, locale: Locale) -> str:
        return self.primary_title if locale.is_primary else self.secondary_title

    def body_for(self, locale: Locale) -> str:
        return self.primary_body if locale.is_primary else self.secondary_body


def _optional_str(value: Any) -> Optional[str]:
    # YAML では year: 1860 が int として読まれる
    if value is None:
        return None
    return str(value)
