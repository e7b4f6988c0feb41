"""YAML corpus loading and minimal schema validation."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Tuple

import yaml

from src.models.section import Act, Section

DEFAULT_CORPUS_PATH = os.path.join(os.path.dirname(__file__), "data", "seed_corpus.yaml")

_SECTION_TEXT_FIELDS = ("title", "title_hindi", "content", "content_hindi")
_SECTION_LIST_FIELDS = (
    "interpretations",
    "interpretations_hindi",
    "related_sections",
    "amendments",
    "case_references",
)


class CorpusValidationError(ValueError):
    """Corpus YAML schema validation error."""


def load_yaml(path: str) -> Dict[str, Any]:
    """Load YAML file and return data."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise CorpusValidationError("YAMLのルートはオブジェクトである必要があります")
    return data


def load_corpus(path: str | None = None) -> Tuple[List[Act], List[Section]]:
    """Load and validate a corpus file, returning acts and sections."""
    data = load_yaml(path or DEFAULT_CORPUS_PATH)
    validate_corpus(data)
    acts = [Act.from_dict(item) for item in data.get("acts") or []]
    sections = [Section.from_dict(item) for item in data["sections"]]
    return acts, sections


def validate_corpus(data: Dict[str, Any]) -> None:
    """Validate corpus YAML data."""
    _require_fields(data, ["sections"])

    acts = data.get("acts") or []
    if not isinstance(acts, list):
        raise CorpusValidationError("acts は配列で指定してください")

    act_ids = set()
    for act in acts:
        if not isinstance(act, dict):
            raise CorpusValidationError("acts の要素はオブジェクトで指定してください")
        _require_fields(act, ["id", "name"], prefix="acts")
        if not isinstance(act["id"], int):
            raise CorpusValidationError("act.id は整数で指定してください")
        if act["id"] in act_ids:
            raise CorpusValidationError(f"act.id が重複しています: {act['id']}")
        if not isinstance(act["name"], str) or not act["name"]:
            raise CorpusValidationError("act.name は文字列で指定してください")
        act_ids.add(act["id"])

    sections = data["sections"]
    if not isinstance(sections, list):
        raise CorpusValidationError("sections は配列で指定してください")

    section_ids = set()
    for section in sections:
        if not isinstance(section, dict):
            raise CorpusValidationError("sections の要素はオブジェクトで指定してください")
        _require_fields(section, ["id", "number"], prefix="sections")
        if not isinstance(section["id"], int):
            raise CorpusValidationError("section.id は整数で指定してください")
        if section["id"] in section_ids:
            raise CorpusValidationError(f"section.id が重複しています: {section['id']}")
        section_ids.add(section["id"])

        act_id = section.get("act_id")
        if act_id is not None and act_ids and act_id not in act_ids:
            raise CorpusValidationError(f"section.act_id が未定義の法令を参照しています: {act_id}")

        for name in _SECTION_TEXT_FIELDS:
            value = section.get(name)
            if value is not None and not isinstance(value, str):
                raise CorpusValidationError(f"section.{name} は文字列で指定してください")

        for name in _SECTION_LIST_FIELDS:
            value = section.get(name)
            if value is None:
                continue
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                raise CorpusValidationError(f"section.{name} は文字列配列で指定してください")


def _require_fields(data: Dict[str, Any], fields: List[str], prefix: str | None = None) -> None:
    missing = [field for field in fields if field not in data]
    if missing:
        label = f"{prefix}." if prefix else ""
        raise CorpusValidationError(f"必須フィールドが不足しています: {', '.join(label + f for f in missing)}")
