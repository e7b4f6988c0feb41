# 用語抽出に使う LLM の設定

import os
from dataclasses import dataclass, field
from typing import Optional


_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass
class LLMConfig:
    """Claude 呼び出し設定

    環境変数:
        ANTHROPIC_API_KEY: APIキー。未設定なら用語抽出はクエリからのフォールバックのみ
        CLAUDE_MODEL: モデル名の上書き
        LEXSEARCH_USE_LLM: "0" / "false" などで LLM を使わない
    """

    model_name: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 512
    temperature: float = 0.0
    api_key: Optional[str] = field(default=None, repr=False)
    request_timeout_seconds: float = 30.0
    """HTTP リクエスト1回の上限。用語抽出全体の待ち時間は SearchConfig 側で制限する"""
    max_retries: int = 2
    enabled: bool = True

    def __post_init__(self) -> None:
        if self.api_key is None:
            self.api_key = os.getenv("ANTHROPIC_API_KEY")

        model = os.getenv("CLAUDE_MODEL")
        if model:
            self.model_name = model

        use_llm = os.getenv("LEXSEARCH_USE_LLM")
        if use_llm is not None and use_llm.strip().lower() in _FALSE_VALUES:
            self.enabled = False

    def validate(self) -> None:
        """
        Raises:
            ValueError: APIキーがない、または値が範囲外の場合
        """
        if not self.api_key:
            raise ValueError("APIキーが設定されていません (ANTHROPIC_API_KEY)")
        if self.max_tokens <= 0:
            raise ValueError(f"max_tokens は正の整数である必要があります: {self.max_tokens}")
        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError(f"temperature は 0.0-1.0 の範囲である必要があります: {self.temperature}")
        if self.request_timeout_seconds <= 0:
            raise ValueError(
                f"request_timeout_seconds は正の数である必要があります: {self.request_timeout_seconds}"
            )
        if self.max_retries < 0:
            raise ValueError(f"max_retries は非負の整数である必要があります: {self.max_retries}")

    @property
    def is_configured(self) -> bool:
        """LLM を呼び出せる状態か"""
        return self.enabled and bool(self.api_key)


llm_config = LLMConfig()
