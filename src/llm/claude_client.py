# 用語抽出用の Claude クライアント
"""
単発のプロンプトを送りテキスト応答を受け取るだけの薄いクライアント。

リトライ方針:
- レート制限・接続エラー（タイムアウト含む）・5xx は指数バックオフで再試行
- 4xx とそれ以外の例外は即座に ClaudeClientError
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

import anthropic
from anthropic import APIConnectionError, APIStatusError, RateLimitError

from src.config.llm_config import LLMConfig

logger = logging.getLogger(__name__)


class ClaudeClientError(Exception):
    """Claude 呼び出しの失敗

    Attributes:
        message: エラーメッセージ
        original_error: SDK が送出した元の例外
        is_retryable: 時間をおけば成功し得るか
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        is_retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.is_retryable = is_retryable

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


@dataclass
class ClaudeResponse:
    """テキスト応答"""

    content: str
    stop_reason: str
    usage: Optional[Dict[str, int]] = None

    @property
    def truncated(self) -> bool:
        """max_tokens で打ち切られたか（JSON 配列が閉じていない可能性がある）"""
        return self.stop_reason == "max_tokens"


class ClaudeClient:
    """Claude Messages API クライアント

    使用例:
        client = ClaudeClient(LLMConfig())
        response = client.complete('Extract the key legal terms ... "killing someone"')
        print(response.content)
    """

    INITIAL_RETRY_DELAY = 1.0  # 秒
    MAX_RETRY_DELAY = 30.0  # 秒
    BACKOFF_MULTIPLIER = 2.0

    def __init__(self, config: LLMConfig):
        """
        Raises:
            ClaudeClientError: 設定が無効な場合
        """
        try:
            config.validate()
        except ValueError as e:
            raise ClaudeClientError(f"無効な設定: {e}") from e

        self.config = config
        # SDK 側の自動リトライは使わない
        self._api = anthropic.Anthropic(
            api_key=config.api_key,
            timeout=config.request_timeout_seconds,
            max_retries=0,
        )
        logger.info(f"ClaudeClient 初期化完了: model={config.model_name}")

    def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        deadline: Optional[float] = None,
    ) -> ClaudeResponse:
        """1ターンのプロンプトを送って応答を得る

        Args:
            prompt: ユーザープロンプト
            system_prompt: システムプロンプト
            deadline: time.monotonic() 基準の打ち切り時刻。各リクエストの
                タイムアウトと再試行の待ち時間はこの時刻を越えない

        Raises:
            ClaudeClientError: 再試行できない失敗、リトライ回数を使い切った場合、
                または deadline を過ぎた場合
        """
        last_error: Optional[Exception] = None
        delays = self._retry_delays()

        for attempt in range(1, self.config.max_retries + 2):
            remaining = self._remaining(deadline)
            if remaining <= 0:
                break
            try:
                return self._send(
                    prompt, system_prompt, min(self.config.request_timeout_seconds, remaining)
                )
            except Exception as e:
                self._check_error(e)
                last_error = e
                logger.warning(f"Claude 呼び出し失敗 (試行 {attempt}): {type(e).__name__}: {e}")

            if attempt <= self.config.max_retries:
                delay = next(delays)
                if delay >= self._remaining(deadline):
                    break
                logger.info(f"{delay:.1f}秒後に再試行します")
                time.sleep(delay)
        else:
            raise ClaudeClientError(
                f"最大リトライ回数 ({self.config.max_retries}) を超えました",
                original_error=last_error,
                is_retryable=True,
            )

        raise ClaudeClientError(
            "応答期限を過ぎたため呼び出しを打ち切りました",
            original_error=last_error,
            is_retryable=True,
        )

    @staticmethod
    def _remaining(deadline: Optional[float]) -> float:
        if deadline is None:
            return float("inf")
        return deadline - time.monotonic()

    def _check_error(self, error: Exception) -> None:
        """再試行できない例外なら ClaudeClientError を送出する"""
        if isinstance(error, (RateLimitError, APIConnectionError)):
            return
        if isinstance(error, APIStatusError):
            if error.status_code >= 500:
                return
            raise ClaudeClientError(
                f"APIリクエストエラー (HTTP {error.status_code})", original_error=error
            ) from error
        raise ClaudeClientError(
            f"予期せぬエラー: {type(error).__name__}", original_error=error
        ) from error

    def _retry_delays(self) -> Iterator[float]:
        delay = self.INITIAL_RETRY_DELAY
        while True:
            yield delay
            delay = min(delay * self.BACKOFF_MULTIPLIER, self.MAX_RETRY_DELAY)

    def _send(self, prompt: str, system_prompt: Optional[str], timeout: float) -> ClaudeResponse:
        kwargs: Dict[str, Any] = {
            "model": self.config.model_name,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "messages": [{"role": "user", "content": prompt}],
            "timeout": timeout,
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        response = self._api.messages.create(**kwargs)

        text = "".join(block.text for block in response.content if block.type == "text")
        usage = None
        if response.usage:
            usage = {
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            }
        logger.debug(f"Claude 応答: stop_reason={response.stop_reason}, chars={len(text)}")
        return ClaudeResponse(content=text, stop_reason=response.stop_reason, usage=usage)


_shared_client: Optional[ClaudeClient] = None


def get_claude_client(config: Optional[LLMConfig] = None) -> ClaudeClient:
    """プロセス内で共有するクライアントを返す（初回呼び出しで生成）"""
    global _shared_client
    if _shared_client is None:
        _shared_client = ClaudeClient(config or LLMConfig())
    return _shared_client


def reset_client() -> None:
    global _shared_client
    _shared_client = None
