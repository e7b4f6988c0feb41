# Config モジュール
from src.config.search_config import SearchConfig, config
from src.config.llm_config import LLMConfig, llm_config

__all__ = [
    "SearchConfig",
    "config",
    "LLMConfig",
    "llm_config",
]
