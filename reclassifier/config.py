# reclassifier/config.py
from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

# Загружаем .env
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class RetryConfig:
    max_retries: int = 3
    backoff_factor: float = 0.5  # секунды между повторами
    retry_on_5xx: bool = True
    retry_on_429: bool = True
    retry_on_timeout: bool = True


@dataclass
class LLMApiConfig:
    """
    Конфиг LLM-провайдера для альтернативной AI-стратегии.
    По умолчанию OpenAI-совместимый chat/completions.
    """
    provider: str = "openai"
    base_url: str = "https://api.openai.com/v1"
    api_key_env_var: str = "OPENAI_API_KEY"
    timeout_seconds: float = 30.0
    retry: RetryConfig = field(default_factory=RetryConfig)
    model: str = field(default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-4o-mini"))
    endpoint: str = "/chat/completions"
    temperature: float = 0.3
    max_tokens: int = 50  # модель отвечает только ID категории


@dataclass
class ClassifierConfig:
    # Ниже этого балла предложение скорера отбрасывается, остаётся текущая категория
    min_confidence: float = 2.0
    # С этого балла "strong match" и высокая уверенность в отчёте
    high_confidence: float = 5.0
    # Фиксированный балл для семантических правил
    semantic_match_score: float = 50.0
    # Балл принятой подсказки AI-стратегии
    ai_match_score: float = 5.0
    audit_keywords_limit: int = 10


@dataclass
class BatchConfig:
    exports_dir: str = field(default_factory=lambda: os.getenv("EXPORTS_DIR", "exports"))
    ai_batch_size: int = field(default_factory=lambda: _env_int("AI_BATCH_SIZE", 10))
    ai_delay_ms: int = field(default_factory=lambda: _env_int("AI_DELAY_MS", 1000))


@dataclass
class StorageConfig:
    database_url: str = field(
        default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///data/catalog.db")
    )


@dataclass
class AppConfig:
    llm: LLMApiConfig = field(default_factory=LLMApiConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


# Глобальный объект конфига: `from reclassifier.config import config`
config = AppConfig()
