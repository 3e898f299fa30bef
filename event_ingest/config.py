from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    SERVICE_HOST: str = "0.0.0.0"
    SERVICE_PORT: int = 8080
    MAX_EVENT_SIZE: int = 1 << 20  # 1 MiB
    # Seconds a connection may take to deliver headers before it is dropped
    READ_HEADER_TIMEOUT: float = 5.0
    LOG_JSON: bool = True
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
