from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 3000

    jwt_secret: str = "dev_secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24
    bcrypt_rounds: int = 10

    # JSON document holding users, chats and messages
    database_path: str = "db.json"

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_timeout: Optional[float] = None
    completion_max_tokens: int = 800
    history_limit: int = 30
    system_prompt: str = "Você é a Lucky.ia — assistente útil, educada e objetiva."

    rate_limit_window_ms: int = 60000
    rate_limit_max: int = 60

    static_dir: str = "frontend"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
