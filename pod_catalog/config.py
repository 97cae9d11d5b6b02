from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "extra": "ignore",
        "env_prefix": "",
        "case_sensitive": False,
    }

    # Printify
    printify_api_token: str = ""
    printify_shop_id: str | None = None
    printify_base_url: str = "https://api.printify.com/v1"
    printify_debug: bool = False  # verbose request/response logging

    # Resilience
    request_timeout_seconds: float = 30.0
    catalog_timeout_seconds: float = 60.0
    max_retries: int = 3
    catalog_cache_ttl_seconds: float = 3600.0
    user_agent: str = "pod-catalog/0.1.0"

    # App
    environment: str = "development"
    log_level: str = "INFO"
    log_file: str = ""

    @field_validator("printify_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("max_retries")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        return max(v, 0)


settings = Settings()
