from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field(default="sqlite:///./catalog.db", alias="DATABASE_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Placeholder principal until an identity provider is wired in
    default_actor: str = Field(default="SYSTEM", alias="DEFAULT_ACTOR")

    # Off-path observer pool
    observer_pool_max_workers: int = Field(default=5, alias="OBSERVER_POOL_MAX_WORKERS")
    observer_pool_queue_capacity: int = Field(default=25, alias="OBSERVER_POOL_QUEUE_CAPACITY")
    logging_observer_async: bool = Field(default=True, alias="LOGGING_OBSERVER_ASYNC")

    # Stock alert thresholds
    stock_low_threshold: int = Field(default=5, alias="STOCK_LOW_THRESHOLD")
    stock_critical_threshold: int = Field(default=1, alias="STOCK_CRITICAL_THRESHOLD")

    # Discounts
    vip_bonus_enabled: bool = Field(default=True, alias="VIP_BONUS_ENABLED")

    # Optional fixed season for the seasonal discount rule (e.g. "SUMMER")
    discount_season: str | None = Field(default=None, alias="DISCOUNT_SEASON")

    @field_validator("discount_season", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for optional string fields."""
        if v == "":
            return None
        return v

    @field_validator("observer_pool_max_workers", "observer_pool_queue_capacity", mode="after")
    @classmethod
    def positive_pool_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("observer pool sizes must be at least 1")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
