"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Meal planning defaults
    default_dinners_per_week: int = 5
    max_dinners_per_week: int = 7
    default_servings_per_meal: int = 4
    weekend_start_day_index: int = 5  # Saturday (Monday = 0)
    candidates_to_score_per_slot: int = 10
    max_suggested_swaps: int = 3
    candidate_max_time_mins: int = 45  # Candidate pre-filter, looser than the hard filter

    # Scoring
    weeknight_max_time_mins: int = 40
    repetition_window_weeks: int = 3

    # Pricing
    pack_size_multiplier: float = 1.5
    minimum_item_price: float = 0.10
    mapped_price_max_age_days: int = 30
    scraped_price_max_age_days: int = 7
    user_report_max_age_days: int = 14
    user_report_min_count: int = 3

    # External product search
    api_monthly_limit: int = 1000
    api_cache_ttl_days: int = 30
    api_search_result_limit: int = 3
    api_enabled: bool = True

    # Reference data (optional overrides of the packaged datasets)
    product_catalog_path: str = ""
    recipe_library_path: str = ""

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = ""  # "json", "text", or empty to pick by environment
    allowed_origins: str = "http://localhost:3000,http://localhost:8000"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
