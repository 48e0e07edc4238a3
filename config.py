from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    # Application settings
    app_name: str = "Transaction Ledger Engine"
    app_version: str = "1.0.0"
    environment: str = "production"  # development, production or testing

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # json or text

    # Ingestion settings
    input_encoding: str = "utf-8"
    amount_scale: int = 4  # fractional digits kept on ingestion
    progress_interval: int = 1_000_000  # 0 disables progress lines

    model_config = SettingsConfigDict(
        env_prefix="TX_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Environment-specific configurations
class DevelopmentSettings(Settings):
    log_level: str = "DEBUG"
    progress_interval: int = 10_000


class ProductionSettings(Settings):
    log_level: str = "INFO"
    log_format: str = "json"


class TestingSettings(Settings):
    log_level: str = "WARNING"  # Reduce noise in tests
    progress_interval: int = 0


def get_settings_for_environment(env: str = "production") -> Settings:
    """Get settings for specific environment."""
    settings_map = {
        "development": DevelopmentSettings,
        "production": ProductionSettings,
        "testing": TestingSettings,
    }

    settings_class = settings_map.get(env.lower(), Settings)
    return settings_class()
