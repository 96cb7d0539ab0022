from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./storefront.db"

    # Application
    app_name: str = "Storefront Variant Engine"
    app_version: str = "1.0.0"
    environment: str = "development"
    api_prefix: str = "/api"
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Variant engine limits
    max_variant_combinations: int = 100  # Bulk generation ceiling
    variant_batch_size: int = 100  # Proposals persisted per transaction

    # Spreadsheet import
    import_header_rows: int = 1  # First data row is header_rows + 1

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
