from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """
    Settings class to retrieve environment variables.
    """

    DATABASE_URL: str = "sqlite+aiosqlite:///./storefront.db"
    DB_ECHO: bool = False
    DB_CREATE_TABLES: bool = False     # create tables on startup (development only)

    API_VERSION: str = "v1"
    CORS_ORIGINS: List[str] = ["http://localhost", "http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    # Cart rules
    CART_MAX_ITEM_LIMIT: int = 10

    model_config = SettingsConfigDict(
        env_file='.env',
        extra='ignore',
    )


Config = Settings()
