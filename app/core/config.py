from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Library Borrowing API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/library_db"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    TEST_DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/library_test_db"

    # Listener
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
