import logging
import os
from enum import Enum

from pydantic_settings import BaseSettings
from starlette.config import Config

logger = logging.getLogger(__name__)

current_file_dir = os.path.dirname(os.path.realpath(__file__))
project_root = os.path.abspath(os.path.join(current_file_dir, "..", "..", "..", ".."))

env_paths = [
    "/code/.env",
    os.path.join(project_root, ".env"),
    "/.env",
]

env_path = next((path for path in env_paths if os.path.isfile(path)), env_paths[0])
logger.info(f"Using environment file at: {env_path}")

config = Config(env_path)


class EnvironmentOption(str, Enum):
    """Environment options for the application."""

    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"
    LOCAL = "local"


class StoreBackend(str, Enum):
    """Where exam material chunks are kept."""

    MEMORY = "memory"
    DATABASE = "database"


class EnvironmentSettings(BaseSettings):
    """Environment-related settings."""

    ENVIRONMENT: EnvironmentOption = config("ENVIRONMENT", default=EnvironmentOption.DEVELOPMENT, cast=EnvironmentOption)


class DatabaseSettings(BaseSettings):
    """Database-related settings."""

    POSTGRES_USER: str = config("POSTGRES_USER", default="postgres")
    POSTGRES_PASSWORD: str = config("POSTGRES_PASSWORD", default="postgres")
    POSTGRES_SERVER: str = config("POSTGRES_SERVER", default="localhost")
    POSTGRES_PORT: int = config("POSTGRES_PORT", default=5432, cast=int)
    POSTGRES_DB: str = config("POSTGRES_DB", default="postgres")
    POSTGRES_ASYNC_PREFIX: str = config("POSTGRES_ASYNC_PREFIX", default="postgresql+asyncpg://")

    POSTGRES_POOL_SIZE: int = config("POSTGRES_POOL_SIZE", default=20, cast=int)
    POSTGRES_MAX_OVERFLOW: int = config("POSTGRES_MAX_OVERFLOW", default=0, cast=int)

    @property
    def DATABASE_URL(self) -> str:
        """Get the full database URL."""
        return (
            f"{self.POSTGRES_ASYNC_PREFIX}{self.POSTGRES_USER}:"
            f"{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:"
            f"{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


class EmbeddingSettings(BaseSettings):
    """Embedding model settings."""

    EMBEDDING_MODEL_NAME: str = config("EMBEDDING_MODEL_NAME", default="all-mpnet-base-v2")
    EMBEDDING_DIMENSION: int = config("EMBEDDING_DIMENSION", default=768, cast=int)
    EMBEDDING_BATCH_SIZE: int = config("EMBEDDING_BATCH_SIZE", default=32, cast=int)
    EMBEDDING_TIMEOUT_SECONDS: float = config("EMBEDDING_TIMEOUT_SECONDS", default=30.0, cast=float)


class ChunkingSettings(BaseSettings):
    """Default segmentation parameters for uploaded materials."""

    CHUNK_SIZE: int = config("CHUNK_SIZE", default=800, cast=int)
    CHUNK_OVERLAP: int = config("CHUNK_OVERLAP", default=200, cast=int)
    CHUNK_SEPARATOR: str = config("CHUNK_SEPARATOR", default="\n\n")


class SearchSettings(BaseSettings):
    """Default similarity search and context assembly parameters."""

    MATCH_THRESHOLD: float = config("MATCH_THRESHOLD", default=0.5, cast=float)
    MATCH_COUNT: int = config("MATCH_COUNT", default=5, cast=int)
    CONTEXT_MAX_CHARS: int = config("CONTEXT_MAX_CHARS", default=0, cast=int)  # 0 disables the limit
    CONTEXT_CLEAN_NOISE: bool = config("CONTEXT_CLEAN_NOISE", default=False, cast=bool)


class StoreSettings(BaseSettings):
    """Material store settings."""

    MATERIAL_STORE_BACKEND: StoreBackend = config("MATERIAL_STORE_BACKEND", default=StoreBackend.MEMORY, cast=StoreBackend)


class LoggingSettings(BaseSettings):
    """Centralized logging configuration settings."""

    LOG_LEVEL: str = config("LOG_LEVEL", default="INFO")
    LOG_FORMAT: str = config("LOG_FORMAT", default="structured")  # "simple", "detailed", "structured", "json"

    LOG_CONSOLE_ENABLED: bool = config("LOG_CONSOLE_ENABLED", default=True, cast=bool)
    LOG_FILE_ENABLED: bool = config("LOG_FILE_ENABLED", default=False, cast=bool)
    LOG_FILE_PATH: str = config("LOG_FILE_PATH", default="logs/exam_rag.log")
    LOG_FILE_MAX_SIZE: int = config("LOG_FILE_MAX_SIZE", default=10485760, cast=int)
    LOG_FILE_BACKUP_COUNT: int = config("LOG_FILE_BACKUP_COUNT", default=5, cast=int)

    LOG_CORRELATION_ID: bool = config("LOG_CORRELATION_ID", default=True, cast=bool)
    LOG_DEVELOPMENT_VERBOSE: bool = config("LOG_DEVELOPMENT_VERBOSE", default=True, cast=bool)
    LOG_PRODUCTION_OPTIMIZE: bool = config("LOG_PRODUCTION_OPTIMIZE", default=True, cast=bool)

    @property
    def LOG_LEVEL_INT(self) -> int:
        """Convert string log level to integer."""
        level_map = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return level_map.get(self.LOG_LEVEL.upper(), logging.INFO)


class Settings(
    EnvironmentSettings,
    DatabaseSettings,
    EmbeddingSettings,
    ChunkingSettings,
    SearchSettings,
    StoreSettings,
    LoggingSettings,
):
    """Main settings class that combines all setting categories."""

    pass


settings = Settings()


def get_settings() -> Settings:
    """Get application settings.

    Returns:
        The application settings.
    """
    return settings
