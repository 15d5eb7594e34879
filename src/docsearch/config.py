from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Required for the production pipeline (checked in create_pipeline,
    # not here, so the CLI `version` command works without a key)
    openai_api_key: str = ""
    embedding_model: str = "text-embedding-3-small"
    embedding_dimension: int = 1536

    # SQLite file holding documents + chunks
    db_path: str = "db_data/doc_search.db"

    # Chunking
    chunk_size: int = 1000
    overlap: int = 100

    # Network ceiling for the embedding provider and URL fetches (seconds)
    request_timeout: float = 30.0

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 8000

    # Generic environment (debug/prod)
    app_env: str = "local"  # or "production"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    @model_validator(mode="after")
    def _check_chunking(self) -> "Settings":
        if self.chunk_size <= 0:
            raise ValueError(f"CHUNK_SIZE must be positive, got {self.chunk_size}")
        if self.overlap < 0:
            raise ValueError(f"OVERLAP must be non-negative, got {self.overlap}")
        if self.overlap >= self.chunk_size:
            raise ValueError(
                f"OVERLAP must be less than CHUNK_SIZE "
                f"(overlap: {self.overlap}, chunk_size: {self.chunk_size})"
            )
        return self

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the configured SQLite file."""
        return f"sqlite:///{self.db_path}"

    def ensure_db_directory(self) -> Path:
        """Create the parent directory of the database file if needed."""
        parent = Path(self.db_path).expanduser().resolve().parent
        parent.mkdir(parents=True, exist_ok=True)
        return parent


@lru_cache
def get_settings() -> Settings:
    """Settings singleton, environment read once."""
    return Settings()
