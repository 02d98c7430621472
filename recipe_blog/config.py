from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """Settings read from the environment or a .env file in the project root."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    DATABASE_URL: str = Field(
        default="sqlite:///./recipes.db",
        description="SQLAlchemy database URL",
    )
    BASE_URL: str = Field(
        default="http://localhost:8000",
        description="Public site URL used for sitemap entries",
    )
    STATIC_DIR: Path = Field(default=PROJECT_ROOT / "static")
    TEMPLATES_DIR: Path = Field(default=PROJECT_ROOT / "templates")
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])
    LOG_LEVEL: str = Field(default="INFO")

    # compression targets for cover images
    UPLOAD_MAX_MB: float = Field(default=0.3, gt=0)
    UPLOAD_MAX_EDGE: int = Field(default=800, gt=0)

    @property
    def upload_dir(self) -> Path:
        return self.STATIC_DIR / "uploads"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
