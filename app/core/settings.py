"""Unified settings for fileanalyse-api."""

import tomllib
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


def read_pyproject(pyproject_path: Path) -> dict:
    """Read pyproject.toml into a dict."""
    with pyproject_path.open("rb") as file_handle:
        return tomllib.load(file_handle)


def get_version(base_dir: Path) -> str:
    """Get version from git tags or fallback to package metadata."""
    try:
        import git

        repo = git.Repo(base_dir, search_parent_directories=True)
        latest_tag = max(repo.tags, key=lambda t: t.commit.committed_datetime, default=None)
        return str(latest_tag) if latest_tag else "0.0.0"
    except Exception:
        try:
            import importlib.metadata

            return importlib.metadata.version("fileanalyse-api")
        except Exception:
            return "0.0.0"


class Settings(BaseSettings):
    """Unified settings for fileanalyse-api service."""

    DEBUG: bool = True
    ENVIRONMENT: Literal["DEV", "PROD"] = "DEV"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # ClassVar to prevent Pydantic from trying to load from env
    BASE_DIR: ClassVar[Path] = Path(__file__).parent.parent.parent
    PROJECT: ClassVar[dict] = read_pyproject(BASE_DIR / "pyproject.toml")
    API_NAME: ClassVar[str] = PROJECT.get("project", {}).get("name", "fileanalyse-api")
    API_DESCRIPTION: ClassVar[str] = PROJECT.get("project", {}).get("description", "File metadata microservice")
    API_VERSION: ClassVar[str] = get_version(BASE_DIR)

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3000
    CORS_ORIGINS: list[str] = ["*"]

    # Intake
    UPLOAD_FIELD: str = "upfile"
    MAX_FILE_SIZE: int = Field(default=1 * MIB, gt=0)
    MULTIPART_OVERHEAD: int = Field(default=16 * 1024, ge=0)
    CHUNK_SIZE: int = Field(default=64 * 1024, gt=0)
    # None keeps the built-in allow-list; env value is a JSON array
    ALLOWED_MIME_TYPES: list[str] | None = None

    # Storage
    STORAGE_BACKEND: Literal["none", "memory", "disk"] = "none"
    STORAGE_PATH: Path = BASE_DIR / "data" / "uploads"
    STORAGE_BUCKET: str = "uploads"

    @property
    def api_url(self) -> str:
        return f"http://{self.API_HOST}:{self.API_PORT}"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()  # type: ignore
