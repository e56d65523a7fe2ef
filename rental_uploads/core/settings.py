"""Unified settings for rental-uploads."""

import tomllib
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def read_pyproject(pyproject_path: Path) -> dict:
    """Read pyproject.toml into a dict, empty when the file is missing."""
    if not pyproject_path.is_file():
        return {}
    with pyproject_path.open("rb") as file_handle:
        return tomllib.load(file_handle)


def get_version(base_dir: Path) -> str:
    """Get version from git tags or fallback to package metadata."""
    try:
        import git

        repo = git.Repo(base_dir, search_parent_directories=True)
        latest_tag = max(repo.tags, key=lambda t: t.commit.committed_datetime, default=None)
        if latest_tag:
            return str(latest_tag)
    except Exception:
        pass
    try:
        import importlib.metadata

        return importlib.metadata.version("rental-uploads")
    except Exception:
        return "0.0.0"


class Settings(BaseSettings):
    """Unified settings for the rental-uploads service."""

    DEBUG: bool = True
    ENVIRONMENT: Literal["DEV", "PROD"] = "DEV"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # ClassVar to prevent Pydantic from trying to load from env
    BASE_DIR: ClassVar[Path] = Path(__file__).parent.parent.parent
    PROJECT: ClassVar[dict] = read_pyproject(BASE_DIR / "pyproject.toml")
    API_NAME: ClassVar[str] = PROJECT.get("project", {}).get("name", "rental-uploads")
    API_DESCRIPTION: ClassVar[str] = PROJECT.get("project", {}).get("description", "Rental uploads service")
    API_VERSION: ClassVar[str] = get_version(BASE_DIR)

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Uploads
    UPLOAD_ROOT: Path = BASE_DIR / "data" / "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    IMAGE_MAX_SIZE: int = Field(default=1024, gt=0)
    IMAGE_WEBP_QUALITY: int = Field(default=80, ge=1, le=100)

    # Workers
    MAX_WORKERS: int = 4

    @property
    def api_url(self) -> str:
        return f"http://{self.API_HOST}:{self.API_PORT}"

    @property
    def upload_root(self) -> Path:
        """Absolute upload root, independent of the working directory it was configured from."""
        return self.UPLOAD_ROOT.expanduser().absolute()

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()  # type: ignore
