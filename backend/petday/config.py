"""Application configuration."""
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )

    # App settings
    app_name: str = "PetDay Curator"
    debug: bool = False

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Curation pipeline
    write_debug_json: bool = False  # Dump stage decisions for every run
    debug_dir: Path = Path("./data/debug")

    # Frontend
    frontend_url: str = "http://localhost:5173"


settings = Settings()
