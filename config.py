"""
Configuration management for the finance tracker.
Uses pydantic-settings for type-safe, centralized configuration.
"""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses pydantic-settings for validation and type safety.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Database
    database_url: str = "sqlite:///finance_tracker.db"
    db_echo: bool = False

    # Seed data, loaded only into an empty store
    seed_csv_path: Optional[str] = "data/transactions.csv"

    # Local LLM Configuration (Ollama)
    ollama_enabled: bool = False
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.1:8b"
    ollama_timeout: Optional[float] = None  # None blocks until the server answers

    # HTTP API
    api_host: str = "127.0.0.1"
    api_port: int = 8080
    cors_origins: List[str] = ["http://localhost:5173"]

    log_level: str = "INFO"

    @property
    def is_ollama_configured(self) -> bool:
        """Check if the generative insight strategy should be used."""
        return all([
            self.ollama_enabled,
            self.ollama_base_url,
            self.ollama_model
        ])


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings
