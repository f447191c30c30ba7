"""
Snake Arrow Puzzle - Configuration

Settings via environment variables (or a local .env file).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from functools import lru_cache
from typing import Literal


class Settings(BaseSettings):
    """Application settings."""

    # App
    APP_NAME: str = "Snake Arrow Puzzle"
    DEBUG: bool = False
    API_PREFIX: str = "/api/v1"
    ENVIRONMENT: Literal["development", "production"] = "development"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Board
    BOARD_COLS: int = 30
    BOARD_ROWS: int = 20
    CELL_SIZE: int = 30  # px
    BASE_THICKNESS: int = 16  # px

    # Solver
    SOLVER_MAX_PIECES: int = 20

    # Generator
    MAX_GEN_ATTEMPTS: int = 700
    FALLBACK_GEN_ATTEMPTS: int = 1000
    PLACEMENT_TRIES: int = 180
    EDGE_BUFFER_PX: int = 60
    DEFAULT_COUNT: int = 14
    DEFAULT_MIN_LEN: int = 2
    DEFAULT_MAX_LEN: int = 20

    @field_validator("BOARD_COLS", "BOARD_ROWS", "CELL_SIZE", "BASE_THICKNESS")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"board dimensions must be positive, got: {value}")
        return value

    @field_validator("SOLVER_MAX_PIECES")
    @classmethod
    def validate_solver_cap(cls, value: int) -> int:
        # Bitmask search is exponential; keep the cap sane.
        if not 1 <= value <= 24:
            raise ValueError(f"SOLVER_MAX_PIECES must be within 1..24, got: {value}")
        return value

    @property
    def cors_origins_list(self) -> list[str]:
        """Split CORS_ORIGINS into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Return settings (cached)."""
    return Settings()


settings = get_settings()
