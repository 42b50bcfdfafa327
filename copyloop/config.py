"""
Centralized Configuration for the CopyLoop backend.

All environment variables are managed here using Pydantic Settings.

Usage:
    from copyloop.config import settings

    db_url = settings.database_url
    providers = settings.evaluation_provider_list
"""

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings


DEFAULT_TEMPLATES_DIR = str(Path(__file__).parent / "templates" / "niches")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables are prefixed with COPYLOOP_ where applicable.
    See .env.example for all available options.
    """

    # =============================================================================
    # Application Environment
    # =============================================================================

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
        validation_alias="COPYLOOP_ENVIRONMENT"
    )

    testing: bool = Field(
        default=False,
        description="Enable testing mode",
        validation_alias="TESTING"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        validation_alias="COPYLOOP_LOG_LEVEL"
    )

    allowed_origins: str = Field(
        default="*",
        description="CORS allowed origins (comma-separated or '*')",
        validation_alias="COPYLOOP_ALLOWED_ORIGINS"
    )

    # =============================================================================
    # Database
    # =============================================================================

    database_url: str = Field(
        default="sqlite:///./copyloop.db",
        description="Database connection URL (PostgreSQL or SQLite)",
        validation_alias="DATABASE_URL"
    )

    # =============================================================================
    # Templates
    # =============================================================================

    templates_dir: str = Field(
        default=DEFAULT_TEMPLATES_DIR,
        description="Directory holding <niche>.json prompt template files",
        validation_alias="COPYLOOP_TEMPLATES_DIR"
    )

    # =============================================================================
    # Learning Thresholds
    # =============================================================================

    pattern_min_rating: int = Field(
        default=70,
        ge=1,
        le=100,
        description="Default minimum overall rating for pattern extraction",
        validation_alias="COPYLOOP_PATTERN_MIN_RATING"
    )

    # =============================================================================
    # LLM Providers (AI evaluation)
    # =============================================================================

    evaluation_providers: str = Field(
        default="openai,anthropic",
        description="Comma-separated evaluator providers (openai, anthropic, mock)",
        validation_alias="COPYLOOP_EVALUATION_PROVIDERS"
    )

    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key",
        validation_alias="OPENAI_API_KEY"
    )

    openai_evaluation_model: str = Field(
        default="gpt-4o",
        description="OpenAI model used to evaluate content",
        validation_alias="OPENAI_EVALUATION_MODEL"
    )

    anthropic_api_key: Optional[str] = Field(
        default=None,
        description="Anthropic API key",
        validation_alias="ANTHROPIC_API_KEY"
    )

    anthropic_evaluation_model: str = Field(
        default="claude-3-5-sonnet-20241022",
        description="Anthropic model used to evaluate content",
        validation_alias="ANTHROPIC_EVALUATION_MODEL"
    )

    evaluation_max_tokens: int = Field(
        default=1500,
        description="Max tokens for an evaluation response",
        validation_alias="EVALUATION_MAX_TOKENS"
    )

    # =============================================================================
    # Rate Limiting
    # =============================================================================

    rate_limit_writes: str = Field(
        default="60/minute",
        description="slowapi limit for rating/preference writes",
        validation_alias="COPYLOOP_RATE_LIMIT_WRITES"
    )

    rate_limit_evaluations: str = Field(
        default="10/minute",
        description="slowapi limit for LLM-backed evaluation runs",
        validation_alias="COPYLOOP_RATE_LIMIT_EVALUATIONS"
    )

    # =============================================================================
    # Computed Properties
    # =============================================================================

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.testing

    @property
    def evaluation_provider_list(self) -> List[str]:
        """Configured evaluator provider names, normalized."""
        return [p.strip().lower() for p in self.evaluation_providers.split(",") if p.strip()]

    # =============================================================================
    # Pydantic Model Configuration
    # =============================================================================

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =============================================================================
    # Field Validators
    # =============================================================================

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        """Convert postgres:// to postgresql:// for SQLAlchemy compatibility."""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is uppercase and valid."""
        v = v.upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        """Ensure environment is lowercase."""
        return v.lower() if isinstance(v, str) else v


# =============================================================================
# Global Settings Instance
# =============================================================================

settings = Settings()


__all__ = ["settings", "Settings"]
