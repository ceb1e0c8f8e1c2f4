"""
SessionGraph Configuration Management
Handles application and question-scoring settings using Pydantic Settings
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Dict, List

from sessiongraph.schemas import ActionCategory


DEFAULT_URGENCY_SCORES: Dict[str, float] = {
    ActionCategory.RED_FLAG.value: 10,
    ActionCategory.DRUG_INTERACTION.value: 9,
    ActionCategory.CONTRAINDICATION.value: 9,
    ActionCategory.ALLERGY.value: 8,
    ActionCategory.WARNING.value: 7,
    ActionCategory.RISK_ASSESSMENT.value: 6,
    ActionCategory.DIAGNOSTIC_CLARIFICATION.value: 5,
    ActionCategory.SYMPTOM_EXPLORATION.value: 4,
    ActionCategory.TREATMENT_SELECTION.value: 4,
}


class ScoringSettings(BaseModel):
    """Weights and scaling constants for question prioritization"""

    urgency_scores: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_URGENCY_SCORES)
    )
    default_urgency: float = Field(default=3, ge=0, le=10)

    urgency_weight: float = Field(default=0.4)
    relevance_weight: float = Field(default=0.4)
    priority_weight: float = Field(default=0.2)

    probability_multiplier: float = Field(default=10, gt=0)
    priority_inversion: float = Field(default=11)
    default_priority: int = Field(default=5, ge=1, le=10)

    @field_validator("urgency_scores")
    @classmethod
    def validate_urgency_scores(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Urgency scores live on a 0-10 scale"""
        for category, score in v.items():
            if not 0 <= score <= 10:
                raise ValueError(f"Urgency score for '{category}' must be within 0-10, got {score}")
        return v

    @model_validator(mode="after")
    def validate_weights(self) -> "ScoringSettings":
        """Weights must be non-negative"""
        for name in ("urgency_weight", "relevance_weight", "priority_weight"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        return self


class Settings(BaseSettings):
    """Application settings with validation"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        validate_default=True
    )

    # Environment
    environment: str = Field(default="development", pattern="^(development|production|test)$")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # API Server
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000, ge=1, le=65535)
    api_reload: bool = Field(default=True)

    # Security
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )
    cors_allow_credentials: bool = Field(default=True)

    # Session store
    max_sessions: int = Field(default=100, ge=1, le=10000)

    # Question scoring
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        """Check if running in test"""
        return self.environment == "test"


# Global settings instance
settings = Settings()
