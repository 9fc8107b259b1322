from functools import lru_cache
from typing import Dict

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoringPolicy(BaseModel):
    """Weights, tiers and cutoffs used by the matching engine."""

    skill_weight: float = 60
    experience_weight: float = 25
    time_weight: float = 15
    alternative_slot_bonus: float = 3

    # Tier floors on the 0..skill_weight scale
    tier_excellent: float = 40
    tier_good: float = 20
    tier_poor: float = 5
    min_skill_threshold: float = 20

    experience_full_gap_years: float = 2
    experience_partial_gap_years: float = 5
    experience_partial_ratio: float = 0.5

    # Skill points: category part plus specific-skill part, each capped
    category_exact_points: float = 30
    category_related_points: float = 10
    category_related_cap: float = 20
    skill_exact_points: float = 10
    skill_partial_points: float = 5
    skill_points_cap: float = 30

    time_match_mode: str = Field("exact", pattern="^(exact|tolerance)$")
    time_match_tolerance_minutes: int = 60

    @property
    def tier_floors(self) -> Dict[str, float]:
        return {
            "excellent": self.tier_excellent,
            "good": self.tier_good,
            "poor": self.tier_poor,
        }


class AppConfig(BaseSettings):
    # === App Metadata ===
    PROJECT_NAME: str = "InterviewerMatching"
    ENVIRONMENT: str = Field("dev")  # dev, staging, prod
    DEBUG_MODE: bool = Field(True)
    API_VERSION: str = "v1"

    # === Logging ===
    LOG_LEVEL: str = Field("INFO")
    USE_JSON_LOGGING: bool = Field(False)
    LOG_TO_FILE: bool = Field(False)
    LOG_DIR: str = Field("./logs")
    SERVICE_NAME: str = Field("interviewer-matching")
    SENTRY_DSN: str = Field("")

    @property
    def LOG_LEVEL_NUMERIC(self) -> int:
        import logging
        return getattr(logging, self.LOG_LEVEL.upper(), logging.INFO)

    # === Database (PostgreSQL or SQLite fallback) ===
    DB_HOST: str = Field("sqlite")
    DB_PORT: int = Field(5432)
    DB_USER: str = Field("postgres")
    DB_PASSWORD: str = Field("postgres")
    DB_NAME: str = Field("interviewer_matching")
    SQLITE_PATH: str = Field("./interviewer_matching.db")

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_HOST == "sqlite":
            return f"sqlite:///{self.SQLITE_PATH}"
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # === Scheduling ===
    SCHEDULING_TIMEZONE: str = Field("Asia/Kolkata")
    AVAILABILITY_HORIZON_DAYS: int = Field(14, ge=1, le=90)
    MAX_SLOTS_PER_INTERVIEWER: int = Field(6, ge=1)
    DEFAULT_SESSION_MINUTES: int = Field(60, ge=15, le=240)
    RESERVATION_TTL_MINUTES: int = Field(10, ge=1)
    CARVE_OUT_WEEKLY_TEMPLATE: bool = Field(True)

    # === Scoring ===
    SKILL_WEIGHT: float = 60
    EXPERIENCE_WEIGHT: float = 25
    TIME_WEIGHT: float = 15
    ALTERNATIVE_SLOT_BONUS: float = 3
    SKILL_TIER_EXCELLENT: float = 40
    SKILL_TIER_GOOD: float = 20
    SKILL_TIER_POOR: float = 5
    MIN_SKILL_THRESHOLD: float = 20
    EXPERIENCE_FULL_GAP_YEARS: float = 2
    EXPERIENCE_PARTIAL_GAP_YEARS: float = 5
    EXPERIENCE_PARTIAL_RATIO: float = 0.5
    CATEGORY_EXACT_POINTS: float = 30
    CATEGORY_RELATED_POINTS: float = 10
    CATEGORY_RELATED_CAP: float = 20
    SKILL_EXACT_POINTS: float = 10
    SKILL_PARTIAL_POINTS: float = 5
    SKILL_POINTS_CAP: float = 30
    TIME_MATCH_MODE: str = Field("exact", pattern="^(exact|tolerance)$")
    TIME_MATCH_TOLERANCE_MINUTES: int = Field(60, ge=0)

    @property
    def scoring_policy(self) -> ScoringPolicy:
        return ScoringPolicy(
            skill_weight=self.SKILL_WEIGHT,
            experience_weight=self.EXPERIENCE_WEIGHT,
            time_weight=self.TIME_WEIGHT,
            alternative_slot_bonus=self.ALTERNATIVE_SLOT_BONUS,
            tier_excellent=self.SKILL_TIER_EXCELLENT,
            tier_good=self.SKILL_TIER_GOOD,
            tier_poor=self.SKILL_TIER_POOR,
            min_skill_threshold=self.MIN_SKILL_THRESHOLD,
            experience_full_gap_years=self.EXPERIENCE_FULL_GAP_YEARS,
            experience_partial_gap_years=self.EXPERIENCE_PARTIAL_GAP_YEARS,
            experience_partial_ratio=self.EXPERIENCE_PARTIAL_RATIO,
            category_exact_points=self.CATEGORY_EXACT_POINTS,
            category_related_points=self.CATEGORY_RELATED_POINTS,
            category_related_cap=self.CATEGORY_RELATED_CAP,
            skill_exact_points=self.SKILL_EXACT_POINTS,
            skill_partial_points=self.SKILL_PARTIAL_POINTS,
            skill_points_cap=self.SKILL_POINTS_CAP,
            time_match_mode=self.TIME_MATCH_MODE,
            time_match_tolerance_minutes=self.TIME_MATCH_TOLERANCE_MINUTES,
        )

    # === Environment Shortcuts ===
    @property
    def IS_PROD(self) -> bool:
        return self.ENVIRONMENT.lower() == "prod"

    @property
    def IS_DEV(self) -> bool:
        return self.ENVIRONMENT.lower() == "dev"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> AppConfig:
    return AppConfig()


# Global config instance
settings = get_settings()
