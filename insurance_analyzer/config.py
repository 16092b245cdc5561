"""
Application configuration loaded from environment variables / .env file.
"""
import warnings
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ── App ──
    APP_NAME: str = "Insurance Analyzer API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # ── Database ──
    DATABASE_URL: str = "sqlite:///./insurance_analyzer.db"

    # ── AWS S3 ──
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "us-east-1"
    S3_BUCKET_NAME: str = ""
    S3_PRESIGNED_URL_EXPIRES: int = 3600

    # ── OpenAI ──
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.3
    OPENAI_MAX_TOKENS: int = 4000

    # ── Stripe ──
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_PRICE_AI_ANALYZER: str = ""
    STRIPE_PRICE_AI_ANALYZER_PLUS: str = ""
    HUMAN_REVIEW_PRICE_CENTS: int = 15000

    # ── Resend ──
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "Insurance Analyzer <onboarding@resend.dev>"

    # ── Sessions / Auth ──
    SECRET_KEY: str = "insurance-analyzer-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    RESET_TOKEN_EXPIRE_MINUTES: int = 60
    SESSION_COOKIE_NAME: str = "session_token"
    SESSION_COOKIE_SECURE: bool = False

    # ── Frontend / CORS ──
    FRONTEND_ORIGIN: str = "http://localhost:5173"
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
    ]

    # ── Uploads ──
    MAX_FILE_SIZE_MB: int = 10

    # ── Rate Limiting ──
    RATE_LIMIT_DEFAULT: str = "100/minute"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",          # ignore unknown vars in .env
    )


def warn_if_placeholder_secret(config: Settings) -> bool:
    """
    Sessions and password-reset links are signed with SECRET_KEY. The shipped
    value is public, so only DEBUG runs may keep it.
    """
    if config.DEBUG or config.SECRET_KEY != Settings.model_fields["SECRET_KEY"].default:
        return False
    warnings.warn(
        "SECRET_KEY still has its placeholder value; session cookies and "
        "password-reset tokens can be forged. Set SECRET_KEY in the environment or .env.",
        RuntimeWarning,
        stacklevel=2,
    )
    return True


settings = Settings()
warn_if_placeholder_secret(settings)
