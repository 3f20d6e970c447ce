"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Content store (MySQL-protocol compatible) ──────────────────────────
    db_host: str = "db"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "wardrobe"
    # Full SQLAlchemy URL; takes precedence over the db_* fields when set
    database_url: Optional[str] = None

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"mysql+aiomysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # ── Redis (style-tag cache) ────────────────────────────────────────────
    redis_enabled: bool = True
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_style_tag_ttl: int = 3600      # seconds

    # ── Content-seeding service ────────────────────────────────────────────
    seed_service_url: str = "http://seed-service:8002"
    seed_timeout: float = 30.0
    # Bearer token sent when the caller did not forward one
    seed_service_token: Optional[str] = None

    # ── Feed shape ─────────────────────────────────────────────────────────
    feed_candidate_limit: int = 100      # raw posts fetched per load
    feed_display_limit: int = 50         # posts shown after filtering
    ad_interval: int = 6                 # one sponsored slot per N posts

    # ── Sessions ───────────────────────────────────────────────────────────
    feed_session_idle_ttl: float = 1800.0  # seconds before an idle viewer session is dropped
    feed_session_limit: int = 10000

    # ── Relevance weights (For You) ────────────────────────────────────────
    score_author_tag_weight: int = 3
    score_outfit_tag_weight: int = 2
    score_popular_boost: int = 2         # likes_count > 100
    score_rising_boost: int = 1          # likes_count > 50
    score_fresh_boost: int = 3           # younger than 1 day
    score_recent_boost: int = 1          # younger than 3 days

    # ── Mutations ──────────────────────────────────────────────────────────
    # False keeps the optimistic like/save state when the write fails
    rollback_failed_mutations: bool = False

    # ── Observability ──────────────────────────────────────────────────────
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "inspiration-feed"
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
