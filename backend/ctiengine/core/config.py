from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "cti-engine"
    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"

    # Database (relationship graph storage)
    DATABASE_URL: str = "sqlite:///./cti_engine.db"

    # Noise filtering / scoring
    NOISE_RELEVANCE_THRESHOLD: float = 0.3
    ALERT_PRIORITY_THRESHOLD: float = 0.6
    CRITICAL_SEVERITY_THRESHOLD: float = 0.8

    # Relationship graph
    SIMILARITY_THRESHOLD: float = 0.6

    # Pattern detection (counts must be strictly greater than these)
    CATEGORY_CLUSTER_THRESHOLD: int = 3
    TEMPORAL_CLUSTER_THRESHOLD: int = 3
    SOURCE_CORRELATION_THRESHOLD: int = 2
    ESCALATION_MIN_COUNT: int = 2
    ESCALATION_STEP: float = 0.1

    # Monitoring
    ALERT_CACHE_CAPACITY: int = 1000

    # Feed ingestion
    FEED_TIMEOUT_SECONDS: float = 30.0
    FEED_USER_AGENT: str = "Cyber-Threat-Intelligence-Platform/1.0"

    # Alerting / Webhooks
    SLACK_ALERT_WEBHOOK_URL: str | None = None
    GENERIC_ALERT_WEBHOOK_URL: str | None = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
