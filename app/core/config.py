from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "RentO Bidding API"
    # Comma-separated origins for CORS. If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    # Tokens are issued by the auth service; we only verify them.
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"

    # Bid intake queue (SQS)
    AWS_REGION: str = "ap-south-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    SQS_ENDPOINT_URL: str = ""  # e.g. http://localhost:4566 for localstack
    BID_QUEUE_URL: str = ""
    BID_QUEUE_POLL_SECONDS: float = 10.0
    BID_QUEUE_WAIT_SECONDS: int = 20

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "no-reply@rento.local"

    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = ""
    EMAIL_MAX_ATTEMPTS: int = 5

    FRONTEND_URL: str = "http://localhost:3000"

    # Business rules
    BID_CANCEL_CUTOFF_HOURS: int = 24
    FREE_KM_PER_DAY: int = 100
    EXTRA_KM_RATE: int = 10  # Rs per km over the daily allowance


settings = Settings()
