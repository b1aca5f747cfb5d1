from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./shopdesk.db"

    # JWT Authentication (tokens are issued by the identity provider)
    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    # Push gateway
    PUSH_API_URL: str = "https://fcm.googleapis.com/fcm/send"
    PUSH_SERVER_KEY: str = ""
    PUSH_TIMEOUT_SECONDS: float = 30.0

    # Order lifecycle
    STRICT_STATUS_TRANSITIONS: bool = False
    CANCEL_STAMPS_COMPLETED_AT: bool = True

    # Revenue
    REVENUE_TIMEZONE: str = "UTC"
    REVENUE_COUNTER_MODE: str = "transition"  # or "accumulate"

    APP_NAME: str = "Shop Dashboard"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
