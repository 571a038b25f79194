from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):

    DATABASE_URL: str = "sqlite+aiosqlite:///./intranet.db"
    REDIS_URL: str = "redis://localhost:6379/0"

    SESSION_SECRET: str = "arl-session-secret-change-in-production"
    SESSION_TTL_DAYS: int = 7
    SESSION_COOKIE_NAME: str = "__arl_session"
    TOKEN_HASH_ALGO: str = "sha256"

    OTP_LENGTH: int = 6
    OTP_EXPIRY_MINUTES: int = 5
    OTP_MAX_ATTEMPTS: int = 3
    OTP_COOLDOWN_SECONDS: int = 60
    OTP_ROUTE_LIMIT: int = 10       # requests per client ip per window on the otp routes
    OTP_ROUTE_WINDOW: int = 300

    IP_HASH_SALT: str = "arl-suggestion-salt"
    SUGGESTION_MIN_LENGTH: int = 10
    SUGGESTION_MAX_LENGTH: int = 2000
    SUGGESTION_RATE_LIMIT_MAX: int = 5
    SUGGESTION_RATE_LIMIT_WINDOW: int = 3600

    SMS_API_KEY: Optional[str] = None
    SMS_SENDER_ID: str = "ARL"
    SMS_BASE_URL: str = "https://api.smsonlinegh.com/v4/message/sms/send"
    SMS_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"
        extra="ignore"

config_settings = Settings()
