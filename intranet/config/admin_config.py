from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "dev"                # "dev" / "staging" / "prod"
    ENABLE_ADMIN: bool = True      # mounts the /admin back office routers
    ENABLE_METRICS: bool = False
    SERVICE_NAME: str = "arl-intranet"
    TRUST_FORWARDED_FOR: bool = True   # behind the reverse proxy X-Forwarded-For carries the client ip

    class Config:
        env_file = ".env"
        extra="ignore"

admin_config = Settings()
