from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///socialsync.db"
    secret_key: str = "change-me-in-production"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    encryption_key: str = "change-me-in-production"
    admin_username: str = "admin"
    admin_password: str = "admin"
    http_timeout_seconds: float = 30.0
    scheduler_enabled: bool = True
    log_level: str = "INFO"

    class Config:
        env_prefix = "SOCIALSYNC_"


settings = Settings()
