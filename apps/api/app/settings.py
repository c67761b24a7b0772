from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=(".env", "apps/api/.env"),
        env_file_encoding="utf-8",
    )

    database_url: str = "sqlite:///./courtbot.db"
    queue_ttl_days: int = 10
    court_public_url: str = "https://courts.example.gov"
    queue_notify_on_expiry: bool = True
    store_timeout_seconds: float = 5.0
    sweep_interval_seconds: float = 86400.0
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_phone_number: str | None = None
    app_env: str = "development"
    log_level: str = "INFO"


settings = Settings()
