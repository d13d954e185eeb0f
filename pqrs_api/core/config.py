from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # -------------------------
    # App
    # -------------------------
    app_name: str = "PQRS Backend"
    api_prefix: str = "/api"
    cors_allow_origins: str = "*"
    log_level: str = "INFO"
    log_json: bool = True

    # -------------------------
    # Supabase
    # -------------------------
    supabase_url: str
    supabase_service_key: str
    # anon key, only needed by public clients
    supabase_key: str | None = None

    # -------------------------
    # Tracking code lookup
    # -------------------------
    code_scan_limit: int = 1000

    # -------------------------
    # Storage (logos)
    # -------------------------
    upload_bucket: str = "uploads"
    logo_max_bytes: int = 5 * 1024 * 1024

    # -------------------------
    # Response query cache
    # -------------------------
    response_cache_ttl_seconds: int = 300

    # -------------------------
    # SMTP
    # -------------------------
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_secure: bool = False
    smtp_user: str | None = None
    smtp_pass: str | None = None
    smtp_from: str | None = None
    smtp_from_name: str = "PQRS"
    smtp_reply_to: str | None = None

    # -------------------------
    # Pydantic v2 config
    # -------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
