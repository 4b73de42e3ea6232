from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = Field(default="sqlite:///./userhub.db")
    app_name: str = "UserHub"
    secret_key: str = Field(default="dev-change-me")
    session_cookie: str = "userhub_session"
    per_page: int = Field(default=30, ge=1)
    # bcrypt cost factor; lower it in tests to keep hashing fast
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    log_level: str = "INFO"
    default_admin_email: str = "admin@userhub.local"
    default_admin_password: str = "ChangeMe123!"
    default_admin_name: str = "UserHub Admin"
    seed_admin: bool = True


settings = Settings()
