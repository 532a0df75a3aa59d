from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./portal.db"

    # If DEV and you hit SSL cert issues on Windows, set DB_SSL_VERIFY=false in .env
    DB_SSL_VERIFY: bool = True

    SECRET_KEY: str = "change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    ENV: str = "dev"  # "dev" or "prod"

    # --- EMAIL SETTINGS ---
    NOTIFY_BY_EMAIL: bool = True
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 2525  # Default to Mailtrap port
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    EMAILS_FROM_EMAIL: str = "no-reply@university.edu"
    EMAILS_FROM_NAME: str = "University Portal"
    FRONTEND_URL: str = "http://localhost:5173" # For links in emails

    # Application types that always go through the Dean
    DEAN_REQUIRED_TYPES: list[str] = ["SCHOLARSHIP", "ACADEMIC_EXCEPTION"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
