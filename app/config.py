import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

# Explicitly load .env from project root (parent of app/)
ROOT_DIR = Path(__file__).parent.parent
load_dotenv(ROOT_DIR / ".env")


class Settings(BaseModel):
    environment: str = "dev"
    database_url: str = f"sqlite:///{ROOT_DIR / 'shortlinks_dev.db'}"
    public_base_url: str = "http://localhost:8000"
    s3_bucket: str | None = None
    s3_region: str | None = None
    s3_endpoint: str | None = None
    s3_access_key_id: str | None = None
    s3_secret_access_key: str | None = None
    export_public_url: str | None = None
    log_level: str = "INFO"


def load_settings() -> Settings:
    environment = os.getenv("ENVIRONMENT", "dev")

    # Dev: SQLite (zero config), Prod: DATABASE_URL is mandatory
    database_url = os.getenv("DATABASE_URL")
    if environment == "prod" and not database_url:
        raise RuntimeError("DATABASE_URL must be set in production")

    values = {
        "environment": environment,
        "database_url": database_url,
        "public_base_url": os.getenv("PUBLIC_BASE_URL"),
        "s3_bucket": os.getenv("S3_BUCKET"),
        "s3_region": os.getenv("S3_REGION"),
        "s3_endpoint": os.getenv("S3_ENDPOINT"),
        "s3_access_key_id": os.getenv("S3_ACCESS_KEY_ID"),
        "s3_secret_access_key": os.getenv("S3_SECRET_ACCESS_KEY"),
        "export_public_url": os.getenv("EXPORT_PUBLIC_URL"),
        "log_level": os.getenv("LOG_LEVEL"),
    }
    return Settings(**{k: v for k, v in values.items() if v})
