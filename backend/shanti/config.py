# backend configuration
# loads env vars for mongodb, jwt, clinic timezone and the analytics stream

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# load .env from project root
load_dotenv(Path(__file__).parent.parent.parent / ".env")


class Settings(BaseSettings):
    # mongodb
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "shanti_schedule_db")

    # jwt auth (tokens are issued by the identity provider, we only verify them)
    JWT_SECRET: str = os.getenv("JWT_SECRET", "shanti-dev-secret-change-in-production")
    JWT_ALGORITHM: str = "HS256"

    # cors
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # analytics, iana zone name used for "today" and hourly buckets
    CLINIC_TIMEZONE: str = os.getenv("CLINIC_TIMEZONE", "UTC")
    RECENT_ACTIVITY_DAYS: int = 7
    RECENT_ACTIVITY_LIMIT: int = 10

    # live analytics stream
    STREAM_KEEPALIVE_SECONDS: float = 25.0
    STREAM_QUEUE_SIZE: int = 100

    # seed script
    SEED_OWNER_ID: str = os.getenv("SEED_OWNER_ID", "")

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
