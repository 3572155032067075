"""App settings, loaded from environment variables with defaults."""

import os
from typing import List
from dotenv import load_dotenv

load_dotenv()


class Settings:
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]
    CORS_EXTRA_ORIGINS: str = os.getenv("CORS_EXTRA_ORIGINS", "")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Clock hours (bedtime vs nap, day boundaries) are read in this zone for
    # timezone-aware timestamps. Naive timestamps are treated as already local.
    TIMEZONE: str = os.getenv("TIMEZONE", "UTC")

    # Age used when no profile is supplied
    DEFAULT_AGE_MONTHS: int = int(os.getenv("DEFAULT_AGE_MONTHS", "6"))


settings = Settings()
