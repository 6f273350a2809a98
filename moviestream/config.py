from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional
import os

from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    mongo_uri: str
    jwt_secret: str
    mongo_db: str = "moviestream"
    jwt_expires_in_days: int = 7
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    google_client_id: str = ""
    cors_origins: List[str] = field(default_factory=list)
    app_env: str = "development"
    log_level: str = "INFO"
    page_size: int = 10

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


def _split(value: Optional[str]) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


def load_settings() -> Settings:
    mongo_uri = os.getenv("MONGO_URI") or os.getenv("MONGODB_URI")
    if not mongo_uri:
        raise EnvironmentError("❌ MONGO_URI not found in environment")

    jwt_secret = os.getenv("JWT_SECRET")
    if not jwt_secret:
        raise EnvironmentError("❌ JWT_SECRET not found in environment")

    return Settings(
        mongo_uri=mongo_uri,
        jwt_secret=jwt_secret,
        mongo_db=os.getenv("MONGO_DB", "moviestream"),
        jwt_expires_in_days=int(os.getenv("JWT_EXPIRES_IN_DAYS", "7")),
        stripe_secret_key=os.getenv("STRIPE_SECRET_KEY", ""),
        stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET", ""),
        google_client_id=os.getenv("GOOGLE_CLIENT_ID", ""),
        cors_origins=_split(os.getenv("CORS_ORIGINS", "http://localhost:49925")),
        app_env=os.getenv("APP_ENV", "development"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        page_size=int(os.getenv("PAGE_SIZE", "10")),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
