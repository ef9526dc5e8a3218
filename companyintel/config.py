"""
CompanyIntel — Configuration

All settings load from environment variables with safe defaults for development.
In production, set COMPANYINTEL_ENV=production to enforce required values.
"""
import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_SEC_USER_AGENT = "CompanyIntel/1.0 (ops@companyintel.local)"


class Settings:
    def __init__(self):
        self.ENVIRONMENT = os.getenv("COMPANYINTEL_ENV", "development")

        # === Upstream registries ===
        # EDGAR rejects requests without a descriptive User-Agent and contact address
        self.SEC_USER_AGENT = os.getenv("SEC_USER_AGENT", "")
        if not self.SEC_USER_AGENT:
            if self.is_production:
                raise RuntimeError("SEC_USER_AGENT must be set in production. Add it to .env")
            self.SEC_USER_AGENT = _DEFAULT_SEC_USER_AGENT
        self.DOL_API_KEY = os.getenv("DOL_API_KEY", "")

        # === Timeouts (seconds) ===
        self.SOURCE_TIMEOUT = float(os.getenv("SOURCE_TIMEOUT", "15"))
        self.HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))
        self.HTTP_CONNECT_TIMEOUT = float(os.getenv("HTTP_CONNECT_TIMEOUT", "5"))

        # === Cache (seconds) ===
        self.REPORT_CACHE_TTL = int(os.getenv("REPORT_CACHE_TTL", "1800"))      # 30 min
        self.SEARCH_CACHE_TTL = int(os.getenv("SEARCH_CACHE_TTL", "3600"))      # 1 hour
        self.DIRECTORY_CACHE_TTL = int(os.getenv("DIRECTORY_CACHE_TTL", "86400"))  # 24 hours
        self.CACHE_SWEEP_INTERVAL = int(os.getenv("CACHE_SWEEP_INTERVAL", "300"))  # 5 min

        # === Search ===
        self.SEARCH_MIN_LENGTH = int(os.getenv("SEARCH_MIN_LENGTH", "2"))
        self.SEARCH_MAX_RESULTS = int(os.getenv("SEARCH_MAX_RESULTS", "10"))

        # === Application ===
        self.HOST = os.getenv("HOST", "0.0.0.0")
        self.PORT = int(os.getenv("PORT", "8000"))

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
