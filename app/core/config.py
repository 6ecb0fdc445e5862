import os

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.lower() in ("true", "on", "1", "yes")


class Settings:
    """Runtime settings read from the environment (and an optional .env file)."""

    def __init__(self):
        self.DATABASE_URL = os.getenv("DATABASE_URL") or self._mysql_url()
        self.SQL_ECHO = _as_bool(os.getenv("SQL_ECHO", "false"))

        # Auth
        self.JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production-set-a-real-jwt-secret")
        self.JWT_ALGORITHM = "HS256"
        self.JWT_EXPIRE_DAYS = int(os.getenv("JWT_EXPIRE_DAYS", "7"))
        self.AUTH_COOKIE_NAME = "auth-token"

        # Check-in admission
        self.ENFORCE_UNIQUE_ORIGIN = _as_bool(os.getenv("ENFORCE_UNIQUE_ORIGIN", "true"))
        self.TRUST_PROXY_HEADERS = _as_bool(os.getenv("TRUST_PROXY_HEADERS", "false"))
        self.CHECKIN_RATE_LIMIT = os.getenv("CHECKIN_RATE_LIMIT", "5 per 5 minutes")
        self.API_RATE_LIMIT = os.getenv("API_RATE_LIMIT", "100 per 15 minutes")

        # Live roster
        self.ROSTER_POLL_INTERVAL_SECONDS = float(os.getenv("ROSTER_POLL_INTERVAL_SECONDS", "2"))

        self.PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000").rstrip("/")
        self.CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    @staticmethod
    def _mysql_url() -> str:
        db_host = os.getenv("DB_HOST", "localhost")
        db_port = os.getenv("DB_PORT", "3306")
        db_user = os.getenv("DB_USER", "root")
        db_password = os.getenv("DB_PASSWORD", "")
        db_name = os.getenv("DB_NAME", "attendance")
        return f"mysql+aiomysql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


settings = Settings()
