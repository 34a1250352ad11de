import os
import base64
import hashlib
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


def _derive_fernet_key(secret: str) -> str:
    """Fernet wants 32 url-safe base64 bytes; stretch the secret into that shape."""
    return base64.urlsafe_b64encode(hashlib.sha256(secret.encode()).digest()).decode()


class BootstrapSettings(BaseModel):
    enabled: bool = Field(default=os.getenv("BOOTSTRAP_DATA", "true").lower() == "true")
    admin_username: str = Field(default=os.getenv("DEFAULT_ADMIN_USERNAME", "admin"))
    admin_email: str = Field(default=os.getenv("DEFAULT_ADMIN_EMAIL", "admin@hris.local"))
    admin_password: str = Field(default=os.getenv("DEFAULT_ADMIN_PASSWORD", "Admin@12345"))


class Config(BaseModel):
    app_name: str = "HRIS API"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./hris.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    refresh_secret_key: Optional[str] = os.getenv("REFRESH_SECRET_KEY")
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "120"))
    refresh_token_expire_days: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))
    bcrypt_rounds: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Government ID numbers are encrypted at rest with this Fernet key
    encryption_key: Optional[str] = os.getenv("ENCRYPTION_KEY")

    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    # Rate limiting (slowapi limit strings)
    rate_limit_enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    auth_rate_limit: str = os.getenv(
        "AUTH_RATE_LIMIT",
        "20/15minutes" if os.getenv("APP_ENV", "development") == "development" else "5/15minutes",
    )
    api_rate_limit: str = os.getenv(
        "API_RATE_LIMIT",
        "1000/15minutes" if os.getenv("APP_ENV", "development") == "development" else "300/15minutes",
    )

    bootstrap: BootstrapSettings = BootstrapSettings()

    @property
    def fernet_key(self) -> str:
        return self.encryption_key or _derive_fernet_key(self.secret_key)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    _critical_missing = []
    if "dev-only" in settings.secret_key:
        _critical_missing.append("SECRET_KEY")
    if not settings.encryption_key:
        _critical_missing.append("ENCRYPTION_KEY")
    if _critical_missing:
        raise RuntimeError(
            f"FATAL: The following secrets must be set for non-development environments: "
            f"{', '.join(_critical_missing)}. Set them as environment variables."
        )
elif "dev-only" in settings.secret_key:
    _logger.warning("Using insecure default SECRET_KEY, only acceptable in development.")
