# app/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = os.getenv("APP_NAME", "Pharma Access Console API")
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = _csv(os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
    ))

    # Storage: "database" (Tortoise, durable) or "memory" (single process only)
    storage_backend: str = os.getenv("STORAGE_BACKEND", "database").lower()
    database_url: str | None = os.getenv("DATABASE_URL")

    # Sessions
    session_secret: str = os.getenv("SESSION_SECRET", "dev-session-secret")  # use a strong secret in production
    session_ttl_minutes: int = int(os.getenv("SESSION_TTL_MINUTES", str(24 * 60)))
    session_cookie_name: str = "sessionToken"

    # Default SUPER_ADMIN (created on first boot only when ADMIN_PASSWORD is set)
    admin_username: str = os.getenv("ADMIN_USERNAME", "admin")
    admin_email: str = os.getenv("ADMIN_EMAIL", "admin@example.com")
    admin_password: str | None = os.getenv("ADMIN_PASSWORD")

    @property
    def cookie_secure(self) -> bool:
        return self.env == "prod"

    def validate_startup(self) -> None:
        """
        Fail fast on configuration the server cannot run without.

        Raises:
            RuntimeError: unknown storage backend, or DATABASE_URL missing for the database backend
        """
        if self.storage_backend not in ("database", "memory"):
            raise RuntimeError(f"Unknown STORAGE_BACKEND: {self.storage_backend!r}")
        if self.storage_backend == "database" and not self.database_url:
            raise RuntimeError("DATABASE_URL is not set; refusing to start")
        if self.session_ttl_minutes <= 0:
            raise RuntimeError("SESSION_TTL_MINUTES must be positive")


settings = Settings()  # Instantiate configuration
