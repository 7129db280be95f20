import os
from dataclasses import dataclass

from dotenv import load_dotenv

MAX_ACCESS_TOKEN_TTL_SECONDS = 15 * 60
MAX_REFRESH_TOKEN_TTL_SECONDS = 7 * 24 * 60 * 60
DEFAULT_SECRET = "change-me"
TOKEN_STORES = {"database", "memory"}


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, built once at startup and passed to the auth components."""

    app_env: str = "development"
    database_url: str = "sqlite:///./learning.db"
    access_token_secret: str = DEFAULT_SECRET
    refresh_token_secret: str = DEFAULT_SECRET + "-refresh"
    jwt_algorithm: str = "HS256"
    access_token_ttl_seconds: int = MAX_ACCESS_TOKEN_TTL_SECONDS
    refresh_token_ttl_seconds: int = MAX_REFRESH_TOKEN_TTL_SECONDS
    cors_origin: str = "http://localhost:3000"
    token_store: str = "database"
    cookie_secure_override: bool | None = None

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def cookie_secure(self) -> bool:
        if self.cookie_secure_override is not None:
            return self.cookie_secure_override
        return self.is_production


def load_settings() -> Settings:
    load_dotenv()
    secure_raw = os.getenv("COOKIE_SECURE")
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./learning.db"),
        access_token_secret=os.getenv("JWT_ACCESS_SECRET", DEFAULT_SECRET),
        refresh_token_secret=os.getenv("JWT_REFRESH_SECRET", DEFAULT_SECRET + "-refresh"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_ttl_seconds=int(
            os.getenv("ACCESS_TOKEN_TTL_SECONDS", str(MAX_ACCESS_TOKEN_TTL_SECONDS))
        ),
        refresh_token_ttl_seconds=int(
            os.getenv("REFRESH_TOKEN_TTL_SECONDS", str(MAX_REFRESH_TOKEN_TTL_SECONDS))
        ),
        cors_origin=os.getenv("CLIENT_URL", "http://localhost:3000"),
        token_store=os.getenv("AUTH_TOKEN_STORE", "database").strip().lower(),
        cookie_secure_override=None if secure_raw is None else _get_bool(secure_raw),
    )


def validate_runtime_config(settings: Settings) -> None:
    if settings.is_production and (
        settings.access_token_secret.startswith(DEFAULT_SECRET)
        or settings.refresh_token_secret.startswith(DEFAULT_SECRET)
    ):
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be set in production.")
    if settings.access_token_secret == settings.refresh_token_secret:
        raise RuntimeError("Access and refresh tokens must be signed with different secrets.")
    if not 0 < settings.access_token_ttl_seconds <= MAX_ACCESS_TOKEN_TTL_SECONDS:
        raise RuntimeError(
            f"ACCESS_TOKEN_TTL_SECONDS must be between 1 and {MAX_ACCESS_TOKEN_TTL_SECONDS}."
        )
    if not 0 < settings.refresh_token_ttl_seconds <= MAX_REFRESH_TOKEN_TTL_SECONDS:
        raise RuntimeError(
            f"REFRESH_TOKEN_TTL_SECONDS must be between 1 and {MAX_REFRESH_TOKEN_TTL_SECONDS}."
        )
    if settings.token_store not in TOKEN_STORES:
        raise RuntimeError(f"AUTH_TOKEN_STORE must be one of {sorted(TOKEN_STORES)}.")
