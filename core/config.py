"""Application configuration with environment-specific profiles.

Supports dev, test, staging, and production environments via APP_ENV.
All values can be overridden by environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    """Immutable application settings resolved from environment."""

    database_url: str
    app_env: str = "dev"
    secret_key: str = "change-me"
    jwt_secret: str = "jwt-change-me"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 480
    log_level: str = "INFO"
    password_hash_rounds: int = 12

    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:5173"])
    request_id_header_name: str = "X-Request-ID"

    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = "memory://"
    login_rate_limit: str = "10/minute"

    # Coaching enrollment defaults
    default_coaching_type: str = "pregnancy_coaching"
    plan_duration_weeks: int = 4
    enforce_status_transitions: bool = False
    allow_session_expiry_endpoint: bool = True

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
        "jwt_expire_minutes": 1440,
    },
    "test": {
        "log_level": "WARNING",
        "jwt_expire_minutes": 60,
        "password_hash_rounds": 4,
        "rate_limit_enabled": False,
    },
    "staging": {
        "log_level": "INFO",
        "jwt_expire_minutes": 480,
    },
    "production": {
        "log_level": "WARNING",
        "jwt_expire_minutes": 240,
        "allow_session_expiry_endpoint": False,
    },
}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def get_database_url() -> str:
    """Resolve database URL from env var or local default.

    Resolution order:
    1. DATABASE_URL environment variable
    2. Local default for common dev setups
    """
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    return "postgresql+psycopg2://localhost:5432/coaching"


def database_url() -> str:
    return get_settings().database_url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])

    return Settings(
        database_url=get_database_url(),
        app_env=app_env,
        secret_key=os.getenv("SECRET_KEY", "change-me"),
        jwt_secret=os.getenv("JWT_SECRET", os.getenv("SECRET_KEY", "jwt-change-me")),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_expire_minutes=int(os.getenv("JWT_EXPIRE_MINUTES", str(profile.get("jwt_expire_minutes", 480)))),
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        password_hash_rounds=int(os.getenv("PASSWORD_HASH_ROUNDS", str(profile.get("password_hash_rounds", 12)))),
        cors_origins=_env_list("CORS_ORIGINS", ["http://localhost:5173"]),
        request_id_header_name=os.getenv("REQUEST_ID_HEADER_NAME", "X-Request-ID"),
        rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", profile.get("rate_limit_enabled", True)),
        rate_limit_storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
        login_rate_limit=os.getenv("LOGIN_RATE_LIMIT", "10/minute"),
        default_coaching_type=os.getenv("DEFAULT_COACHING_TYPE", "pregnancy_coaching"),
        plan_duration_weeks=int(os.getenv("PLAN_DURATION_WEEKS", "4")),
        enforce_status_transitions=_env_bool("ENFORCE_STATUS_TRANSITIONS", False),
        allow_session_expiry_endpoint=_env_bool(
            "ALLOW_SESSION_EXPIRY_ENDPOINT", profile.get("allow_session_expiry_endpoint", True)
        ),
    )
