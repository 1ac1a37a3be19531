"""Runtime settings for the Meno API.

Values come from the environment (a local ``.env`` file is loaded first) and
are collected into a single ``Settings`` object that ``create_app`` receives.
"""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from meno.api.errors import ConfigurationError


def _int_from(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _origins_from(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


# PUBLIC_INTERFACE
@dataclass
class Settings:
    """Process-wide configuration, passed explicitly to the app factory."""

    database_url: str = "sqlite:///./meno.db"
    secret_key: str = "notsosecret"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    bcrypt_rounds: int = 12
    cors_allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    api_prefix: str = "/api"
    api_host: str = "0.0.0.0"
    api_port: int = 4000
    log_level: str = "INFO"

    # PUBLIC_INTERFACE
    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables (``DATABASE_URL``, ``JWT_SECRET_KEY``, ...)."""
        if env is None:
            load_dotenv()
            env = os.environ
        defaults = cls()
        return cls(
            database_url=env.get("DATABASE_URL") or defaults.database_url,
            secret_key=env.get("JWT_SECRET_KEY") or defaults.secret_key,
            algorithm=env.get("JWT_ALGORITHM") or defaults.algorithm,
            access_token_expire_minutes=_int_from(
                env, "JWT_ACCESS_TOKEN_EXPIRE_MINUTES", defaults.access_token_expire_minutes
            ),
            bcrypt_rounds=_int_from(env, "BCRYPT_ROUNDS", defaults.bcrypt_rounds),
            cors_allowed_origins=_origins_from(env.get("CORS_ALLOWED_ORIGINS", "*")),
            api_prefix=env.get("API_PREFIX", defaults.api_prefix).rstrip("/"),
            api_host=env.get("API_HOST") or defaults.api_host,
            api_port=_int_from(env, "API_PORT", defaults.api_port),
            log_level=(env.get("LOG_LEVEL") or defaults.log_level).upper(),
        )
