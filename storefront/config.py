"""
Configuration for the storefront service.

Settings are read from environment variables; a ``.env`` file in the
working directory is loaded first so local overrides do not need to be
exported by hand.
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


@dataclass
class Settings:
    """Runtime settings for the API."""

    # Auth
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60

    # Catalog seeding
    seed_products: int = 1000
    seed_random: Optional[int] = None

    # Response cache
    cache_ttl_seconds: int = 60

    # Logging
    log_level: str = "INFO"
    audit_log_file: Optional[str] = None

    # HTTP
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    port: int = 3002

    # Set when no JWT_SECRET was configured and one had to be generated
    generated_secret: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        secret = os.getenv("JWT_SECRET", "")
        generated = False
        if not secret:
            secret = secrets.token_urlsafe(32)
            generated = True

        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            jwt_secret=secret,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_expires_minutes=_env_int("JWT_EXPIRES_MINUTES", 60),
            seed_products=_env_int("SEED_PRODUCTS", 1000),
            seed_random=_env_int("SEED_RANDOM", None),
            cache_ttl_seconds=_env_int("CACHE_TTL_SECONDS", 60),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            audit_log_file=os.getenv("AUDIT_LOG_FILE") or None,
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            port=_env_int("PORT", 3002),
            generated_secret=generated,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
