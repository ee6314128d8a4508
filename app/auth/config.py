"""
Auth Config - Supabase and authentication settings
"""
import os
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class AuthSettings(BaseSettings):
    """Identity provider / Supabase settings"""

    # Supabase
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
    # Admin calls (create/delete account, invite emails) need the service role key
    SUPABASE_SERVICE_ROLE_KEY: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

    # Where invite / magic links land
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # CORS
    CORS_ALLOW_ORIGINS: str = "*"  # comma separated

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ALLOW_ORIGINS.split(",") if origin.strip()]


@lru_cache()
def get_auth_settings() -> AuthSettings:
    return AuthSettings()


CORS_ALLOW_METHODS = ["POST", "GET", "OPTIONS", "PUT", "PATCH", "DELETE"]

CORS_ALLOW_HEADERS = [
    "authorization",
    "x-client-info",
    "apikey",
    "content-type",
    "x-requested-with",
    "sec-ch-ua",
    "sec-ch-ua-mobile",
    "sec-ch-ua-platform",
    "referer",
    "user-agent",
]
