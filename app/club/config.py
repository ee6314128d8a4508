"""
Club Config - invite and onboarding settings
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class ClubSettings(BaseSettings):
    """Membership lifecycle settings"""

    invite_expiry_days: int = Field(default=7, description="Invite token lifetime (days)")
    invite_path: str = Field(default="/join", description="Frontend path that accepts invite tokens")

    # Template names for the emails outbox table
    invite_email_template: str = "club-invite"
    welcome_email_template: str = "club-welcome"

    class Config:
        env_prefix = "CLUB_"
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_club_settings() -> ClubSettings:
    return ClubSettings()
