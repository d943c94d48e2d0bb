"""Application configuration"""
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    database_url: str = "sqlite+aiosqlite:///./judging.db"
    database_url_sync: str = "sqlite:///./judging.db"

    # Security
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Deduction quorum: approver slots that must all approve
    deduction_required_approvers: List[str] = ["JUDGE", "TALLY_MASTER", "AUDITOR", "BOARD"]

    # Uncertification quorum: roles that must all co-sign before execution
    uncertification_required_signers: List[str] = [
        "ADMIN",
        "ORGANIZER",
        "TALLY_MASTER",
        "AUDITOR",
        "BOARD",
    ]

    # Listing endpoints
    default_page_size: int = 50
    max_page_size: int = 200

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
