"""
Settings read from environment variables.

A ``.env`` file in the working directory is loaded first (without overriding
variables that are already set), then every value falls back to a default
suitable for local development.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from db.engine import default_url


def parse_cors_origins(env_val: str | None) -> List[str]:
    """
    Parse comma-separated origins. If env is None or '*', return ['*'] (dev).
    Otherwise, return a cleaned list like ['https://app.example.com', 'https://example.com'].
    """
    if not env_val or env_val.strip() == "*":
        return ["*"]
    parts = [p.strip().rstrip("/") for p in env_val.split(",")]
    return [p for p in parts if p] or ["*"]


@dataclass
class Settings:
    project_name: str = "Exercise Tracker API"
    api_version: str = "0.1.0"
    database_url: str = field(default_factory=default_url)
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    log_file: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 5000


def get_settings() -> Settings:
    """Build ``Settings`` from the current environment."""
    load_dotenv(override=False)
    return Settings(
        project_name=os.getenv("PROJECT_NAME", "Exercise Tracker API"),
        api_version=os.getenv("API_VERSION", "0.1.0"),
        database_url=os.getenv("DATABASE_URL") or default_url(),
        cors_origins=parse_cors_origins(os.getenv("CORS_ORIGINS")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE") or None,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
    )
