"""
Application configuration.

Responsibilities:
- Load the project ``.env`` once.
- Expose service settings (session secret, routing backend, cache TTL,
  per-client state limits, logging level) as a frozen dataclass.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")


@dataclass(frozen=True)
class AppConfig:
    session_secret: str = os.getenv("SESSION_SECRET", "hubb-bantadthong-secret-change-in-production")
    osrm_base_url: str = os.getenv("OSRM_BASE_URL", "https://router.project-osrm.org")
    routing_timeout: float = float(os.getenv("ROUTING_TIMEOUT", "8.0"))
    route_cache_ttl: int = int(os.getenv("ROUTE_CACHE_TTL", "300"))
    client_ttl: int = int(os.getenv("CLIENT_TTL", "3600"))
    max_clients: int = int(os.getenv("MAX_CLIENTS", "1000"))
    log_level: str = os.getenv("HUBB_LOG_LEVEL", "INFO")


DEFAULT_APP_CONFIG = AppConfig()
