# fibpipe/config.py
from functools import lru_cache
from pathlib import Path
from typing import List, Optional
import os
from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]


def load_env_files(root: Path = ROOT) -> None:
    """Load .env files in ascending precedence; later overrides earlier."""
    load_dotenv(root / ".env")
    load_dotenv(root / ".env.local", override=True)


def _bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)


class Settings:
    def __init__(self):
        # Server
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "5000"))
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.ALLOWED_ORIGINS: List[str] = [
            s.strip() for s in os.getenv("ALLOWED_ORIGINS", "*").split(",") if s.strip()
        ]

        # Backend selection: "redis" (Redis + PostgreSQL) or "memory"
        self.BACKEND: str = os.getenv("BACKEND", "redis").lower()

        # Redis (result cache + dispatch channel)
        self.REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
        self.REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
        self.REDIS_URL: str = os.getenv(
            "REDIS_URL", f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/0"
        )
        self.CACHE_KEY: str = os.getenv("CACHE_KEY", "values")
        self.DISPATCH_CHANNEL: str = os.getenv("DISPATCH_CHANNEL", "insert")
        self.RECONNECT_INTERVAL: float = float(os.getenv("RECONNECT_INTERVAL", "1.0"))
        self.RECONNECT_ATTEMPTS: int = int(os.getenv("RECONNECT_ATTEMPTS", "5"))

        # PostgreSQL (durable log)
        self.PGHOST: Optional[str] = os.getenv("PGHOST")
        self.PGPORT: Optional[int] = int(os.getenv("PGPORT")) if os.getenv("PGPORT") else None
        self.PGDATABASE: Optional[str] = os.getenv("PGDATABASE")
        self.PGUSER: Optional[str] = os.getenv("PGUSER")
        self.PGPASSWORD: Optional[str] = os.getenv("PGPASSWORD")
        self.PGTABLE: str = os.getenv("PGTABLE", "values")

        # Pipeline
        self.MAX_INDEX: int = int(os.getenv("MAX_INDEX", "40"))
        self.WORKER_COUNT: int = int(os.getenv("WORKER_COUNT", "1"))
        self.WORKER_CAPACITY: int = int(os.getenv("WORKER_CAPACITY", "1"))
        self.COMPUTE_MODE: str = os.getenv("COMPUTE_MODE", "iterative")
        self.COMPUTE_TIMEOUT: Optional[float] = _optional_float(os.getenv("COMPUTE_TIMEOUT"))
        self.RECONCILE_ON_START: bool = _bool(os.getenv("RECONCILE_ON_START", "false"))

    def public(self) -> dict:
        """Settings safe to expose (no credentials)."""
        return {
            "backend": self.BACKEND,
            "max_index": self.MAX_INDEX,
            "dispatch_channel": self.DISPATCH_CHANNEL,
            "worker_count": self.WORKER_COUNT,
            "compute_mode": self.COMPUTE_MODE,
        }


@lru_cache
def get_settings() -> Settings:
    load_env_files()
    return Settings()
