import os
from typing import List, Optional

# Basic settings helper to read environment configuration.


def _as_bool(val: Optional[str], default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_int(val: Optional[str], default: int) -> int:
    if val is None or not val.strip():
        return default
    return int(val)


def _as_list(val: Optional[str], default: List[str]) -> List[str]:
    if val is None:
        return default
    return [item.strip() for item in val.split(",") if item.strip()]


class Settings:
    def __init__(self) -> None:
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = _as_int(os.getenv("PORT"), 5000)
        self.CORS_ORIGINS: List[str] = _as_list(os.getenv("CORS_ORIGINS"), ["*"])
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.CATALOG_SEED_FILE: Optional[str] = os.getenv("CATALOG_SEED_FILE") or None
        self.CATALOG_STRICT_DELETE: bool = _as_bool(os.getenv("CATALOG_STRICT_DELETE"), True)
        self.SUBSCRIBER_QUEUE_SIZE: int = _as_int(os.getenv("SUBSCRIBER_QUEUE_SIZE"), 100)
