"""Service settings read from APP__* environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


STORAGE_BACKENDS = ("memory", "sql")


@dataclass(frozen=True)
class Settings:
    service_name: str = "order-lifecycle"
    storage_backend: str = "memory"
    db_dsn: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            service_name=os.getenv("APP__SERVICE_NAME", "order-lifecycle"),
            storage_backend=os.getenv("APP__STORAGE_BACKEND", "memory").lower(),
            db_dsn=os.getenv("APP__DB_DSN") or None,
            log_level=os.getenv("APP__LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        if self.storage_backend not in STORAGE_BACKENDS:
            raise RuntimeError(
                f"Unknown APP__STORAGE_BACKEND {self.storage_backend!r}, "
                f"expected one of {', '.join(STORAGE_BACKENDS)}"
            )
        if self.storage_backend == "sql" and not self.db_dsn:
            raise RuntimeError("APP__DB_DSN not set")
