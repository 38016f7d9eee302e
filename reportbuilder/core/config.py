# reportbuilder/core/config.py
"""Application settings read from the environment."""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the report builder service."""

    # Config database: saved reports, execution logs, request logs
    database_url: str = "sqlite:///./reportbuilder_config.db"
    # Inventory store: items, entries, users, suppliers
    store_database_url: str = "sqlite:///./reportbuilder_store.db"
    max_rows: int = 10000
    require_tenant: bool = True
    catalog_path: Optional[str] = None
    application_id: str = "Unknown"
    log_excluded_paths: Tuple[str, ...] = field(default=("/api/logs", "/api/docs", "/api/openapi.json"))

    def __post_init__(self) -> None:
        if self.max_rows < 1:
            raise ValueError(f"max_rows must be a positive integer, got {self.max_rows}")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (a .env file is honoured)."""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            store_database_url=os.getenv("STORE_DATABASE_URL", cls.store_database_url),
            max_rows=int(os.getenv("REPORT_MAX_ROWS", str(cls.max_rows))),
            require_tenant=_env_bool("REPORT_REQUIRE_TENANT", cls.require_tenant),
            catalog_path=os.getenv("REPORT_CATALOG_PATH") or None,
            application_id=os.getenv("APPLICATION_ID", cls.application_id),
        )
