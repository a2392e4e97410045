"""Configuration management for ledgerkit."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def default_database_path() -> str:
    """Return ~/.ledgerkit/ledgerkit.db, creating the directory if needed."""
    db_dir = Path.home() / ".ledgerkit"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "ledgerkit.db")


@dataclass
class LedgerConfig:
    """Runtime settings for the ledger engine and CLI."""

    database_path: Optional[str] = None
    default_currency: str = "BRL"
    balance_cache_ttl_seconds: float = 60.0
    balance_history_days: int = 7
    log_level: str = "WARNING"
    log_format: str = "standard"

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "LedgerConfig":
        """Build a config from LEDGERKIT_* environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            database_path=env.get("LEDGERKIT_DB_PATH"),
            default_currency=env.get("LEDGERKIT_DEFAULT_CURRENCY", "BRL").upper(),
            balance_cache_ttl_seconds=float(env.get("LEDGERKIT_BALANCE_CACHE_TTL", "60")),
            balance_history_days=int(env.get("LEDGERKIT_BALANCE_HISTORY_DAYS", "7")),
            log_level=env.get("LEDGERKIT_LOG_LEVEL", "WARNING"),
            log_format=env.get("LEDGERKIT_LOG_FORMAT", "standard"),
        )

    def resolved_database_path(self) -> str:
        return self.database_path or default_database_path()
