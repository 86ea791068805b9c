"""Runtime configuration for the workflow CLI."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True)
class Settings:
    """Application settings loaded from the environment."""

    db_path: Path = Path(".task_workflow.db")
    sqlite_busy_timeout_ms: int = 5_000
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        return cls(
            db_path=db_path or Path(os.getenv("TASK_WORKFLOW_DB_PATH", ".task_workflow.db")),
            sqlite_busy_timeout_ms=int(
                os.getenv("TASK_WORKFLOW_SQLITE_BUSY_TIMEOUT_MS", "5000"),
            ),
            log_level=os.getenv("TASK_WORKFLOW_LOG_LEVEL", "WARNING").strip().upper(),
        )

    def validate(self) -> None:
        """Raise configuration error on out-of-range values."""

        if self.sqlite_busy_timeout_ms <= 0:
            raise ValueError("TASK_WORKFLOW_SQLITE_BUSY_TIMEOUT_MS must be > 0.")
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(
                f"Invalid TASK_WORKFLOW_LOG_LEVEL: {self.log_level!r}. "
                f"Expected one of: {', '.join(_LOG_LEVELS)}.",
            )

    def configure_logging(self) -> None:
        logging.basicConfig(
            level=getattr(logging, self.log_level),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
