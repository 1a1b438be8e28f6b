"""Runtime settings for the data mapper.

Environment variables are loaded from a ``.env`` file using ``python-dotenv``
and exposed through a Pydantic settings object.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# Load environment variables from a .env file if present
load_dotenv()

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DEFAULT_DSN = ":memory:"
DEFAULT_DBA = "default"
DEFAULT_LOG_FILE = Path("logs/deltamap.log")


class Settings(BaseModel):
    """Immutable settings object used across the package."""

    dsn: str = DEFAULT_DSN
    default_dba: str = DEFAULT_DBA
    meta_file: Optional[Path] = None
    log_file: Path = DEFAULT_LOG_FILE

    model_config = ConfigDict(frozen=True)

    @field_validator("default_dba")
    @classmethod
    def _non_empty_dba(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("default_dba must not be empty")
        return v.strip()


def build_settings() -> Settings:
    """Construct the ``Settings`` instance based on environment variables."""

    meta_file = os.getenv("DELTAMAP_META_FILE") or None
    return Settings(
        dsn=os.getenv("DELTAMAP_DSN", DEFAULT_DSN),
        default_dba=os.getenv("DELTAMAP_DBA", DEFAULT_DBA),
        meta_file=Path(meta_file) if meta_file else None,
        log_file=Path(os.getenv("DELTAMAP_LOG_FILE", str(DEFAULT_LOG_FILE))),
    )


# Public settings instance
settings = build_settings()
