from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_ORGANIZATION_LINES = [
    "Accessible Document Services",
    "Davis School District",
    "Farmington, UT 84025",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="LEDGER_", case_sensitive=False)
    """Application runtime configuration."""

    app_name: str = "Accessible Document Generation Ledger"
    log_level: str = os.getenv("LEDGER_LOG_LEVEL", "INFO")

    sqlite_path: Path = Path(os.getenv("LEDGER_SQLITE_PATH", "./data/ledger.db"))
    export_dir: Path = Path(os.getenv("LEDGER_EXPORT_DIR", str(Path.home() / "Downloads")))

    # "|"-separated in the environment, e.g. LEDGER_ORGANIZATION_LINES="Org|Street|City"
    organization_lines: Annotated[List[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_ORGANIZATION_LINES))
    copyright_notice: str = "© 2024 Accessible Document Services. All Rights Reserved."
    signature_line: bool = os.getenv("LEDGER_SIGNATURE_LINE", "false").lower() == "true"

    @field_validator("organization_lines", mode="before")
    @classmethod
    def _split_organization_lines(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, list):
            return value
        if not value:
            return []
        if value.lstrip().startswith("["):
            return json.loads(value)
        return [line.strip() for line in value.split("|") if line.strip()]

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


settings = Settings()

# Ensure the store directory exists
settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
