"""
Service configuration.

Environment variables are read once, in ``ServiceConfig.from_env()``, and the
resulting value is handed to the orchestrator and the Google/SMTP clients.
Nothing below ``backend/main.py`` reads ``os.environ`` directly.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

from dotenv import load_dotenv

# Fixed targets (not configurable through the environment)
LEDGER_SPREADSHEET_ID = "1r0hlNxm7PxDDIIkvXchBsY9q6gcd0yhLpImWJ8hWHsU"
LEDGER_RANGE = "Sheet1!A2"  # append below the header row
PARENT_FOLDER_ID = "1qvtYTfZ_Etl5lvyuZMk_uRaJ4TBIHkha"

DEFAULT_RECORD_STORE_URI = "sqlite:///settlements.sqlite"


def _int_env(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _float_env(key: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else None


@dataclass(frozen=True)
class ServiceConfig:
    port: int = 8080
    record_store_uri: str = DEFAULT_RECORD_STORE_URI
    google_credentials_file: Optional[str] = None
    email_user: Optional[str] = None
    email_password: Optional[str] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    background_timeout_s: Optional[float] = 300.0
    log_level: str = "INFO"
    ledger_spreadsheet_id: str = LEDGER_SPREADSHEET_ID
    ledger_range: str = LEDGER_RANGE
    parent_folder_id: str = PARENT_FOLDER_ID

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "ServiceConfig":
        """Load ``.env`` (if present) and build the config from the process environment."""
        load_dotenv(dotenv_path)
        return cls(
            port=_int_env("PORT", 8080),
            record_store_uri=(
                os.getenv("RECORD_STORE_URI")
                or os.getenv("MONGO_URI")
                or DEFAULT_RECORD_STORE_URI
            ),
            google_credentials_file=os.getenv("GOOGLE_CLOUD_CREDENTIALS"),
            email_user=os.getenv("EMAIL_USER"),
            email_password=os.getenv("EMAIL_PASS"),
            smtp_host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
            smtp_port=_int_env("SMTP_PORT", 465),
            background_timeout_s=_float_env("BACKGROUND_TIMEOUT_S", 300.0),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def with_overrides(self, **changes) -> "ServiceConfig":
        return replace(self, **changes)
