from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


DEFAULT_APPS_SCRIPT_URL = (
    "https://script.google.com/macros/s/"
    "AKfycbxMh707Oq-U0NFflYNpcQKT662hC-aMeDKIIwClr-14fAs63JcQ5BYO39CMCQLPVNmTXg/exec"
)


@dataclass(frozen=True)
class Settings:
    # Relay -> Apps Script
    apps_script_url: str

    # Form -> relay
    relay_url: str

    # Listing (Google Sheets)
    google_credentials_file: str
    spreadsheet_name: str
    worksheet_name: str

    # Servers
    port: int
    form_port: int
    secret_key: str

    # Form sessions kept in memory
    max_form_sessions: int = 500
    form_session_idle_seconds: int = 3600

    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    return Settings(
        apps_script_url=os.getenv("APPS_SCRIPT_URL", DEFAULT_APPS_SCRIPT_URL),
        relay_url=os.getenv("RELAY_URL", "http://localhost:5000/api/certidao"),
        google_credentials_file=os.getenv("GOOGLE_CREDENTIALS_FILE", "credentials.json"),
        spreadsheet_name=os.getenv("SPREADSHEET_NAME", "Certidões"),
        worksheet_name=os.getenv("WORKSHEET_NAME", "Certidões"),
        port=int(os.getenv("PORT", "5000")),
        form_port=int(os.getenv("FORM_PORT", "8000")),
        secret_key=os.getenv("SECRET_KEY", "dev"),
        max_form_sessions=int(os.getenv("MAX_FORM_SESSIONS", "500")),
        form_session_idle_seconds=int(os.getenv("FORM_SESSION_IDLE_SECONDS", "3600")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
