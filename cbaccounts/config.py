from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


class Settings:
    """Client settings read from the environment (and a local .env file)."""

    def __init__(self) -> None:
        self.api_key: Optional[str] = os.getenv("COINBASE_API_KEY")
        self.api_secret: Optional[str] = os.getenv("COINBASE_API_SECRET")
        self.access_token: Optional[str] = os.getenv("COINBASE_ACCESS_TOKEN")
        self.base_url: str = os.getenv("COINBASE_BASE_URL", "https://api.coinbase.com/v2/")
        self.api_version: str = os.getenv("COINBASE_API_VERSION", "2016-02-18")
        self.timeout: float = float(os.getenv("COINBASE_TIMEOUT", "20"))
        self.connect_retries: int = int(os.getenv("COINBASE_CONNECT_RETRIES", "3"))


settings = Settings()
