"""Configuration for the API server."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from report_scraper import Credentials, ScrapeConfig

load_dotenv()


@dataclass
class Settings:
    """Environment-backed settings."""
    host: str = os.getenv('HOST', '127.0.0.1')
    port: int = int(os.getenv('PORT', '3210'))
    default_status: str = os.getenv('REPORT_FILTER', 'Escalated')

    def scrape_config(self) -> ScrapeConfig:
        return ScrapeConfig.from_env()

    def credentials(self) -> Credentials:
        return Credentials.from_env()


settings = Settings()
