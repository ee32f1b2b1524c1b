# grocery_pos/config.py
import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import List

# Load environment variables
load_dotenv()

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent


def _parse_ids(raw: str) -> List[int]:
    return [int(id_) for id_ in raw.split(",") if id_.strip().isdigit()]


class Config:
    """Configuration settings for the billing service"""

    # Database settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", "2"))
    DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "10"))

    # API settings
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "3000"))

    # Staff tokens
    SECRET_KEY: str = os.getenv("SECRET_KEY", "")
    TOKEN_TTL: int = int(os.getenv("TOKEN_TTL", "43200"))

    # Cashier bot settings, the bot stays off without a token
    TELEGRAM_TOKEN: str = os.getenv("TELEGRAM_TOKEN", "")
    ADMIN_IDS: List[int] = _parse_ids(os.getenv("ADMIN_IDS", ""))
    KEEPER_IDS: List[int] = _parse_ids(os.getenv("KEEPER_IDS", ""))

    # Other settings
    CURRENCY: str = os.getenv("CURRENCY", "INR")
    TIMEZONE: str = os.getenv("TZ", "Asia/Kolkata")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Paths
    LOG_DIR = BASE_DIR / "logs"

    # Ensure directories exist
    LOG_DIR.mkdir(exist_ok=True)


def setup_logging():
    """Configure logging settings"""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_file = Config.LOG_DIR / "pos.log"

    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format=log_format,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )
