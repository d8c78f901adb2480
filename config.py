"""
Service configuration
All options come from environment variables (or a .env file)
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes")


# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./hotel_reservations.db")

# Hotel operating day
HOTEL_TIMEZONE = os.getenv("HOTEL_TIMEZONE", "Asia/Colombo")

# Reconciliation job (daily cutoff, hotel time)
RECONCILIATION_HOUR = int(os.getenv("RECONCILIATION_HOUR", "19"))
RECONCILIATION_MINUTE = int(os.getenv("RECONCILIATION_MINUTE", "0"))
RECONCILIATION_STALE_MINUTES = int(os.getenv("RECONCILIATION_STALE_MINUTES", "30"))
SCHEDULER_ENABLED = _env_bool("SCHEDULER_ENABLED", "true")
AUTO_CANCEL_REASON = "unpaid reservation auto-cancelled at cutoff"

# Block bookings
MIN_BLOCK_ROOMS = int(os.getenv("MIN_BLOCK_ROOMS", "3"))
MAX_BLOCK_DISCOUNT = int(os.getenv("MAX_BLOCK_DISCOUNT", "50"))

# Logging
LOG_FILE = os.getenv("LOG_FILE", "hotel_reservations.log")

# CORS (comma separated). Empty -> local frontend defaults
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
