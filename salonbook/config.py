import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# PostgreSQL in every deployment; SQLite is only used by the test suite
DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set - point it at the PostgreSQL database")
# Hosted Postgres URLs come as postgres:// or postgresql://; the driver is psycopg 3
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = "postgresql://" + DATABASE_URL[len("postgres://"):]
if DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = "postgresql+psycopg://" + DATABASE_URL[len("postgresql://"):]

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Staff access tokens are issued by the identity provider and only verified here
STAFF_TOKEN_ALGORITHM = os.getenv("STAFF_TOKEN_ALGORITHM", "HS256")

# Frontend base URL for links in messages
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# CORS - comma separated list of extra origins allowed besides FRONTEND_URL
ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()]

# Salon calendar
# All slot times are wall-clock times in this zone
SALON_TIMEZONE = os.getenv("SALON_TIMEZONE", "Europe/Kyiv")
SLOT_DAY_START = os.getenv("SLOT_DAY_START", "09:00")
SLOT_LAST_START = os.getenv("SLOT_LAST_START", "19:30")
SLOT_GRANULARITY_MINUTES = int(os.getenv("SLOT_GRANULARITY_MINUTES", "30"))
# Used when an offering is looked up without a duration (should not happen for valid rows)
DEFAULT_SERVICE_DURATION = int(os.getenv("DEFAULT_SERVICE_DURATION", "30"))
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₴")
# Local numbers like 0671234567 get this country prefix when normalized
DEFAULT_PHONE_COUNTRY_CODE = os.getenv("DEFAULT_PHONE_COUNTRY_CODE", "38")

# Telegram Bot Configuration
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
TELEGRAM_BOT_USERNAME = os.getenv("TELEGRAM_BOT_USERNAME", "salonbook_bot")
# Secret set via setWebhook(secret_token=...); empty disables the header check
TELEGRAM_WEBHOOK_SECRET = os.getenv("TELEGRAM_WEBHOOK_SECRET")
TELEGRAM_API_TIMEOUT = float(os.getenv("TELEGRAM_API_TIMEOUT", "20"))

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Salon <noreply@example.com>")

# Notification pipeline
# "false" processes appointment events in-process instead of through the ARQ queue
NOTIFICATION_QUEUE_ENABLED = os.getenv("NOTIFICATION_QUEUE_ENABLED", "true").lower() == "true"
REMINDER_HOUR_UTC = int(os.getenv("REMINDER_HOUR_UTC", "7"))
# Outbox rows are retried by the sweep until this many attempts
NOTIFICATION_MAX_ATTEMPTS = int(os.getenv("NOTIFICATION_MAX_ATTEMPTS", "5"))
