import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to app.py as emptylegs.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "emptylegs.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Staff session cookie (Authorization: Bearer is accepted too)
    AUTH_COOKIE_NAME = "emptyleg_session"

    # 8 hours session lifetime
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60

    # Idle timeout: 20 minutes
    IDLE_TIMEOUT_SECONDS = 20 * 60

    # Booking lifecycle
    PAYMENT_WINDOW_HOURS = int(os.getenv("PAYMENT_WINDOW_HOURS", "3"))
    REFERENCE_PREFIX = os.getenv("REFERENCE_PREFIX", "PEX-EL")
    REFERENCE_SUFFIX_LENGTH = 6
    REFERENCE_MAX_ATTEMPTS = 5
    REQUIRE_PAYMENT_RECEIPT = _env_bool("REQUIRE_PAYMENT_RECEIPT", "true")
    TICKET_PREFIX = os.getenv("TICKET_PREFIX", "PEX")

    # Phone numbers starting with a trunk "0" get this prefix
    DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "+234")

    # WhatsApp via Twilio (disabled when unset)
    TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
    TWILIO_WHATSAPP_NUMBER = os.getenv("TWILIO_WHATSAPP_NUMBER")

    # Third-party charter marketplace (disabled when no API key)
    MARKETPLACE_SOURCE_TAG = "INSTACHARTER"
    MARKETPLACE_BASE_URL = os.getenv("MARKETPLACE_BASE_URL", "https://server.instacharter.app/api/Markets")
    MARKETPLACE_API_KEY = os.getenv("MARKETPLACE_API_KEY")
    MARKETPLACE_OWNER_ID = os.getenv("MARKETPLACE_OWNER_ID")
    MARKETPLACE_TIMEOUT_SECONDS = float(os.getenv("MARKETPLACE_TIMEOUT_SECONDS", "15"))

    # Stripe checkout for payment links
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    STRIPE_SUCCESS_URL = os.getenv("STRIPE_SUCCESS_URL")
    STRIPE_CANCEL_URL = os.getenv("STRIPE_CANCEL_URL")
    PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "usd")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"

    TWILIO_ACCOUNT_SID = None
    TWILIO_AUTH_TOKEN = None
    TWILIO_WHATSAPP_NUMBER = None
    MARKETPLACE_API_KEY = None
    MARKETPLACE_OWNER_ID = None
    STRIPE_SECRET_KEY = None
    STRIPE_WEBHOOK_SECRET = None

    LOG_LEVEL = "WARNING"
