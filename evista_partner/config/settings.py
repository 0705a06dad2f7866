"""
Application settings and configuration
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _default_api_url(environment: str) -> str:
    """Backend base URL when EVISTA_API_URL is not set"""
    if environment == "production":
        return "https://evista.id"
    return "https://bhisa-dev-v1.evista.id"


class Settings:
    # Application
    APP_NAME = "Evista Hotel Partner"
    VERSION = "1.0.0"
    DEBUG = os.getenv("DEBUG", "True") == "True"
    APP_ENV = os.getenv("APP_ENV", "development")

    # Evista backend
    EVISTA_API_URL = (os.getenv("EVISTA_API_URL") or _default_api_url(APP_ENV)).rstrip("/")
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))

    # CORS
    ALLOWED_ORIGINS = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]

    # Time
    TIMEZONE = "Asia/Jakarta"

    # Session / tokens
    GUEST_TOKEN_LIFETIME_HOURS = 24
    USER_TOKEN_LIFETIME_DAYS = 30
    SESSION_STORAGE_PATH = os.getenv("SESSION_STORAGE_PATH", os.path.join(os.getcwd(), "data", "session.json"))

    # Booking rules
    MIN_LEAD_MINUTES = 60
    RENTAL_MIN_LEAD_HOURS = 6
    NIGHT_START_HOUR = 0
    NIGHT_END_HOUR = 6
    URGENT_NIGHT_WINDOW_HOURS = 24
    ROUND_TRIP_DISCOUNT = 10000
    # Premium (2) and Economy+ (9)
    MANUAL_CAR_TYPE_IDS = [2, 9]

    # Contact
    SUPPORT_WHATSAPP = os.getenv("SUPPORT_WHATSAPP", "6287773845676")
    ADMIN_WHATSAPP = os.getenv("ADMIN_WHATSAPP", "6287773845676")

    # Admin
    TRANSACTIONS_PER_PAGE = 100
    TRANSACTIONS_MAX_PAGES = 50

settings = Settings()
