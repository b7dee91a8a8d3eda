"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')

    # Session Configuration (Production-safe defaults)
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours

    # Preferred URL scheme (for url_for with _external=True)
    PREFERRED_URL_SCHEME = os.getenv('PREFERRED_URL_SCHEME', 'http')

    # Remote shop backend (sale commit, catalog, customers, khata history)
    POS_API_BASE_URL = os.getenv('POS_API_BASE_URL', 'http://localhost:5000/api')
    POS_API_TOKEN = os.getenv('POS_API_TOKEN')
    POS_API_TIMEOUT = int(os.getenv('POS_API_TIMEOUT', '10'))  # seconds

    # Terminal identity (one checkout session per terminal)
    TERMINAL_HEADER = os.getenv('TERMINAL_HEADER', 'X-Terminal-Id')
    DEFAULT_TERMINAL_ID = os.getenv('DEFAULT_TERMINAL_ID', 'till-1')
    MAX_TERMINAL_SESSIONS = int(os.getenv('MAX_TERMINAL_SESSIONS', '50'))
    TERMINAL_IDLE_TIMEOUT = int(os.getenv('TERMINAL_IDLE_TIMEOUT', '28800'))  # seconds (8 hours)

    # Khata / stock defaults applied when the backend omits a value
    DEFAULT_CREDIT_LIMIT = os.getenv('DEFAULT_CREDIT_LIMIT', '5000')
    LOW_STOCK_REORDER_LEVEL = int(os.getenv('LOW_STOCK_REORDER_LEVEL', '5'))

    # Display
    CURRENCY_SYMBOL = os.getenv('CURRENCY_SYMBOL', '₹')

    # Error tracking
    SENTRY_DSN = os.getenv('SENTRY_DSN')


class TestingConfig(Config):
    """Configuration used by the test-suite (no remote backend)."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    POS_API_BASE_URL = 'http://pos-backend.test/api'
    POS_API_TOKEN = 'test-token'
    SENTRY_DSN = None
