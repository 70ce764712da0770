"""
Configuration module - centralized settings for the entire application.
Uses pydantic-settings to load values from environment variables and .env file.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Pydantic-settings automatically:
    1. Reads from environment variables (highest priority)
    2. Falls back to .env file values
    3. Uses default values if neither exists

    To override in production, set environment variables:
        export GEMINI_API_KEY=your-gemini-key
        export DEFAULT_TIMEZONE=Africa/Johannesburg
    """

    # ---------------------------------------------------------------------------
    # PYDANTIC SETTINGS CONFIGURATION
    # ---------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",        # Load from .env file in project root
        env_file_encoding="utf-8",
        extra="ignore",         # Ignore extra env vars not defined here
    )

    # ---------------------------------------------------------------------------
    # APPLICATION SETTINGS
    # ---------------------------------------------------------------------------
    # APP_NAME: Display name shown in API docs and logging
    APP_NAME: str = "Calendar Assistant"

    # DEBUG: Enable debug mode (more verbose errors, auto-reload in dev)
    DEBUG: bool = False

    # DEFAULT_TIMEZONE: IANA zone used to decide what "today" is when a request
    # does not say, and attached to zoned datetimes sent to Google without one.
    DEFAULT_TIMEZONE: str = "UTC"

    # ---------------------------------------------------------------------------
    # AI/LLM PROVIDER SETTINGS
    # ---------------------------------------------------------------------------
    # GEMINI_API_KEY: Google's Gemini API, used for both the chat reply and
    # the date-range inference call. Empty means "not configured".
    GEMINI_API_KEY: str = ""

    # Default model (can be overridden per provider instance)
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # AI Request timeout in seconds
    AI_REQUEST_TIMEOUT: int = 30

    # Max output tokens for the assistant reply (actions JSON can be long)
    ASSISTANT_MAX_TOKENS: int = 4096

    # ---------------------------------------------------------------------------
    # DATE RANGE INFERENCE
    # ---------------------------------------------------------------------------
    # Total span allowed across all ranges of one answer
    RANGE_MAX_SPAN_MONTHS: int = 18

    # Dates farther than this from "today" are rejected as implausible
    RANGE_MAX_DISTANCE_YEARS: int = 3

    # Range reasons are truncated to this many characters
    RANGE_REASON_MAX_CHARS: int = 160

    # Only the first N ranges proposed by the model are considered
    RANGE_MAX_AI_RANGES: int = 10

    # Conversation messages forwarded to the range prompt (most recent)
    RANGE_CONTEXT_MESSAGES: int = 6

    # ---------------------------------------------------------------------------
    # GOOGLE CALENDAR SETTINGS
    # ---------------------------------------------------------------------------
    # Default / maximum number of events returned by a listing
    CALENDAR_MAX_RESULTS: int = 500
    CALENDAR_MAX_RESULTS_LIMIT: int = 2500

    # Absolute safety cap for any listing window (24 months of 31 days)
    CALENDAR_HARD_CAP_DAYS: int = 24 * 31

    # ---------------------------------------------------------------------------
    # GOOGLE ACCESS TOKEN VALIDATION
    # ---------------------------------------------------------------------------
    # Google's tokeninfo endpoint (validates the access token the client sends)
    GOOGLE_TOKENINFO_URL: str = "https://oauth2.googleapis.com/tokeninfo"

    # Fallback lifetime when tokeninfo reports no expiry
    TOKEN_CACHE_TTL_SECONDS: int = 300

    # Treat a cached token as expired this many seconds early
    TOKEN_EXPIRY_SKEW_SECONDS: int = 30

    # ---------------------------------------------------------------------------
    # GOOGLE OAUTH SETTINGS
    # ---------------------------------------------------------------------------
    # Carried for the OAuth login flow that issues the access tokens.
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REDIRECT_URI: str = "http://localhost:8000/auth/google/callback"


# ---------------------------------------------------------------------------
# GLOBAL SETTINGS INSTANCE
# ---------------------------------------------------------------------------
# Usage: from app.core.config import settings
settings = Settings()
