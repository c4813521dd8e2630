"""
Configuration settings for the WalletWise API
"""
import os


def _flag(name, default="False"):
    return os.environ.get(name, default).lower() == "true"


class Config:
    # Supabase (auth + tables)
    SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
    SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY", "")

    # Supabase access tokens are verified locally with the project's JWT secret
    JWT_SECRET_KEY = os.environ.get("SUPABASE_JWT_SECRET", "dev-key-for-local-only")
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
    JWT_DECODE_AUDIENCE = "authenticated"
    JWT_ENCODE_AUDIENCE = "authenticated"
    JWT_IDENTITY_CLAIM = "sub"
    JWT_TOKEN_LOCATION = ["headers"]

    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "http://localhost:8501,http://localhost:8502")

    # Assistant (Groq's OpenAI-compatible endpoint)
    ASSISTANT_API_KEY = os.environ.get("GROQ_API_KEY", "")
    ASSISTANT_BASE_URL = os.environ.get("ASSISTANT_BASE_URL", "https://api.groq.com/openai/v1")
    ASSISTANT_MODEL = os.environ.get("ASSISTANT_MODEL", "llama-3.3-70b-versatile")
    ASSISTANT_TEMPERATURE = float(os.environ.get("ASSISTANT_TEMPERATURE", "0.7"))
    ASSISTANT_MAX_TOKENS = int(os.environ.get("ASSISTANT_MAX_TOKENS", "1024"))

    # Auth retry (network failures only)
    AUTH_MAX_RETRIES = int(os.environ.get("AUTH_MAX_RETRIES", "3"))
    AUTH_RETRY_DELAY = float(os.environ.get("AUTH_RETRY_DELAY", "1.0"))

    PAGE_SIZE = int(os.environ.get("PAGE_SIZE", "5"))
    MAX_PAGE_SIZE = 100

    DEFAULT_LANGUAGE = os.environ.get("DEFAULT_LANGUAGE", "pt")
    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "EUR")

    # Where confirmation / reset emails send the user back to
    SITE_URL = os.environ.get("SITE_URL", "http://localhost:8501")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    DEBUG = _flag("DEBUG")

    # Test hooks: callable(url, key) -> supabase client, and a ready-made OpenAI client
    SUPABASE_CLIENT_FACTORY = None
    ASSISTANT_CLIENT = None
