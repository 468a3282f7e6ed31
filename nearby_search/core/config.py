import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    # Logging
    LOG_DIR = os.getenv("LOG_DIR", "logs")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Providers
    GEOAPIFY_API_KEY = os.getenv("GEOAPIFY_API_KEY", "")
    GEOAPIFY_URL = os.getenv("GEOAPIFY_URL", "https://api.geoapify.com/v2/places")
    OVERPASS_URL = os.getenv("OVERPASS_URL", "https://overpass-api.de/api/interpreter")

    # Search Application
    APP_PORT = int(os.getenv("APP_PORT", "8000"))
    SERVICE_HOST = os.getenv("SERVICE_HOST", "127.0.0.1")
    DEFAULT_RADIUS_METERS = float(os.getenv("DEFAULT_RADIUS_METERS", "4828"))  # ~3 miles
    MAX_RADIUS_METERS = float(os.getenv("MAX_RADIUS_METERS", "50000"))

    # Escalation
    MIN_RESULTS = int(os.getenv("MIN_RESULTS", "5"))

    # Retry & Timeout
    FETCH_MAX_RETRIES = int(os.getenv("FETCH_MAX_RETRIES", "2"))
    FETCH_BACKOFF_SECONDS = float(os.getenv("FETCH_BACKOFF_SECONDS", "1.0"))
    FETCH_DEFAULT_TIMEOUT_MS = int(os.getenv("FETCH_DEFAULT_TIMEOUT_MS", "20000"))
    TIMEOUT_BASE_MS = int(os.getenv("TIMEOUT_BASE_MS", "15000"))
    TIMEOUT_STEP_MS = int(os.getenv("TIMEOUT_STEP_MS", "5000"))
    TIMEOUT_STEP_METERS = int(os.getenv("TIMEOUT_STEP_METERS", "5000"))
    TIMEOUT_MAX_MS = int(os.getenv("TIMEOUT_MAX_MS", "45000"))

    # Dedup (4 decimals ~ 11m)
    DEDUP_PRECISION = int(os.getenv("DEDUP_PRECISION", "4"))

    # Tracing
    TRACE_LOG_FILENAME = os.getenv("TRACE_LOG_FILENAME", "search_trace.log")
    TRACE_LOG_PATH = os.path.join(LOG_DIR, TRACE_LOG_FILENAME)


settings = Settings()
